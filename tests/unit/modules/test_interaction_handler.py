"""Tests for interaction handler abstraction."""

from unittest.mock import patch

import click
import pytest

from proxctl.modules.interaction_handler import (
    CLIInteractionHandler,
    InteractionHandler,
    MockInteractionHandler,
)


class TestMockInteractionHandler:
    def test_scripted_responses(self):
        handler = MockInteractionHandler(confirm_responses=[True, False])

        assert handler.confirm("First?") is True
        assert handler.confirm("Second?", default=False) is False
        assert handler.interactions[1] == {
            "type": "confirm",
            "message": "Second?",
            "default": False,
            "response": False,
        }

    def test_runs_out_of_responses(self):
        handler = MockInteractionHandler()
        with pytest.raises(IndexError, match="No more confirm responses"):
            handler.confirm("Proceed?")

    def test_records_messages(self):
        handler = MockInteractionHandler()
        handler.show_warning("careful")
        handler.show_info("done")

        assert handler.messages("warning") == ["careful"]
        assert handler.messages("info") == ["done"]

    def test_satisfies_protocol(self):
        assert isinstance(MockInteractionHandler(), InteractionHandler)
        assert isinstance(CLIInteractionHandler(), InteractionHandler)


class TestCLIInteractionHandler:
    def test_confirm_delegates_to_click(self):
        with patch("proxctl.modules.interaction_handler.click.confirm", return_value=True) as confirm:
            assert CLIInteractionHandler().confirm("Proceed?", default=False) is True

        assert confirm.call_args.kwargs["default"] is False

    def test_abort_counts_as_no(self):
        with patch("proxctl.modules.interaction_handler.click.confirm", side_effect=click.Abort()):
            assert CLIInteractionHandler().confirm("Proceed?") is False

    def test_warning_goes_to_stderr(self, capsys):
        CLIInteractionHandler().show_warning("VM 9000 is already a template, skipping")

        captured = capsys.readouterr()
        assert "Warning: VM 9000 is already a template, skipping" in captured.err
        assert captured.out == ""
