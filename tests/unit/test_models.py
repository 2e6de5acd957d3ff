"""Unit tests for proxctl data models."""

import pytest

from proxctl.models import (
    OperationResult,
    Outcome,
    Resource,
    ResolvedEntry,
    ResourceKind,
    ResultSummary,
    TaskStatus,
    parse_tags,
)
from tests.conftest import listing_row, make_task, make_vm


class TestResourceKind:
    def test_container_tag(self):
        assert ResourceKind.from_type_tag("lxc") is ResourceKind.CONTAINER

    @pytest.mark.parametrize("tag", ["qemu", "storage", None, ""])
    def test_everything_else_is_a_vm(self, tag):
        assert ResourceKind.from_type_tag(tag) is ResourceKind.VM


class TestParseTags:
    def test_semicolon_separated(self):
        assert parse_tags("prod;web") == ("prod", "web")

    def test_absent(self):
        assert parse_tags(None) is None

    def test_empty_string(self):
        assert parse_tags("") == ()

    def test_drops_blank_entries(self):
        assert parse_tags(" prod ; ;web") == ("prod", "web")


class TestResource:
    def test_from_api(self):
        resource = Resource.from_api(
            listing_row(100, name="web-1", status="running", tags="prod;web", pool="apps", template=0)
        )

        assert resource == Resource(
            id=100,
            node="pve1",
            kind=ResourceKind.VM,
            name="web-1",
            status="running",
            tags=("prod", "web"),
            pool="apps",
            is_template=False,
        )
        assert resource.is_running

    def test_from_api_container_template(self):
        resource = Resource.from_api(listing_row(200, "lxc", template=1))
        assert resource.kind is ResourceKind.CONTAINER
        assert resource.is_template
        assert resource.tags is None

    def test_display_name(self):
        assert make_vm(1).display_name == "unnamed"
        assert make_vm(1, name="db").display_name == "db"

    def test_resolved_entry_from_api(self):
        entry = ResolvedEntry.from_api(listing_row(200, "lxc", node="pve2", name="dns"))
        assert entry == ResolvedEntry(id=200, node="pve2", kind=ResourceKind.CONTAINER, name="dns")


class TestTaskStatus:
    def test_running(self):
        task = TaskStatus(upid="UPID:pve1:x", status="running")
        assert task.is_pending
        assert not task.is_completed
        assert not task.is_successful
        assert not task.is_failed

    def test_ok(self):
        task = make_task()
        assert task.is_completed
        assert task.is_successful
        assert not task.is_failed

    def test_failed(self):
        task = make_task(exit_status="command 'qm start' failed")
        assert task.is_failed
        assert not task.is_successful

    def test_from_api(self):
        task = TaskStatus.from_api("UPID:pve1:x", {"status": "stopped", "exitstatus": "OK", "type": "qmstop"})
        assert task.exit_status == "OK"
        assert task.type == "qmstop"


class TestOperationResult:
    def test_message_prefers_error(self):
        result = OperationResult(make_vm(1), "start", Outcome.FAILURE, task_ref="UPID:a", error="boom")
        assert result.message == "boom"
        assert result.failed

    def test_message_from_task(self):
        result = OperationResult(make_vm(1), "start", Outcome.SUCCESS, task_ref="UPID:a", task=make_task())
        assert result.message == "OK"

    def test_message_from_task_ref(self):
        result = OperationResult(make_vm(1), "shutdown", Outcome.PENDING, task_ref="UPID:a")
        assert result.message == "Task: UPID:a"
        assert result.pending

    def test_message_falls_back_to_status(self):
        result = OperationResult(make_vm(1), "template", Outcome.SUCCESS)
        assert result.message == "Success"


def _result(outcome: Outcome, resource_id: int = 1) -> OperationResult:
    return OperationResult(make_vm(resource_id), "stop", outcome)


class TestResultSummary:
    def test_counts(self):
        summary = ResultSummary(
            [_result(Outcome.SUCCESS), _result(Outcome.FAILURE, 2), _result(Outcome.PENDING, 3)]
        )
        assert (summary.total, summary.succeeded, summary.failed, summary.pending) == (3, 1, 1, 1)

    def test_exit_code_all_success(self):
        assert ResultSummary([_result(Outcome.SUCCESS), _result(Outcome.SUCCESS)]).exit_code() == 0

    def test_exit_code_all_pending(self):
        assert ResultSummary([_result(Outcome.PENDING)]).exit_code() == 0

    def test_exit_code_with_failure(self):
        assert ResultSummary([_result(Outcome.SUCCESS), _result(Outcome.FAILURE)]).exit_code() == 1

    def test_exit_code_mixed_success_and_pending(self):
        assert ResultSummary([_result(Outcome.SUCCESS), _result(Outcome.PENDING)]).exit_code() == 1

    def test_exit_code_empty(self):
        assert ResultSummary([]).exit_code() == 0

    def test_format_summary(self):
        summary = ResultSummary([_result(Outcome.SUCCESS), _result(Outcome.FAILURE)])
        assert summary.format_summary() == "Total: 2, Succeeded: 1, Failed: 1"

    def test_format_summary_with_pending(self):
        summary = ResultSummary([_result(Outcome.PENDING)])
        assert summary.format_summary() == "Total: 1, Succeeded: 0, Failed: 0, Pending: 1"
