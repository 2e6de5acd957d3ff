"""User interaction abstraction for CLI and testing.

Commands never prompt directly. They receive an InteractionHandler, so
tests can script answers and a non-interactive caller can plug in its own
policy.

Example:
    >>> handler = CLIInteractionHandler()
    >>> if handler.confirm("Stop 3 VMs?", default=False):
    ...     handler.show_info("Stopping...")

    Testing example:
    >>> test_handler = MockInteractionHandler(confirm_responses=[True])
    >>> test_handler.confirm("Proceed?")
    True
"""

from typing import Protocol, runtime_checkable

import click


@runtime_checkable
class InteractionHandler(Protocol):
    """Protocol for user interaction."""

    def confirm(self, message: str, default: bool = True) -> bool:
        """Prompt for yes/no confirmation.

        Args:
            message: Confirmation question to display
            default: Default value if user just presses Enter

        Returns:
            True if confirmed, False otherwise
        """
        ...

    def show_warning(self, message: str) -> None:
        """Display a warning message."""
        ...

    def show_info(self, message: str) -> None:
        """Display an informational message."""
        ...


class CLIInteractionHandler:
    """Click-based CLI interaction handler."""

    def confirm(self, message: str, default: bool = True) -> bool:
        """Prompt for yes/no confirmation with colored output.

        A closed stdin (EOF) counts as "no".
        """
        try:
            return click.confirm(click.style(message, fg="yellow"), default=default)
        except click.Abort:
            click.echo()
            return False

    def show_warning(self, message: str) -> None:
        click.secho(f"Warning: {message}", fg="yellow", err=True)

    def show_info(self, message: str) -> None:
        click.echo(message)


class MockInteractionHandler:
    """Mock interaction handler for testing with pre-programmed responses.

    Tracks all interactions for verification in tests.

    Example:
        >>> handler = MockInteractionHandler(confirm_responses=[True, False])
        >>> handler.confirm("Continue?")
        True
        >>> len(handler.interactions)
        1
    """

    def __init__(self, confirm_responses: list[bool] | None = None):
        self.confirm_responses = confirm_responses or []
        self.interactions: list[dict] = []
        self._confirm_index = 0

    def confirm(self, message: str, default: bool = True) -> bool:
        """Return next pre-programmed confirmation response.

        Raises:
            IndexError: If no more confirm responses available
        """
        if self._confirm_index >= len(self.confirm_responses):
            raise IndexError(
                f"No more confirm responses available. "
                f"Provided {len(self.confirm_responses)}, "
                f"needed {self._confirm_index + 1}"
            )

        response = self.confirm_responses[self._confirm_index]
        self._confirm_index += 1

        self.interactions.append(
            {
                "type": "confirm",
                "message": message,
                "default": default,
                "response": response,
            }
        )
        return response

    def show_warning(self, message: str) -> None:
        self.interactions.append({"type": "warning", "message": message})

    def show_info(self, message: str) -> None:
        self.interactions.append({"type": "info", "message": message})

    def messages(self, kind: str) -> list[str]:
        """Recorded messages of one interaction type."""
        return [i["message"] for i in self.interactions if i["type"] == kind]


__all__ = ["CLIInteractionHandler", "InteractionHandler", "MockInteractionHandler"]
