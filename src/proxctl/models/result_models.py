"""
Operation Result Models

Typed per-resource outcome of a lifecycle operation, plus the aggregate
view used for summaries and exit codes.
"""

from dataclasses import dataclass
from enum import Enum

from .resource_models import Resource
from .task_models import TaskStatus


class Outcome(Enum):
    """Terminal state of one resource's operation attempt."""

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"


@dataclass(frozen=True)
class OperationResult:
    """Result of one operation on one resource.

    Attributes:
        resource: The resource the operation targeted
        operation: Operation name (start, stop, delete, ...)
        outcome: SUCCESS, FAILURE or PENDING
        task_ref: Upstream task reference, when one was returned
        error: Failure text (exception message or task exit status)
        task: Final task status for operations that were waited on
    """

    resource: Resource
    operation: str
    outcome: Outcome
    task_ref: str | None = None
    error: str | None = None
    task: TaskStatus | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILURE

    @property
    def pending(self) -> bool:
        return self.outcome is Outcome.PENDING

    @property
    def status_text(self) -> str:
        return self.outcome.value.capitalize()

    @property
    def message(self) -> str:
        """Display message: error, then task exit status, then task ref."""
        if self.error:
            return self.error
        if self.task and self.task.exit_status:
            return self.task.exit_status
        if self.task_ref:
            return f"Task: {self.task_ref}"
        return self.status_text

    def __repr__(self) -> str:
        return f"[{self.outcome.name}] {self.operation} {self.resource.id}: {self.message}"


class ResultSummary:
    """Aggregated results from a batch operation."""

    def __init__(self, results: list[OperationResult]):
        self.results = results

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def pending(self) -> int:
        return sum(1 for r in self.results if r.pending)

    @property
    def all_succeeded(self) -> bool:
        return all(r.succeeded for r in self.results)

    @property
    def all_pending(self) -> bool:
        return bool(self.results) and all(r.pending for r in self.results)

    def exit_code(self) -> int:
        """0 when everything succeeded or everything was detached, else 1."""
        if self.all_succeeded or self.all_pending:
            return 0
        return 1

    def format_summary(self) -> str:
        summary = f"Total: {self.total}, Succeeded: {self.succeeded}, Failed: {self.failed}"
        if self.pending:
            summary += f", Pending: {self.pending}"
        return summary


__all__ = ["OperationResult", "Outcome", "ResultSummary"]
