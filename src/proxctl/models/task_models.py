"""
Task Data Models

Status of an upstream asynchronous job, identified by its UPID.
"""

from dataclasses import dataclass
from typing import Any

SUCCESS_EXIT_STATUS = "OK"


@dataclass(frozen=True)
class TaskStatus:
    """Snapshot of an upstream task.

    Attributes:
        upid: Task reference (UPID:node:pid:pstart:starttime:type:id:user:)
        status: "running" while in flight, "stopped" once finished
        exit_status: Terminal message ("OK" on success, error text otherwise)
        node: Node the task runs on
        type: Task type (qmstart, vzstop, ...)
    """

    upid: str
    status: str
    exit_status: str | None = None
    node: str | None = None
    type: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == "running"

    @property
    def is_completed(self) -> bool:
        return not self.is_pending

    @property
    def is_successful(self) -> bool:
        return self.is_completed and self.exit_status == SUCCESS_EXIT_STATUS

    @property
    def is_failed(self) -> bool:
        return self.is_completed and self.exit_status != SUCCESS_EXIT_STATUS

    @classmethod
    def from_api(cls, upid: str, data: dict[str, Any]) -> "TaskStatus":
        return cls(
            upid=upid,
            status=data.get("status", "running"),
            exit_status=data.get("exitstatus"),
            node=data.get("node"),
            type=data.get("type"),
        )


__all__ = ["SUCCESS_EXIT_STATUS", "TaskStatus"]
