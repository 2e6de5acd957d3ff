"""Repositories for workloads and tasks.

VM and container repositories share one implementation that differs only
in the API path segment (``qemu``/``lxc``) and the set of lifecycle
operations the kind supports. Every mutating call returns the task
reference (UPID) of the upstream job it started.

Listing uses the cluster-wide ``cluster/resources`` endpoint, so one call
covers every node.
"""

import logging
import time
from typing import Any
from urllib.parse import quote

from proxctl.models import Resource, ResourceKind, TaskStatus

logger = logging.getLogger(__name__)

CLUSTER_RESOURCES_PATH = "cluster/resources"

VM_OPERATIONS = (
    "start",
    "stop",
    "shutdown",
    "restart",
    "reset",
    "suspend",
    "resume",
    "delete",
    "template",
)
CONTAINER_OPERATIONS = ("start", "stop", "shutdown", "restart", "delete", "template")

# Lifecycle verbs whose API action differs from the command name
STATUS_ACTIONS = {"restart": "reboot"}


class TaskTimeoutError(TimeoutError):
    """Raised when a task is still running after the wait deadline."""

    pass


class ResourceRepository:
    """Lifecycle and listing calls for one workload kind.

    Attributes:
        kind: Workload kind served by this repository
        operations: Lifecycle operation names the kind supports
    """

    kind: ResourceKind = ResourceKind.VM
    operations: tuple[str, ...] = ()

    def __init__(self, client: Any):
        self.client = client

    @property
    def path_segment(self) -> str:
        return self.kind.value

    def supports(self, operation: str) -> bool:
        return operation in self.operations

    def list(self, node: str | None = None) -> list[Resource]:
        """List workloads of this kind, optionally restricted to one node."""
        entries = self.client.get(CLUSTER_RESOURCES_PATH, params={"type": "vm"}) or []
        resources = [
            Resource.from_api(entry)
            for entry in entries
            if entry.get("type") == self.kind.value and (node is None or entry.get("node") == node)
        ]
        resources.sort(key=lambda r: r.id)
        logger.debug(f"Listed {len(resources)} {self.kind.name.lower()} resources")
        return resources

    def get(self, resource_id: int | str) -> Resource | None:
        wanted = int(resource_id)
        return next((r for r in self.list() if r.id == wanted), None)

    def start(self, resource_id: int, node: str) -> str:
        return self._post_status(resource_id, node, "start")

    def stop(self, resource_id: int, node: str) -> str:
        return self._post_status(resource_id, node, "stop")

    def shutdown(self, resource_id: int, node: str) -> str:
        return self._post_status(resource_id, node, "shutdown")

    def restart(self, resource_id: int, node: str) -> str:
        return self._post_status(resource_id, node, "restart")

    def delete(
        self,
        resource_id: int,
        node: str,
        destroy_disks: bool = True,
        purge: bool = False,
    ) -> str:
        """Delete a workload.

        Args:
            resource_id: Workload id
            node: Hosting node
            destroy_disks: Also destroy disks not referenced in the config
            purge: Remove from HA, replication and backup jobs as well

        Returns:
            Task reference of the destroy job
        """
        params: dict[str, Any] = {}
        if destroy_disks:
            params["destroy-unreferenced-disks"] = 1
        if purge:
            params["purge"] = 1
        return self.client.delete(self._resource_path(resource_id, node), params=params)

    def convert_to_template(self, resource_id: int, node: str) -> str | None:
        """Convert to a template.

        Returns:
            Task reference, or None when the API completed the conversion inline
        """
        result = self.client.post(f"{self._resource_path(resource_id, node)}/template", data={})
        return result or None

    def _resource_path(self, resource_id: int, node: str) -> str:
        return f"nodes/{node}/{self.path_segment}/{resource_id}"

    def _post_status(self, resource_id: int, node: str, operation: str) -> str:
        action = STATUS_ACTIONS.get(operation, operation)
        logger.debug(f"Requesting {action} for {self.kind.name.lower()} {resource_id} on {node}")
        return self.client.post(f"{self._resource_path(resource_id, node)}/status/{action}", data={})


class VmRepository(ResourceRepository):
    """QEMU virtual machines."""

    kind = ResourceKind.VM
    operations = VM_OPERATIONS

    def reset(self, resource_id: int, node: str) -> str:
        return self._post_status(resource_id, node, "reset")

    def suspend(self, resource_id: int, node: str) -> str:
        return self._post_status(resource_id, node, "suspend")

    def resume(self, resource_id: int, node: str) -> str:
        return self._post_status(resource_id, node, "resume")


class ContainerRepository(ResourceRepository):
    """LXC containers."""

    kind = ResourceKind.CONTAINER
    operations = CONTAINER_OPERATIONS


def node_from_task_ref(task_ref: str) -> str:
    """Extract the node name from ``UPID:node:pid:pstart:starttime:type:id:user:``."""
    parts = task_ref.split(":")
    if len(parts) < 2 or parts[0] != "UPID" or not parts[1]:
        raise ValueError(f"Invalid task reference: {task_ref}")
    return parts[1]


class TaskRepository:
    """Status lookups for upstream tasks."""

    DEFAULT_TIMEOUT = 60
    DEFAULT_INTERVAL = 2

    def __init__(self, client: Any):
        self.client = client

    def find(self, task_ref: str) -> TaskStatus:
        node = node_from_task_ref(task_ref)
        data = self.client.get(f"nodes/{node}/tasks/{quote(task_ref, safe='')}/status") or {}
        return TaskStatus.from_api(task_ref, data)

    def wait(
        self,
        task_ref: str,
        timeout: float = DEFAULT_TIMEOUT,
        interval: float = DEFAULT_INTERVAL,
    ) -> TaskStatus:
        """Poll until the task leaves the running state.

        Raises:
            TaskTimeoutError: If the task is still running after ``timeout`` seconds
        """
        deadline = time.monotonic() + timeout
        while True:
            task = self.find(task_ref)
            if task.is_completed:
                return task

            if time.monotonic() > deadline:
                raise TaskTimeoutError(f"Task {task_ref} timed out after {timeout}s")

            time.sleep(interval)


__all__ = [
    "CONTAINER_OPERATIONS",
    "ContainerRepository",
    "ResourceRepository",
    "TaskRepository",
    "TaskTimeoutError",
    "VM_OPERATIONS",
    "VmRepository",
    "node_from_task_ref",
]
