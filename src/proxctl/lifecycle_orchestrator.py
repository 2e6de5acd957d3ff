"""Lifecycle orchestrator for multi-resource operations.

Runs one lifecycle operation over an ordered list of resources:
- Dispatches each call to the repository of the resource's kind
- Waits for the resulting task (synchronous) or detaches (asynchronous)
- Captures per-resource failures as results instead of raising
- Stops after the first failure when fail-fast is requested

Resources are processed strictly one after another, and results come
back in input order. Under fail-fast the results are a prefix of the
input.

The orchestrator does no interactive IO. Callers decide whether to ask
for confirmation (see ``proxctl.confirmation``) before calling
``execute``.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from proxctl.log_sanitizer import LogSanitizer
from proxctl.models import OperationResult, Outcome, Resource
from proxctl.repositories import TaskRepository
from proxctl.strategies import ResourceStrategy, StrategyRegistry

logger = logging.getLogger(__name__)

LIFECYCLE_OPERATIONS = (
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

# Repository method names that differ from the operation name
REPOSITORY_METHODS = {"template": "convert_to_template"}

DEFAULT_TIMEOUT = 60


class UnsupportedOperationError(ValueError):
    """Raised before any call when an operation cannot run on the batch."""

    pass


@dataclass(frozen=True)
class ExecuteOptions:
    """Options controlling one ``execute`` call.

    Attributes:
        async_: Return PENDING results without waiting for tasks
        wait: Wait for each task to finish (ignored when ``async_`` is set)
        fail_fast: Stop after the first FAILURE
        timeout: Task-wait ceiling in seconds
        force: Delete running resources by stopping them first
        keep_disks: Keep unreferenced disks when deleting
        purge: Remove deleted resources from HA, replication and backup jobs
    """

    async_: bool = False
    wait: bool = True
    fail_fast: bool = False
    timeout: float = DEFAULT_TIMEOUT
    force: bool = False
    keep_disks: bool = False
    purge: bool = False

    @property
    def synchronous(self) -> bool:
        return self.wait and not self.async_


def partition_templates(resources: list[Resource]) -> tuple[list[Resource], list[Resource]]:
    """Split resources into (convertible, already templates), keeping order."""
    convertible = [r for r in resources if not r.is_template]
    templates = [r for r in resources if r.is_template]
    return convertible, templates


class LifecycleOrchestrator:
    """Execute lifecycle operations across VMs and containers.

    Example:
        >>> orchestrator = LifecycleOrchestrator(registry, task_repository)
        >>> results = orchestrator.execute("stop", vms, ExecuteOptions(fail_fast=True))
    """

    def __init__(self, registry: StrategyRegistry, task_repository: TaskRepository):
        self.registry = registry
        self.task_repository = task_repository

    def execute(
        self,
        operation: str,
        resources: list[Resource],
        options: ExecuteOptions | None = None,
        progress_callback: Callable[[str], None] | None = None,
    ) -> list[OperationResult]:
        """Run ``operation`` on every resource, in order.

        Args:
            operation: Lifecycle operation name
            resources: Resources to operate on
            options: Execution options (defaults: synchronous, continue on failure)
            progress_callback: Optional progress callback

        Returns:
            One OperationResult per processed resource, in input order

        Raises:
            UnsupportedOperationError: If the operation is unknown or a
                resource kind in the batch does not support it
        """
        options = options or ExecuteOptions()
        self.validate(operation, resources)

        results: list[OperationResult] = []
        for resource in resources:
            result = self._execute_single(operation, resource, options, progress_callback)
            results.append(result)

            if options.fail_fast and result.failed:
                skipped = len(resources) - len(results)
                if skipped:
                    logger.warning(
                        f"Stopping after failed {operation} on {resource.id}; "
                        f"{skipped} resource(s) not processed"
                    )
                break

        return results

    def validate(self, operation: str, resources: list[Resource]) -> None:
        if operation not in LIFECYCLE_OPERATIONS:
            raise UnsupportedOperationError(
                f"Unknown operation: {operation}. Valid: {', '.join(LIFECYCLE_OPERATIONS)}"
            )

        for kind in dict.fromkeys(r.kind for r in resources):
            strategy = self.registry.for_kind(kind)
            if not strategy.supports(operation):
                raise UnsupportedOperationError(
                    f"Operation '{operation}' is not supported for {strategy.resource_label} resources"
                )

    def _execute_single(
        self,
        operation: str,
        resource: Resource,
        options: ExecuteOptions,
        progress_callback: Callable[[str], None] | None,
    ) -> OperationResult:
        strategy = self.registry.for_kind(resource.kind)
        label = strategy.describe(resource)
        logger.info(f"Running {operation} on {label} ({resource.display_name}) at {resource.node}")
        if progress_callback:
            progress_callback(f"{operation} {label}...")

        try:
            if operation == "delete":
                result = self._delete(strategy, resource, options)
            else:
                task_ref = self._invoke(strategy, operation, resource)
                result = self._complete(strategy, resource, operation, task_ref, options)
        except Exception as e:
            message = LogSanitizer.sanitize(str(e)) or type(e).__name__
            result = strategy.build_result(resource, operation, Outcome.FAILURE, error=message)

        if result.failed:
            logger.error(f"{operation} failed for {label}: {result.message}")
        if progress_callback:
            progress_callback(f"{result.status_text} {label}: {result.message}")
        return result

    def _invoke(self, strategy: ResourceStrategy, operation: str, resource: Resource) -> str | None:
        method_name = REPOSITORY_METHODS.get(operation, operation)
        method = getattr(self.registry.repository_for(resource.kind), method_name)
        return method(resource.id, resource.node)

    def _complete(
        self,
        strategy: ResourceStrategy,
        resource: Resource,
        operation: str,
        task_ref: str | None,
        options: ExecuteOptions,
    ) -> OperationResult:
        """Turn a task reference into a result, waiting when synchronous."""
        # No task reference: the API finished the work inline
        if not task_ref:
            return strategy.build_result(resource, operation, Outcome.SUCCESS)

        if not options.synchronous:
            return strategy.build_result(resource, operation, Outcome.PENDING, task_ref=task_ref)

        task = self.task_repository.wait(task_ref, timeout=options.timeout)
        if task.is_successful:
            return strategy.build_result(
                resource, operation, Outcome.SUCCESS, task_ref=task_ref, task=task
            )
        return strategy.build_result(
            resource,
            operation,
            Outcome.FAILURE,
            task_ref=task_ref,
            task=task,
            error=task.exit_status or f"Task ended with status {task.status}",
        )

    def _delete(
        self, strategy: ResourceStrategy, resource: Resource, options: ExecuteOptions
    ) -> OperationResult:
        repository = self.registry.repository_for(resource.kind)

        if resource.is_running:
            if not options.force:
                return strategy.build_result(
                    resource,
                    "delete",
                    Outcome.FAILURE,
                    error=f"{strategy.describe(resource)} is running. Stop it first or use --force",
                )

            logger.info(f"Stopping {strategy.describe(resource)} before delete")
            stop_ref = repository.stop(resource.id, resource.node)
            stop_task = self.task_repository.wait(stop_ref, timeout=options.timeout)
            if not stop_task.is_successful:
                return strategy.build_result(
                    resource,
                    "delete",
                    Outcome.FAILURE,
                    task_ref=stop_ref,
                    task=stop_task,
                    error=f"Failed to stop: {stop_task.exit_status}",
                )

        task_ref = repository.delete(
            resource.id,
            resource.node,
            destroy_disks=not options.keep_disks,
            purge=options.purge,
        )
        return self._complete(strategy, resource, "delete", task_ref, options)


__all__ = [
    "DEFAULT_TIMEOUT",
    "ExecuteOptions",
    "LIFECYCLE_OPERATIONS",
    "LifecycleOrchestrator",
    "UnsupportedOperationError",
    "partition_templates",
]
