"""Per-kind resource strategies and the registry that holds them.

A ResourceStrategy bundles everything that differs between VMs and
containers: labels for messages, the repository, the selector field
vocabulary and the supported operations. Dispatch is a lookup on the
resource's kind, not a class hierarchy.

The registry is an ordinary value built once at startup and passed to
whoever needs it. There is no module-level registration state.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from proxctl.models import OperationResult, Outcome, Resource, ResourceKind, TaskStatus
from proxctl.repositories import CONTAINER_OPERATIONS, VM_OPERATIONS, ResourceRepository
from proxctl.selectors import ContainerSelector, Selector, VmSelector


class StrategyRegistryError(KeyError):
    """Raised when no strategy is registered for a kind or name."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unknown resource type"


def build_operation_result(
    resource: Resource,
    operation: str,
    outcome: Outcome,
    task_ref: str | None = None,
    error: str | None = None,
    task: TaskStatus | None = None,
) -> OperationResult:
    return OperationResult(
        resource=resource,
        operation=operation,
        outcome=outcome,
        task_ref=task_ref,
        error=error,
        task=task,
    )


@dataclass(frozen=True)
class ResourceStrategy:
    """Kind-specific behaviour for lifecycle commands.

    Attributes:
        kind: Workload kind this strategy serves
        resource_label: Human label ("VM", "Container")
        id_label: Column label for the id ("VMID", "CTID")
        repository: Repository performing the remote calls
        selector_class: Selector subclass with this kind's field vocabulary
        operations: Lifecycle operation names the kind supports
        result_builder: Callable building OperationResult values
    """

    kind: ResourceKind
    resource_label: str
    id_label: str
    repository: ResourceRepository
    selector_class: type[Selector]
    operations: tuple[str, ...]
    result_builder: Callable[..., OperationResult] = build_operation_result

    def supports(self, operation: str) -> bool:
        return operation in self.operations

    def build_result(self, resource: Resource, operation: str, outcome: Outcome, **kwargs) -> OperationResult:
        return self.result_builder(resource, operation, outcome, **kwargs)

    def describe(self, resource: Resource) -> str:
        return f"{self.resource_label} {resource.id}"


class StrategyRegistry:
    """Strategies keyed by kind, with CLI-facing name aliases."""

    def __init__(self) -> None:
        self._by_kind: dict[ResourceKind, ResourceStrategy] = {}
        self._by_name: dict[str, ResourceKind] = {}

    def register(self, strategy: ResourceStrategy, aliases: Iterable[str] = ()) -> None:
        if strategy.kind in self._by_kind:
            raise ValueError(f"Strategy already registered for {strategy.kind.name}")
        self._by_kind[strategy.kind] = strategy
        for alias in aliases:
            self._by_name[alias.lower()] = strategy.kind

    def for_kind(self, kind: ResourceKind) -> ResourceStrategy:
        try:
            return self._by_kind[kind]
        except KeyError:
            raise StrategyRegistryError(f"No strategy registered for {kind.name}") from None

    def for_name(self, name: str) -> ResourceStrategy:
        kind = self._by_name.get(name.lower())
        if kind is None:
            valid = ", ".join(self.names())
            raise StrategyRegistryError(f"Unknown resource type: {name}. Valid types: {valid}")
        return self._by_kind[kind]

    def repository_for(self, kind: ResourceKind) -> ResourceRepository:
        return self.for_kind(kind).repository

    def names(self) -> list[str]:
        return sorted(self._by_name)


def build_registry(vm_repository: ResourceRepository, container_repository: ResourceRepository) -> StrategyRegistry:
    """Registry with the VM and container strategies.

    Args:
        vm_repository: Repository for QEMU virtual machines
        container_repository: Repository for LXC containers

    Returns:
        A fresh StrategyRegistry
    """
    registry = StrategyRegistry()
    registry.register(
        ResourceStrategy(
            kind=ResourceKind.VM,
            resource_label="VM",
            id_label="VMID",
            repository=vm_repository,
            selector_class=VmSelector,
            operations=VM_OPERATIONS,
        ),
        aliases=("vm", "vms", "qemu"),
    )
    registry.register(
        ResourceStrategy(
            kind=ResourceKind.CONTAINER,
            resource_label="Container",
            id_label="CTID",
            repository=container_repository,
            selector_class=ContainerSelector,
            operations=CONTAINER_OPERATIONS,
        ),
        aliases=("ct", "container", "containers", "lxc"),
    )
    return registry


__all__ = [
    "ResourceStrategy",
    "StrategyRegistry",
    "StrategyRegistryError",
    "build_operation_result",
    "build_registry",
]
