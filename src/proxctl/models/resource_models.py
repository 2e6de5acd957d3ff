"""
Resource Data Models

Read-only snapshots of cluster workloads, fetched once per invocation.

Philosophy:
- Zero dependencies: No imports from other proxctl modules
- Immutable: state changes happen remotely and show up only on re-fetch
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ResourceKind(Enum):
    """Two-way workload classification."""

    VM = "qemu"
    CONTAINER = "lxc"

    @classmethod
    def from_type_tag(cls, type_tag: str | None) -> "ResourceKind":
        """Classify an upstream type tag.

        Anything other than the container tag is treated as a VM.
        """
        if type_tag == cls.CONTAINER.value:
            return cls.CONTAINER
        return cls.VM


def parse_tags(raw: Any) -> tuple[str, ...] | None:
    """Split the semicolon-separated tag string reported upstream.

    Returns None when the resource carries no tags at all.
    """
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        tags = [str(t).strip() for t in raw]
    else:
        tags = [t.strip() for t in str(raw).split(";")]
    return tuple(t for t in tags if t)


@dataclass(frozen=True)
class Resource:
    """A managed workload (VM or container).

    Attributes:
        id: Cluster-unique numeric identifier (VMID/CTID)
        node: Node currently hosting the workload
        kind: VM or CONTAINER
        name: Optional display name
        status: Power status reported upstream (running, stopped, paused, ...)
        tags: Ordered tag list, None when the workload has no tags
        pool: Resource pool name, if any
        is_template: Whether the workload is a template
    """

    id: int
    node: str
    kind: ResourceKind
    name: str | None = None
    status: str = "unknown"
    tags: tuple[str, ...] | None = None
    pool: str | None = None
    is_template: bool = False

    @property
    def is_running(self) -> bool:
        return self.status == "running"

    @property
    def display_name(self) -> str:
        return self.name or "unnamed"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Resource":
        """Build from one row of the cluster resource listing."""
        return cls(
            id=int(data["vmid"]),
            node=data.get("node", ""),
            kind=ResourceKind.from_type_tag(data.get("type")),
            name=data.get("name"),
            status=data.get("status") or "unknown",
            tags=parse_tags(data.get("tags")),
            pool=data.get("pool"),
            is_template=bool(int(data.get("template") or 0)),
        )


@dataclass(frozen=True)
class ResolvedEntry:
    """Routing information for one workload: where it lives and what it is."""

    id: int
    node: str
    kind: ResourceKind
    name: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ResolvedEntry":
        return cls(
            id=int(data["vmid"]),
            node=data.get("node", ""),
            kind=ResourceKind.from_type_tag(data.get("type")),
            name=data.get("name"),
        )


__all__ = ["Resource", "ResourceKind", "ResolvedEntry", "parse_tags"]
