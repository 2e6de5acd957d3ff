"""Resource identity resolution.

Maps workload ids to the node and kind needed to route an operation.
The first lookup issues one cluster-wide listing call and caches the
result for the lifetime of the resolver; later lookups never touch the
network.

Construct one ResourceResolver per command invocation. The cache is never
invalidated, so a long-lived resolver would serve stale placement data
after migrations.
"""

import logging
from collections.abc import Iterable
from typing import Any

from proxctl.models import ResolvedEntry, Resource
from proxctl.repositories import CLUSTER_RESOURCES_PATH

logger = logging.getLogger(__name__)


def _parse_id(resource_id: int | str) -> int | None:
    try:
        return int(resource_id)
    except (TypeError, ValueError):
        return None


class ResourceResolver:
    """Resolve workload ids through a single cached cluster listing.

    Example:
        >>> resolver = ResourceResolver(client)
        >>> entry = resolver.resolve(100)
        >>> entry.node, entry.kind
        ('pve1', <ResourceKind.VM: 'qemu'>)
    """

    def __init__(self, client: Any):
        self._client = client
        self._cache: dict[int, ResolvedEntry] | None = None
        self._rows: dict[int, dict[str, Any]] = {}

    def resolve(self, resource_id: int | str) -> ResolvedEntry | None:
        """Look up one id. Returns None when no workload has it."""
        return self._entries().get(_parse_id(resource_id))

    def resolve_multiple(self, resource_ids: Iterable[int | str]) -> list[ResolvedEntry]:
        """Look up several ids, keeping input order and dropping unknown ones."""
        entries = self._entries()
        resolved = []
        for resource_id in resource_ids:
            entry = entries.get(_parse_id(resource_id))
            if entry is None:
                logger.debug(f"No workload with id {resource_id}")
                continue
            resolved.append(entry)
        return resolved

    def resolve_all(self) -> list[ResolvedEntry]:
        return list(self._entries().values())

    def resources_for(self, entries: Iterable[ResolvedEntry]) -> list[Resource]:
        """Full resource snapshots for resolved entries, from the cached listing."""
        self._entries()
        return [Resource.from_api(self._rows[entry.id]) for entry in entries if entry.id in self._rows]

    def _entries(self) -> dict[int, ResolvedEntry]:
        if self._cache is None:
            listing = self._client.get(CLUSTER_RESOURCES_PATH, params={"type": "vm"}) or []
            self._cache = {}
            for row in listing:
                entry = ResolvedEntry.from_api(row)
                self._cache[entry.id] = entry
                self._rows[entry.id] = row
            logger.debug(f"Resolver cached {len(self._cache)} workloads")
        return self._cache


__all__ = ["ResourceResolver"]
