"""Unit tests for resource identity resolution."""

from unittest.mock import Mock

import pytest

from proxctl.models import ResolvedEntry, ResourceKind
from proxctl.resource_resolver import ResourceResolver
from tests.conftest import listing_row


@pytest.fixture
def client():
    client = Mock()
    client.get.return_value = [
        listing_row(100, node="pve1", name="web"),
        listing_row(200, "lxc", node="pve2", name="dns"),
        listing_row(300, "openvz", node="pve3"),
    ]
    return client


class TestResourceResolver:
    def test_resolve(self, client):
        entry = ResourceResolver(client).resolve(200)
        assert entry == ResolvedEntry(id=200, node="pve2", kind=ResourceKind.CONTAINER, name="dns")

    def test_resolve_string_id(self, client):
        assert ResourceResolver(client).resolve("100").kind is ResourceKind.VM

    def test_unknown_id(self, client):
        assert ResourceResolver(client).resolve(999) is None

    def test_non_container_type_is_vm(self, client):
        assert ResourceResolver(client).resolve(300).kind is ResourceKind.VM

    def test_listing_fetched_once(self, client):
        resolver = ResourceResolver(client)

        resolver.resolve(100)
        resolver.resolve(200)
        resolver.resolve_multiple([100, 300])
        resolver.resolve_all()

        client.get.assert_called_once_with("cluster/resources", params={"type": "vm"})

    def test_resolve_multiple_keeps_order_and_drops_unknown(self, client):
        entries = ResourceResolver(client).resolve_multiple([300, 999, 100])
        assert [e.id for e in entries] == [300, 100]

    def test_resolve_multiple_empty(self, client):
        assert ResourceResolver(client).resolve_multiple([]) == []

    def test_resolve_all(self, client):
        assert [e.id for e in ResourceResolver(client).resolve_all()] == [100, 200, 300]

    def test_empty_listing_is_cached(self):
        client = Mock()
        client.get.return_value = None
        resolver = ResourceResolver(client)

        assert resolver.resolve(100) is None
        assert resolver.resolve(101) is None
        client.get.assert_called_once()

    def test_non_numeric_id_is_unknown(self, client):
        resolver = ResourceResolver(client)

        assert resolver.resolve("abc") is None
        assert [e.id for e in resolver.resolve_multiple([100, "abc", None])] == [100]

    def test_resources_for_builds_from_cached_listing(self, client):
        resolver = ResourceResolver(client)

        resources = resolver.resources_for(resolver.resolve_multiple([200, 100]))

        assert [(r.id, r.kind, r.name) for r in resources] == [
            (200, ResourceKind.CONTAINER, "dns"),
            (100, ResourceKind.VM, "web"),
        ]
        client.get.assert_called_once()
