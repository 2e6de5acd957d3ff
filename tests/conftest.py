"""
Shared test fixtures for proxctl tests.

This module provides common fixtures used across the suite:
- Resource factories for VMs and containers
- Strategy registry wired to mock repositories
- Task status factories
- Scripted interaction handler
"""

from unittest.mock import Mock

import pytest

from proxctl.models import Resource, ResourceKind, TaskStatus
from proxctl.modules.interaction_handler import MockInteractionHandler
from proxctl.repositories import ContainerRepository, TaskRepository, VmRepository
from proxctl.strategies import build_registry

# ============================================================================
# RESOURCE FIXTURES
# ============================================================================


def make_vm(resource_id: int, **kwargs) -> Resource:
    kwargs.setdefault("node", "pve1")
    return Resource(id=resource_id, kind=ResourceKind.VM, **kwargs)


def make_container(resource_id: int, **kwargs) -> Resource:
    kwargs.setdefault("node", "pve1")
    return Resource(id=resource_id, kind=ResourceKind.CONTAINER, **kwargs)


def make_task(upid: str = "UPID:pve1:0001:0002:0003:qmstart:100:root@pam:", exit_status="OK", status="stopped"):
    return TaskStatus(upid=upid, status=status, exit_status=exit_status, node="pve1")


def listing_row(vmid: int, type_tag: str = "qemu", **kwargs) -> dict:
    """One row of the cluster resource listing."""
    row = {"vmid": vmid, "type": type_tag, "node": "pve1", "status": "stopped"}
    row.update(kwargs)
    return row


@pytest.fixture
def sample_vms():
    """Three VMs on two nodes with mixed status and tags."""
    return [
        make_vm(100, name="web-1", status="running", tags=("prod", "web")),
        make_vm(101, name="web-2", status="stopped", tags=("prod",), node="pve2"),
        make_vm(102, name="db-1", status="running", tags=("dev",), pool="databases"),
    ]


# ============================================================================
# ENGINE FIXTURES
# ============================================================================


@pytest.fixture
def vm_repository():
    repo = Mock(spec=VmRepository)
    repo.list.return_value = []
    return repo


@pytest.fixture
def container_repository():
    repo = Mock(spec=ContainerRepository)
    repo.list.return_value = []
    return repo


@pytest.fixture
def task_repository():
    repo = Mock(spec=TaskRepository)
    repo.wait.return_value = make_task()
    return repo


@pytest.fixture
def registry(vm_repository, container_repository):
    return build_registry(vm_repository, container_repository)


@pytest.fixture
def interaction_handler():
    """Handler that answers no prompts unless a test scripts some."""
    return MockInteractionHandler()
