"""Unit tests for the lifecycle orchestrator."""

from unittest.mock import Mock

import pytest

from proxctl.api_client import ApiError
from proxctl.lifecycle_orchestrator import (
    ExecuteOptions,
    LifecycleOrchestrator,
    UnsupportedOperationError,
    partition_templates,
)
from proxctl.models import Outcome
from proxctl.repositories import TaskTimeoutError
from tests.conftest import make_container, make_task, make_vm


def upid(resource_id: int) -> str:
    return f"UPID:pve1:0000:0000:0000:task:{resource_id}:root@pam:"


@pytest.fixture
def orchestrator(registry, task_repository):
    return LifecycleOrchestrator(registry, task_repository)


class TestExecuteOptions:
    def test_defaults_are_synchronous(self):
        assert ExecuteOptions().synchronous

    def test_async_wins_over_wait(self):
        assert not ExecuteOptions(async_=True, wait=True).synchronous

    def test_no_wait(self):
        assert not ExecuteOptions(wait=False).synchronous


class TestExecute:
    def test_start_two_vms_succeeds_in_order(self, orchestrator, vm_repository, task_repository):
        vm_repository.start.side_effect = lambda resource_id, node: upid(resource_id)
        task_repository.wait.side_effect = lambda ref, timeout: make_task(upid=ref)

        results = orchestrator.execute("start", [make_vm(100), make_vm(101)])

        assert [r.resource.id for r in results] == [100, 101]
        assert [r.outcome for r in results] == [Outcome.SUCCESS, Outcome.SUCCESS]
        assert [r.task_ref for r in results] == [upid(100), upid(101)]
        assert task_repository.wait.call_count == 2

    def test_results_follow_input_order(self, orchestrator, vm_repository):
        vm_repository.stop.side_effect = lambda resource_id, node: upid(resource_id)
        resources = [make_vm(105), make_vm(100), make_vm(103)]

        results = orchestrator.execute("stop", resources)

        assert [r.resource.id for r in results] == [105, 100, 103]

    def test_failure_does_not_stop_batch(self, orchestrator, vm_repository):
        def stop(resource_id, node):
            if resource_id == 101:
                raise ApiError("API error 500: VM is locked", 500)
            return upid(resource_id)

        vm_repository.stop.side_effect = stop

        results = orchestrator.execute("stop", [make_vm(100), make_vm(101), make_vm(102)])

        assert [r.outcome for r in results] == [Outcome.SUCCESS, Outcome.FAILURE, Outcome.SUCCESS]
        assert results[1].error == "API error 500: VM is locked"

    def test_fail_fast_returns_prefix(self, orchestrator, vm_repository):
        called = []

        def stop(resource_id, node):
            called.append(resource_id)
            if resource_id == 101:
                raise ApiError("API error 500: boom", 500)
            return upid(resource_id)

        vm_repository.stop.side_effect = stop

        results = orchestrator.execute(
            "stop", [make_vm(100), make_vm(101), make_vm(102)], ExecuteOptions(fail_fast=True)
        )

        assert [r.outcome for r in results] == [Outcome.SUCCESS, Outcome.FAILURE]
        assert called == [100, 101]

    def test_async_returns_pending_without_waiting(self, orchestrator, vm_repository, task_repository):
        vm_repository.shutdown.side_effect = lambda resource_id, node: upid(resource_id)

        results = orchestrator.execute(
            "shutdown", [make_vm(100), make_vm(101)], ExecuteOptions(async_=True)
        )

        assert all(r.outcome is Outcome.PENDING for r in results)
        assert results[0].task_ref == upid(100)
        task_repository.wait.assert_not_called()

    def test_failed_task_becomes_failure(self, orchestrator, vm_repository, task_repository):
        vm_repository.start.return_value = upid(100)
        task_repository.wait.return_value = make_task(exit_status="start failed: QEMU exited with code 1")

        [result] = orchestrator.execute("start", [make_vm(100)])

        assert result.outcome is Outcome.FAILURE
        assert result.error == "start failed: QEMU exited with code 1"

    def test_task_timeout_becomes_failure(self, orchestrator, vm_repository, task_repository):
        vm_repository.start.return_value = upid(100)
        task_repository.wait.side_effect = TaskTimeoutError("Task x timed out after 5s")

        [result] = orchestrator.execute("start", [make_vm(100)], ExecuteOptions(timeout=5))

        assert result.failed
        assert result.error == "Task x timed out after 5s"
        task_repository.wait.assert_called_once_with(upid(100), timeout=5)

    def test_error_message_is_sanitized(self, orchestrator, vm_repository):
        vm_repository.start.side_effect = ApiError("API error 500: password=hunter2", 500)

        [result] = orchestrator.execute("start", [make_vm(100)])

        assert "hunter2" not in result.error

    def test_mixed_kinds_dispatch_to_their_repositories(
        self, orchestrator, vm_repository, container_repository
    ):
        vm_repository.start.return_value = upid(100)
        container_repository.start.return_value = upid(200)

        results = orchestrator.execute(
            "start", [make_container(200), make_vm(100)], ExecuteOptions(wait=False)
        )

        assert [r.resource.id for r in results] == [200, 100]
        vm_repository.start.assert_called_once_with(100, "pve1")
        container_repository.start.assert_called_once_with(200, "pve1")

    def test_progress_callback(self, orchestrator, vm_repository):
        vm_repository.start.return_value = upid(100)
        progress = Mock()

        orchestrator.execute("start", [make_vm(100)], progress_callback=progress)

        messages = [c.args[0] for c in progress.call_args_list]
        assert messages[0] == "start VM 100..."
        assert messages[-1] == "Success VM 100: OK"

    def test_empty_batch(self, orchestrator):
        assert orchestrator.execute("start", []) == []


class TestValidation:
    def test_unknown_operation(self, orchestrator, vm_repository):
        with pytest.raises(UnsupportedOperationError, match="Unknown operation: migrate"):
            orchestrator.execute("migrate", [make_vm(100)])

    def test_unsupported_for_containers_rejected_before_any_call(
        self, orchestrator, vm_repository, container_repository
    ):
        with pytest.raises(
            UnsupportedOperationError,
            match="Operation 'suspend' is not supported for Container resources",
        ):
            orchestrator.execute("suspend", [make_vm(100), make_container(200)])

        vm_repository.suspend.assert_not_called()


class TestTemplate:
    def test_inline_conversion_is_success(self, orchestrator, vm_repository, task_repository):
        vm_repository.convert_to_template.return_value = None

        [result] = orchestrator.execute("template", [make_vm(100)])

        assert result.outcome is Outcome.SUCCESS
        assert result.task_ref is None
        task_repository.wait.assert_not_called()

    def test_container_template_waits_for_task(self, orchestrator, container_repository, task_repository):
        container_repository.convert_to_template.return_value = upid(200)

        [result] = orchestrator.execute("template", [make_container(200)])

        assert result.succeeded
        task_repository.wait.assert_called_once()

    def test_partition_templates(self):
        resources = [make_vm(100), make_vm(9000, is_template=True), make_container(200)]
        convertible, templates = partition_templates(resources)

        assert [r.id for r in convertible] == [100, 200]
        assert [r.id for r in templates] == [9000]


class TestDelete:
    def test_running_without_force_fails(self, orchestrator, vm_repository):
        [result] = orchestrator.execute("delete", [make_vm(100, status="running")])

        assert result.failed
        assert result.error == "VM 100 is running. Stop it first or use --force"
        vm_repository.stop.assert_not_called()
        vm_repository.delete.assert_not_called()

    def test_running_container_message(self, orchestrator):
        [result] = orchestrator.execute("delete", [make_container(200, status="running")])
        assert result.error == "Container 200 is running. Stop it first or use --force"

    def test_force_stops_then_deletes(self, orchestrator, vm_repository, task_repository):
        vm_repository.stop.return_value = upid(1)
        vm_repository.delete.return_value = upid(2)

        [result] = orchestrator.execute(
            "delete", [make_vm(100, status="running")], ExecuteOptions(force=True)
        )

        assert result.succeeded
        assert result.task_ref == upid(2)
        vm_repository.stop.assert_called_once_with(100, "pve1")
        assert [c.args[0] for c in task_repository.wait.call_args_list] == [upid(1), upid(2)]

    def test_force_stop_failure(self, orchestrator, vm_repository, task_repository):
        vm_repository.stop.return_value = upid(1)
        task_repository.wait.return_value = make_task(exit_status="VM quit/powerdown failed")

        [result] = orchestrator.execute(
            "delete", [make_vm(100, status="running")], ExecuteOptions(force=True)
        )

        assert result.failed
        assert result.error == "Failed to stop: VM quit/powerdown failed"
        vm_repository.delete.assert_not_called()

    def test_stopped_resource_deleted_with_disks(self, orchestrator, container_repository):
        container_repository.delete.return_value = upid(200)

        orchestrator.execute("delete", [make_container(200)])

        container_repository.delete.assert_called_once_with(200, "pve1", destroy_disks=True, purge=False)

    def test_keep_disks_and_purge(self, orchestrator, vm_repository):
        vm_repository.delete.return_value = upid(100)

        orchestrator.execute("delete", [make_vm(100)], ExecuteOptions(keep_disks=True, purge=True))

        vm_repository.delete.assert_called_once_with(100, "pve1", destroy_disks=False, purge=True)

    def test_fail_fast_on_running_resource(self, orchestrator, vm_repository):
        vm_repository.delete.return_value = upid(101)

        results = orchestrator.execute(
            "delete",
            [make_vm(100, status="running"), make_vm(101)],
            ExecuteOptions(fail_fast=True),
        )

        assert len(results) == 1
        vm_repository.delete.assert_not_called()
