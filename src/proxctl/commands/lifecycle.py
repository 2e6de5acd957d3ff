"""Lifecycle commands for proxctl CLI.

This module provides power-state commands for VMs and containers:
- start, stop: run or halt immediately (wait for the task by default)
- shutdown, restart, suspend: graceful operations (detach by default)
- reset, resume: VM-only hard reset and resume from suspend

Every command accepts ``[vm|ct] [IDS...]`` plus ``--all`` or ``-l``
selectors, and reports one result row per resource.
"""

import logging
import sys
from collections.abc import Callable
from typing import Any

import click

from proxctl import exit_codes
from proxctl.commands.cli_helpers import (
    CommandExit,
    Engine,
    get_engine,
    get_interaction_handler,
    handle_command_errors,
    render_results,
    resolve_resources,
    split_targets,
)
from proxctl.confirmation import impact_summary, needs_confirmation
from proxctl.lifecycle_orchestrator import ExecuteOptions, partition_templates
from proxctl.models import Resource, ResultSummary
from proxctl.modules.interaction_handler import InteractionHandler

logger = logging.getLogger(__name__)

# Graceful operations return as soon as the task is queued unless --wait
DETACHED_BY_DEFAULT = frozenset({"shutdown", "restart", "suspend"})


def lifecycle_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Targeting and execution options shared by every lifecycle command."""
    decorators = [
        click.argument("targets", nargs=-1, metavar="[vm|ct] [IDS]..."),
        click.option("--all", "select_all", is_flag=True, help="Operate on every resource of the type"),
        click.option(
            "-l",
            "--selector",
            "selectors",
            multiple=True,
            help="Filter resources, e.g. 'status=running,tags=prod' (repeatable)",
        ),
        click.option("--node", help="Only resources on this node", type=str),
        click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt"),
        click.option("--async", "async_", is_flag=True, help="Do not wait for tasks to finish"),
        click.option("--wait/--no-wait", default=None, help="Wait for tasks to finish"),
        click.option("--fail-fast", is_flag=True, help="Stop at the first failure"),
        click.option("--timeout", type=float, help="Task wait timeout in seconds"),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def run_lifecycle(
    ctx: click.Context,
    operation: str,
    targets: tuple[str, ...],
    select_all: bool,
    selectors: tuple[str, ...],
    node: str | None,
    yes: bool,
    async_: bool,
    wait: bool | None,
    fail_fast: bool,
    timeout: float | None,
    force: bool = False,
    keep_disks: bool = False,
    purge: bool = False,
) -> None:
    """Resolve, confirm, execute and report one lifecycle command."""
    handler = get_interaction_handler(ctx)

    with handle_command_errors():
        engine = get_engine(ctx)
        strategy, ids = split_targets(targets, engine.registry)
        resources = resolve_resources(
            engine, strategy, ids, select_all, selectors, node, handler
        )

        if operation == "template":
            resources = _skip_templates(resources, engine, handler)

        if not resources:
            raise CommandExit("No resources found.", exit_codes.NOT_FOUND)

        if needs_confirmation(operation, len(resources), assume_yes=yes):
            handler.show_info(
                impact_summary(operation, resources, engine.registry, keep_disks=keep_disks)
            )
            if not handler.confirm("Proceed?", default=False):
                handler.show_info("Operation cancelled.")
                return

        if wait is None:
            wait = operation not in DETACHED_BY_DEFAULT

        options = ExecuteOptions(
            async_=async_,
            wait=wait,
            fail_fast=fail_fast,
            timeout=timeout if timeout is not None else engine.task_timeout,
            force=force,
            keep_disks=keep_disks,
            purge=purge,
        )
        results = engine.orchestrator.execute(operation, resources, options)

        render_results(results, engine.registry)
        sys.exit(ResultSummary(results).exit_code())


def _skip_templates(
    resources: list[Resource], engine: Engine, handler: InteractionHandler
) -> list[Resource]:
    convertible, templates = partition_templates(resources)
    for resource in templates:
        label = engine.registry.for_kind(resource.kind).resource_label
        handler.show_warning(f"{label} {resource.id} is already a template, skipping")
    return convertible


def make_lifecycle_command(operation: str, help_text: str) -> click.Command:
    """Build the click command for one lifecycle operation."""

    @click.command(name=operation, help=help_text)
    @lifecycle_options
    @click.pass_context
    def command(ctx: click.Context, **kwargs: Any) -> None:
        run_lifecycle(ctx, operation, **kwargs)

    return command


start = make_lifecycle_command(
    "start",
    """Start VMs or containers.

    \b
    Examples:
        proxctl start vm 100
        proxctl start 100 200
        proxctl start ct --all --node pve1
        proxctl start vm -l tags=prod -l status=stopped
    """,
)

stop = make_lifecycle_command(
    "stop",
    """Stop VMs or containers immediately (hard stop).

    \b
    Examples:
        proxctl stop vm 100 101 --fail-fast
        proxctl stop ct -l 'name=~web-*' --yes
    """,
)

shutdown = make_lifecycle_command(
    "shutdown",
    """Shut down VMs or containers gracefully.

    Returns once the shutdown is queued unless --wait is given.

    \b
    Examples:
        proxctl shutdown vm 100
        proxctl shutdown ct --all --wait --timeout 120
    """,
)

restart = make_lifecycle_command(
    "restart",
    """Reboot VMs or containers.

    Returns once the reboot is queued unless --wait is given.
    """,
)

reset = make_lifecycle_command(
    "reset",
    """Hard-reset VMs.

    \b
    Examples:
        proxctl reset vm 100
    """,
)

suspend = make_lifecycle_command(
    "suspend",
    """Suspend VMs.

    Returns once the suspend is queued unless --wait is given.
    """,
)

resume = make_lifecycle_command("resume", """Resume suspended VMs.""")

LIFECYCLE_COMMANDS = [start, stop, shutdown, restart, reset, suspend, resume]

__all__ = [
    "DETACHED_BY_DEFAULT",
    "LIFECYCLE_COMMANDS",
    "lifecycle_options",
    "make_lifecycle_command",
    "run_lifecycle",
]
