"""Shared helper functions for CLI commands.

Functions in this module:
- Build the engine (client, registry, resolver, orchestrator) from config
- Turn command arguments into the resource list to operate on
- Map engine exceptions to process exit codes
- Render operation results as a table
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import click
import requests
from rich.console import Console
from rich.table import Table

from proxctl import exit_codes
from proxctl.api_client import ApiError, PermissionDeniedError, ProxmoxClient, TransientApiError
from proxctl.config_manager import ConfigError, ConfigManager, ProxctlConfig
from proxctl.lifecycle_orchestrator import LifecycleOrchestrator, UnsupportedOperationError
from proxctl.log_sanitizer import LogSanitizer
from proxctl.models import OperationResult, Resource, ResourceKind, ResultSummary
from proxctl.modules.interaction_handler import CLIInteractionHandler, InteractionHandler
from proxctl.repositories import ContainerRepository, TaskRepository, VmRepository
from proxctl.resource_resolver import ResourceResolver
from proxctl.retry_config import RetryConfig
from proxctl.selectors import SelectorSyntaxError, UnknownFieldError
from proxctl.strategies import ResourceStrategy, StrategyRegistry, StrategyRegistryError, build_registry

logger = logging.getLogger(__name__)

OUTCOME_STYLES = {"success": "green", "failure": "red", "pending": "yellow"}


class CommandExit(Exception):
    """Raised by helpers to end a command with a message and exit code."""

    def __init__(self, message: str, exit_code: int):
        super().__init__(message)
        self.exit_code = exit_code


@dataclass
class Engine:
    """Collaborators shared by every command in one invocation."""

    registry: StrategyRegistry
    resolver: ResourceResolver
    orchestrator: LifecycleOrchestrator
    task_timeout: float = 60.0

    @classmethod
    def from_config(cls, config: ProxctlConfig) -> "Engine":
        retry_handler = RetryConfig.from_config(config).to_policy(
            logger=logging.getLogger("proxctl.api_client")
        )
        client = ProxmoxClient.from_config(config, retry_handler=retry_handler)
        registry = build_registry(VmRepository(client), ContainerRepository(client))
        return cls(
            registry=registry,
            resolver=ResourceResolver(client),
            orchestrator=LifecycleOrchestrator(registry, TaskRepository(client)),
            task_timeout=config.task_timeout,
        )


def get_engine(ctx: click.Context) -> Engine:
    """Engine for this invocation, built from config on first use."""
    obj = ctx.ensure_object(dict)
    engine = obj.get("engine")
    if engine is None:
        config = ConfigManager.load_config(obj.get("config_path"))
        engine = Engine.from_config(config)
        obj["engine"] = engine
    return engine


def get_interaction_handler(ctx: click.Context) -> InteractionHandler:
    obj = ctx.ensure_object(dict)
    handler = obj.get("interaction_handler")
    if handler is None:
        handler = CLIInteractionHandler()
        obj["interaction_handler"] = handler
    return handler


def split_targets(
    targets: tuple[str, ...], registry: StrategyRegistry
) -> tuple[ResourceStrategy | None, list[int]]:
    """Split ``[vm|ct] [IDS...]`` into an optional strategy and numeric ids.

    Raises:
        click.UsageError: If an id is not a positive integer
    """
    args = list(targets)
    strategy = None
    if args and not args[0].isdigit():
        strategy = registry.for_name(args.pop(0))

    ids = []
    for arg in args:
        if not arg.isdigit() or int(arg) <= 0:
            raise click.UsageError(f"Invalid resource id: {arg}")
        ids.append(int(arg))
    return strategy, ids


def _order_by_ids(resources: list[Resource], ids: list[int]) -> tuple[list[Resource], list[int]]:
    by_id = {r.id: r for r in resources}
    found = [by_id[i] for i in dict.fromkeys(ids) if i in by_id]
    missing = [i for i in ids if i not in by_id]
    return found, missing


def _apply_selectors(
    resources: list[Resource], selectors: tuple[str, ...], registry: StrategyRegistry
) -> list[Resource]:
    """Filter with each resource kind's own selector vocabulary, keeping order."""
    if not selectors:
        return resources

    kept: set[tuple[ResourceKind, int]] = set()
    for kind in dict.fromkeys(r.kind for r in resources):
        selector = registry.for_kind(kind).selector_class.parse_all(selectors)
        group = [r for r in resources if r.kind is kind]
        kept.update((r.kind, r.id) for r in selector.apply(group))
    return [r for r in resources if (r.kind, r.id) in kept]


def resolve_resources(
    engine: Engine,
    strategy: ResourceStrategy | None,
    ids: list[int],
    select_all: bool,
    selectors: tuple[str, ...],
    node: str | None,
    handler: InteractionHandler,
) -> list[Resource]:
    """Resolve command arguments to the resources to operate on.

    With a resource type, ids are looked up in that kind's listing. Without
    one, ids are routed through the resolver and may mix VMs and containers;
    that path costs a single listing call.

    Raises:
        click.UsageError: If nothing selects resources, or --all/-l lack a type
    """
    if not ids and not select_all and not selectors:
        raise click.UsageError("Resource IDs, --all, or -l selector required")

    if strategy is not None:
        if ids and not select_all:
            listing = strategy.repository.list()
            resources, missing = _order_by_ids(listing, ids)
        else:
            resources, missing = strategy.repository.list(node=node), []
        resources = strategy.selector_class.parse_all(selectors).apply(resources)
    else:
        if select_all or not ids:
            valid = ", ".join(engine.registry.names())
            raise click.UsageError(f"Resource type required with --all or -l ({valid})")

        # The resolver's listing already holds every field selectors need
        entries = engine.resolver.resolve_multiple(ids)
        resources, missing = _order_by_ids(engine.resolver.resources_for(entries), ids)
        resources = _apply_selectors(resources, selectors, engine.registry)

    for resource_id in missing:
        handler.show_warning(f"Resource {resource_id} not found")

    if node:
        resources = [r for r in resources if r.node == node]
    return resources


def render_results(results: list[OperationResult], registry: StrategyRegistry) -> None:
    """Print results as a table followed by the summary line."""
    kinds = {r.resource.kind for r in results}
    id_label = registry.for_kind(next(iter(kinds))).id_label if len(kinds) == 1 else "ID"

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column(id_label, style="cyan")
    if len(kinds) > 1:
        table.add_column("TYPE")
    table.add_column("NAME")
    table.add_column("NODE")
    table.add_column("STATUS")
    table.add_column("MESSAGE")

    for result in results:
        resource = result.resource
        style = OUTCOME_STYLES[result.outcome.value]
        row = [str(resource.id)]
        if len(kinds) > 1:
            row.append(registry.for_kind(resource.kind).resource_label)
        row.extend(
            [
                resource.display_name,
                resource.node,
                f"[{style}]{result.status_text}[/{style}]",
                result.message,
            ]
        )
        table.add_row(*row)

    Console().print(table)
    click.echo(ResultSummary(results).format_summary())


@contextmanager
def handle_command_errors() -> Iterator[None]:
    """Translate engine exceptions into an error message and exit code."""
    try:
        yield
    except CommandExit as e:
        if str(e):
            click.echo(str(e), err=True)
        sys.exit(e.exit_code)
    except (SelectorSyntaxError, UnknownFieldError, UnsupportedOperationError, StrategyRegistryError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(exit_codes.USAGE_ERROR)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(exit_codes.CONFIG_ERROR)
    except PermissionDeniedError as e:
        click.echo(f"Permission denied: {e}", err=True)
        sys.exit(exit_codes.PERMISSION_DENIED)
    except (TransientApiError, requests.RequestException, ConnectionError, TimeoutError) as e:
        message = LogSanitizer.create_safe_error_message(e) or type(e).__name__
        click.echo(f"Connection error: {message}", err=True)
        sys.exit(exit_codes.CONNECTION_ERROR)
    except ApiError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        click.echo("\nInterrupted.", err=True)
        sys.exit(exit_codes.INTERRUPTED)


__all__ = [
    "CommandExit",
    "Engine",
    "get_engine",
    "get_interaction_handler",
    "handle_command_errors",
    "render_results",
    "resolve_resources",
    "split_targets",
]
