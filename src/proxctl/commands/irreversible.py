"""Irreversible commands for proxctl CLI.

- delete: destroy VMs or containers (optionally with their disks)
- template: convert VMs or containers into templates

Both always ask for confirmation, even for a single resource, unless
``--yes`` is given.
"""

from typing import Any

import click

from proxctl.commands.lifecycle import lifecycle_options, run_lifecycle


@click.command(name="delete")
@lifecycle_options
@click.option("--force", is_flag=True, help="Stop running resources before deleting")
@click.option("--keep-disks", is_flag=True, help="Keep disks not referenced in the config")
@click.option("--purge", is_flag=True, help="Also remove from HA, replication and backup jobs")
@click.pass_context
def delete(ctx: click.Context, **kwargs: Any) -> None:
    """Delete VMs or containers.

    Running resources are refused unless --force is given, in which case
    they are stopped first.

    \b
    Examples:
        proxctl delete vm 100
        proxctl delete ct 200 201 --force --yes
        proxctl delete vm -l tags=scratch --keep-disks
    """
    run_lifecycle(ctx, "delete", **kwargs)


@click.command(name="template")
@lifecycle_options
@click.pass_context
def template(ctx: click.Context, **kwargs: Any) -> None:
    """Convert VMs or containers to templates.

    Resources that already are templates are skipped with a warning.

    \b
    Examples:
        proxctl template vm 9000
        proxctl template ct -l name=~base-* --yes
    """
    run_lifecycle(ctx, "template", **kwargs)


IRREVERSIBLE_COMMANDS = [delete, template]

__all__ = ["IRREVERSIBLE_COMMANDS", "delete", "template"]
