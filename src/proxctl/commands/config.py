"""Configuration commands for proxctl CLI.

- config view: show the effective configuration (secrets masked)
- config set: persist one key to the config file
"""

import logging
import sys

import click

from proxctl import exit_codes
from proxctl.config_manager import ConfigError, ConfigManager

logger = logging.getLogger(__name__)


@click.group(name="config")
def config_group():
    """View or change proxctl configuration.

    \b
    Examples:
        proxctl config view
        proxctl config set server pve1.example.com
        proxctl config set token_id 'root@pam!proxctl'
        proxctl config set retry_writes true
    """
    pass


@config_group.command(name="view")
@click.pass_context
def config_view(ctx: click.Context):
    """Show the effective configuration with secrets masked."""
    config_path = ctx.ensure_object(dict).get("config_path")
    try:
        path = ConfigManager.get_config_path(config_path)
        config = ConfigManager.load_config(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(exit_codes.CONFIG_ERROR)

    suffix = "" if path.exists() else " (not created yet)"
    click.echo(f"# {path}{suffix}")
    for key, value in ConfigManager.masked_view(config).items():
        shown = "" if value is None else str(value).lower() if isinstance(value, bool) else value
        click.echo(f"{key} = {shown}")


@config_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str):
    """Set KEY to VALUE in the config file."""
    config_path = ctx.ensure_object(dict).get("config_path")
    try:
        ConfigManager.set_value(key, value, config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(exit_codes.CONFIG_ERROR)

    shown = "[REDACTED]" if "secret" in key else value
    click.echo(f"Set {key} = {shown}")


__all__ = ["config_group"]
