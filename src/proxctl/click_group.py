"""Custom Click group with automatic help display on errors.

Usage errors (unknown command, bad option, missing argument) print the
error followed by the help of the most specific command, then exit with
the usage-error code.
"""

from typing import Any

import click

from proxctl import exit_codes

_USAGE_ERRORS = (
    click.exceptions.UsageError,
    click.exceptions.BadParameter,
    click.exceptions.MissingParameter,
)


def _show_usage_error(error: click.exceptions.UsageError, fallback_ctx: click.Context) -> None:
    ctx = error.ctx if getattr(error, "ctx", None) else fallback_ctx
    click.echo(f"Error: {error.format_message()}", err=True)
    click.echo("", err=True)
    click.echo(ctx.get_help(), err=True)
    ctx.exit(exit_codes.USAGE_ERROR)


class ProxctlGroup(click.Group):
    """Click group that shows contextual help on usage errors."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except _USAGE_ERRORS as e:
            _show_usage_error(e, ctx)
            return None  # Explicit return for code clarity (never reached)

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        """Override to show help when command is not found."""
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            # Parameter errors are reported by invoke() with the right context
            if isinstance(e, click.exceptions.MissingParameter | click.exceptions.BadParameter):
                raise
            _show_usage_error(e, ctx)
            return None, None, []  # Explicit return for code clarity (never reached)


# Subgroups created with @main.group() also use ProxctlGroup
ProxctlGroup.group_class = ProxctlGroup

__all__ = ["ProxctlGroup"]
