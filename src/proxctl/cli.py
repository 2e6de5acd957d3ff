"""proxctl CLI entry point.

Commands:
    start, stop, shutdown, restart, reset, suspend, resume
    delete, template
    config view, config set
"""

import logging

import click

from proxctl import __version__
from proxctl.click_group import ProxctlGroup
from proxctl.commands import IRREVERSIBLE_COMMANDS, LIFECYCLE_COMMANDS, config_group

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging once per process."""
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger().setLevel(level)
    # urllib3 connection chatter is noise below DEBUG
    if not verbose:
        logging.getLogger("urllib3").setLevel(logging.WARNING)


@click.group(
    cls=ProxctlGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)
@click.option("--config", "config_path", help="Config file path", type=click.Path())
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool, quiet: bool) -> None:
    """proxctl - lifecycle control for Proxmox VE VMs and containers.

    \b
    LIFECYCLE COMMANDS:
        start         Start VMs or containers
        stop          Hard-stop VMs or containers
        shutdown      Graceful shutdown (detaches unless --wait)
        restart       Reboot (detaches unless --wait)
        reset         Hard-reset VMs
        suspend       Suspend VMs (detaches unless --wait)
        resume        Resume suspended VMs
        delete        Delete VMs or containers
        template      Convert VMs or containers to templates

    \b
    TARGETING:
        proxctl stop vm 100 101           By type and id
        proxctl stop 100 200              By id (type looked up)
        proxctl stop ct --all --node pve1 Every container on a node
        proxctl stop vm -l status=running,tags=prod

    \b
    SELECTORS:
        key=value  key!=value  key=~pattern*  key in (a,b)
        VM fields: status, tags, pool, name, template
        Container fields: status, tags, pool, name

    \b
    CONFIGURATION:
        Config file: ~/.proxctl/config.toml (or --config / PROXCTL_CONFIG)
        Set values:  proxctl config set server pve1.example.com

    For help on any command: proxctl <command> --help
    """
    configure_logging(verbose=verbose, quiet=quiet)

    obj = ctx.ensure_object(dict)
    if config_path:
        obj["config_path"] = config_path

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


for _command in LIFECYCLE_COMMANDS + IRREVERSIBLE_COMMANDS:
    main.add_command(_command)
main.add_command(config_group)


if __name__ == "__main__":
    main()


__all__ = ["configure_logging", "main"]
