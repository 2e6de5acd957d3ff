"""Command groups for proxctl CLI."""

from proxctl.commands.config import config_group
from proxctl.commands.irreversible import IRREVERSIBLE_COMMANDS
from proxctl.commands.lifecycle import LIFECYCLE_COMMANDS

__all__ = ["IRREVERSIBLE_COMMANDS", "LIFECYCLE_COMMANDS", "config_group"]
