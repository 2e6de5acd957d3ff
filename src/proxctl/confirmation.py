"""Confirmation policy for lifecycle commands.

Pure helpers: whether an operation needs an explicit yes, and the text
describing what it will touch. Prompting is left to the caller's
InteractionHandler, so nothing here reads stdin or writes stdout.

Policy:
- Irreversible operations (delete, template, resize) always need a yes
- Other operations need one only when they touch more than one resource
- ``--yes`` overrides both
"""

from proxctl.models import Resource
from proxctl.strategies import StrategyRegistry

IRREVERSIBLE_OPERATIONS = frozenset({"delete", "template", "resize"})

IRREVERSIBLE_WARNINGS = {
    "template": "This action is IRREVERSIBLE. Templates cannot be converted back and cannot be started.",
    "resize": "This action is IRREVERSIBLE. Volumes cannot be shrunk via API.",
}


def is_irreversible(operation: str) -> bool:
    return operation in IRREVERSIBLE_OPERATIONS


def needs_confirmation(operation: str, count: int, assume_yes: bool = False) -> bool:
    """Decide whether the caller must ask before executing.

    Args:
        operation: Lifecycle operation name
        count: Number of resources the operation will touch
        assume_yes: The user already confirmed (``--yes``)

    Returns:
        True if an explicit affirmative is required
    """
    if assume_yes or count == 0:
        return False
    if is_irreversible(operation):
        return True
    return count > 1


def _plural(label: str) -> str:
    if label.isupper():
        return f"{label}s"
    return f"{label.lower()}s"


def _action_phrase(operation: str, subject: str) -> str:
    if operation == "template":
        return f"convert {subject} to template"
    return f"{operation} {subject}"


def irreversibility_warning(operation: str, plural_label: str = "resources", keep_disks: bool = False) -> str | None:
    """Stronger warning text for irreversible operations, None otherwise."""
    if operation == "delete":
        if keep_disks:
            return "This action is IRREVERSIBLE. Disks will be preserved."
        return f"This action is IRREVERSIBLE and will destroy the {plural_label} and their disks."
    return IRREVERSIBLE_WARNINGS.get(operation)


def impact_summary(
    operation: str,
    resources: list[Resource],
    registry: StrategyRegistry,
    keep_disks: bool = False,
) -> str:
    """Human-readable description of what ``operation`` will affect.

    Example:
        >>> print(impact_summary("stop", [vm100, vm101], registry))
        You are about to stop 2 VMs:
          - 100 (web) on pve1
          - 101 (unnamed) on pve2
    """
    labels = [registry.for_kind(r.kind).resource_label for r in resources]
    plural_label = _plural(labels[0]) if labels and len(set(labels)) == 1 else "resources"

    lines = []
    if len(resources) == 1:
        r = resources[0]
        subject = f"{labels[0]} {r.id} ({r.display_name}) on {r.node}"
        lines.append(f"You are about to {_action_phrase(operation, subject)}.")
    else:
        subject = f"{len(resources)} {plural_label}"
        lines.append(f"You are about to {_action_phrase(operation, subject)}:")
        lines.extend(f"  - {r.id} ({r.display_name}) on {r.node}" for r in resources)

    warning = irreversibility_warning(operation, plural_label, keep_disks)
    if warning:
        lines.append("")
        lines.append(warning)

    return "\n".join(lines)


__all__ = [
    "IRREVERSIBLE_OPERATIONS",
    "impact_summary",
    "irreversibility_warning",
    "is_irreversible",
    "needs_confirmation",
]
