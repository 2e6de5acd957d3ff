"""Selector module for filtering resource collections.

Selectors use kubectl-style label syntax, combined with AND semantics:
- key=value        equality (value may be empty)
- key!=value       inequality
- key=~pattern     wildcard match, ``*`` is the only metacharacter
- key in (a,b,c)   membership

Clauses are comma-separated; commas inside parentheses belong to the
``in`` list. Field names are checked when a selector is applied, since
each resource kind supports its own field vocabulary.

Example:
    >>> selector = VmSelector.parse("status=running,tags=prod")
    >>> running_prod = selector.apply(vms)
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, TypeVar

from proxctl.models import Resource, ResourceKind

logger = logging.getLogger(__name__)

S = TypeVar("S", bound="Selector")

WILDCARD = "*"

_IN_CLAUSE = re.compile(r"\A(\w+)\s+in\s+\(([^)]+)\)\Z", re.IGNORECASE)
_OP_CLAUSE = re.compile(r"\A(\w+)\s*(!=|=~|=)(.*)\Z", re.DOTALL)


class SelectorSyntaxError(ValueError):
    """Raised when a selector clause cannot be parsed."""

    pass


class UnknownFieldError(ValueError):
    """Raised when a selector references a field the resource kind lacks."""

    pass


class Operator(Enum):
    EQ = "="
    NEQ = "!="
    MATCH = "=~"
    IN = "in"


@dataclass(frozen=True)
class Condition:
    """One parsed clause: field, operator and expected value.

    ``value`` is a string for EQ/NEQ/MATCH and a tuple of strings for IN.
    """

    field: str
    operator: Operator
    value: str | tuple[str, ...]

    def __str__(self) -> str:
        if self.operator is Operator.IN:
            return f"{self.field} in ({','.join(self.value)})"
        return f"{self.field}{self.operator.value}{self.value}"


def wildcard_match(value: str, pattern: str) -> bool:
    """Match ``value`` against a pattern whose only metacharacter is ``*``.

    Each ``*`` stands for any run of characters, so the pattern reduces to
    prefix, suffix and ordered infix tests.

    Example:
        >>> wildcard_match("web-prod-01", "web-*-01")
        True
    """
    if WILDCARD not in pattern:
        return value == pattern

    parts = pattern.split(WILDCARD)
    head, tail, middle = parts[0], parts[-1], parts[1:-1]

    if not value.startswith(head):
        return False
    if not value[len(head) :].endswith(tail):
        return False

    position = len(head)
    end = len(value) - len(tail)
    for part in middle:
        if not part:
            continue
        found = value.find(part, position, end)
        if found < 0:
            return False
        position = found + len(part)
    return True


def _split_clauses(text: str) -> list[str]:
    """Split on commas that are not inside parentheses."""
    clauses = []
    current: list[str] = []
    depth = 0

    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            clauses.append("".join(current))
            current = []
            continue
        current.append(char)

    if current:
        clauses.append("".join(current))
    return clauses


def parse_condition(clause: str) -> Condition:
    """Parse a single clause such as ``status=running``.

    Raises:
        SelectorSyntaxError: If the clause matches none of the operator forms
    """
    clause = clause.strip()

    match = _IN_CLAUSE.match(clause)
    if match:
        values = tuple(v.strip() for v in match.group(2).split(","))
        return Condition(field=match.group(1), operator=Operator.IN, value=values)

    match = _OP_CLAUSE.match(clause)
    if match:
        return Condition(
            field=match.group(1),
            operator=Operator(match.group(2)),
            value=match.group(3).strip(),
        )

    raise SelectorSyntaxError(f"Invalid selector syntax: '{clause}'")


def parse_conditions(text: str | None) -> tuple[Condition, ...]:
    """Parse a comma-separated selector string into conditions."""
    if not text:
        return ()
    return tuple(parse_condition(clause) for clause in _split_clauses(text))


def compare_value(actual: Any, operator: Operator, expected: str | tuple[str, ...]) -> bool:
    """Compare a scalar field value. Absent values compare as empty strings."""
    actual_str = "" if actual is None else str(actual)

    if operator is Operator.EQ:
        return actual_str == expected
    if operator is Operator.NEQ:
        return actual_str != expected
    if operator is Operator.MATCH:
        return wildcard_match(actual_str, str(expected))
    if operator is Operator.IN:
        return actual_str in expected
    return False


def compare_set(actual: Iterable[str] | None, operator: Operator, expected: str | tuple[str, ...]) -> bool:
    """Compare a set-valued field: does any element satisfy the test.

    An absent or empty set never matches EQ/MATCH/IN and always matches NEQ.
    """
    elements = set(actual or ())

    if operator is Operator.EQ:
        return expected in elements
    if operator is Operator.NEQ:
        return expected not in elements
    if operator is Operator.MATCH:
        return any(wildcard_match(element, str(expected)) for element in elements)
    if operator is Operator.IN:
        return bool(elements.intersection(expected))
    return False


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


class Selector:
    """Parsed, AND-combined list of conditions.

    Subclasses declare ``SUPPORTED_FIELDS`` and ``EXTRACTORS`` (field name to
    value extractor); fields listed in ``SET_FIELDS`` are compared as sets.
    The base class supports no fields, so only an empty base selector can
    be applied.
    """

    SUPPORTED_FIELDS: ClassVar[tuple[str, ...]] = ()
    SET_FIELDS: ClassVar[frozenset[str]] = frozenset()
    EXTRACTORS: ClassVar[dict[str, Callable[[Resource], Any]]] = {}

    def __init__(self, conditions: Iterable[Condition] = ()):
        self._conditions = tuple(conditions)

    @classmethod
    def parse(cls: type[S], text: str | None) -> S:
        """Parse one selector string."""
        return cls(parse_conditions(text))

    @classmethod
    def parse_all(cls: type[S], texts: Iterable[str] | None) -> S:
        """Parse several selector strings (one per ``-l`` flag) into one selector."""
        conditions: list[Condition] = []
        for text in texts or ():
            conditions.extend(parse_conditions(text))
        return cls(conditions)

    @property
    def conditions(self) -> tuple[Condition, ...]:
        return self._conditions

    def empty(self) -> bool:
        return not self._conditions

    def validate_fields(self) -> None:
        """Reject conditions naming fields this resource kind does not have.

        Raises:
            UnknownFieldError: Naming the first unsupported field
        """
        for condition in self._conditions:
            if condition.field not in self.SUPPORTED_FIELDS:
                supported = ", ".join(self.SUPPORTED_FIELDS) or "none"
                raise UnknownFieldError(
                    f"Unknown field: {condition.field}. Supported: {supported}"
                )

    def apply(self, resources: list[Resource]) -> list[Resource]:
        """Return the resources matching every condition, in input order."""
        if self.empty():
            return list(resources)

        self.validate_fields()
        selected = [r for r in resources if self.matches(r)]
        logger.debug(f"Selector '{self}' matched {len(selected)}/{len(resources)} resources")
        return selected

    def matches(self, resource: Resource) -> bool:
        return all(self.match_condition(resource, c) for c in self._conditions)

    def match_condition(self, resource: Resource, condition: Condition) -> bool:
        actual = self.extract_value(resource, condition.field)
        if condition.field in self.SET_FIELDS:
            return compare_set(actual, condition.operator, condition.value)
        return compare_value(actual, condition.operator, condition.value)

    def extract_value(self, resource: Resource, field: str) -> Any:
        extractor = self.EXTRACTORS.get(field)
        if extractor is None:
            supported = ", ".join(self.SUPPORTED_FIELDS) or "none"
            raise UnknownFieldError(f"Unknown field: {field}. Supported: {supported}")
        return extractor(resource)

    def __str__(self) -> str:
        return ",".join(str(c) for c in self._conditions)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._conditions)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Selector):
            return NotImplemented
        return type(self) is type(other) and self._conditions == other._conditions

    def __hash__(self) -> int:
        return hash((type(self), self._conditions))


_COMMON_EXTRACTORS: dict[str, Callable[[Resource], Any]] = {
    "status": lambda r: r.status,
    "tags": lambda r: r.tags,
    "pool": lambda r: r.pool,
    "name": lambda r: r.name,
}


class VmSelector(Selector):
    """Selector for virtual machines: status, tags, pool, name, template."""

    SUPPORTED_FIELDS = ("status", "tags", "pool", "name", "template")
    SET_FIELDS = frozenset({"tags"})
    EXTRACTORS = {**_COMMON_EXTRACTORS, "template": lambda r: _yes_no(r.is_template)}


class ContainerSelector(Selector):
    """Selector for containers: status, tags, pool, name."""

    SUPPORTED_FIELDS = ("status", "tags", "pool", "name")
    SET_FIELDS = frozenset({"tags"})
    EXTRACTORS = dict(_COMMON_EXTRACTORS)


SELECTOR_CLASSES: dict[ResourceKind, type[Selector]] = {
    ResourceKind.VM: VmSelector,
    ResourceKind.CONTAINER: ContainerSelector,
}


def selector_for(kind: ResourceKind, texts: Iterable[str] | None) -> Selector:
    """Parse selector strings with the field vocabulary of ``kind``."""
    return SELECTOR_CLASSES[kind].parse_all(texts)


__all__ = [
    "Condition",
    "ContainerSelector",
    "Operator",
    "Selector",
    "SelectorSyntaxError",
    "UnknownFieldError",
    "VmSelector",
    "compare_set",
    "compare_value",
    "parse_condition",
    "parse_conditions",
    "selector_for",
    "wildcard_match",
]
