"""
proxctl Data Models

Shared dataclasses and data structures to avoid circular dependencies.

Philosophy:
- Zero dependencies on other proxctl modules
- Self-contained data definitions
- Shared types used across multiple modules
"""

from .resource_models import Resource, ResolvedEntry, ResourceKind, parse_tags
from .result_models import OperationResult, Outcome, ResultSummary
from .task_models import SUCCESS_EXIT_STATUS, TaskStatus

__all__ = [
    "OperationResult",
    "Outcome",
    "Resource",
    "ResolvedEntry",
    "ResourceKind",
    "ResultSummary",
    "SUCCESS_EXIT_STATUS",
    "TaskStatus",
    "parse_tags",
]
