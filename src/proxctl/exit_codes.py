"""Process exit codes for proxctl commands."""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
CONFIG_ERROR = 3
CONNECTION_ERROR = 4
NOT_FOUND = 5
PERMISSION_DENIED = 6
INTERRUPTED = 130

__all__ = [
    "CONFIG_ERROR",
    "CONNECTION_ERROR",
    "GENERAL_ERROR",
    "INTERRUPTED",
    "NOT_FOUND",
    "PERMISSION_DENIED",
    "SUCCESS",
    "USAGE_ERROR",
]
