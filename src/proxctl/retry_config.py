"""Configuration for retry logic.

Retry settings come from the config file (``retry_count``, ``retry_delay``,
``max_retry_delay``, ``retry_writes``) and may be overridden per
environment, so a flaky lab cluster can be tuned without editing config.

Design Philosophy:
- Ruthless simplicity: four values, nothing else
- Sensible defaults: works out of the box
- Environment-aware: can be overridden via env vars
"""

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from proxctl.retry_handler import RetryHandler

if TYPE_CHECKING:
    from proxctl.config_manager import ProxctlConfig

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy values, immutable once built."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    retry_writes: bool = False

    @classmethod
    def from_environment(cls, defaults: "RetryConfig | None" = None) -> "RetryConfig":
        """Load retry configuration from environment variables.

        Environment variables (all optional):
            PROXCTL_RETRY_MAX_RETRIES: Retries after the first attempt (default: 3)
            PROXCTL_RETRY_BASE_DELAY: First backoff delay in seconds (default: 1.0)
            PROXCTL_RETRY_MAX_DELAY: Backoff ceiling in seconds (default: 30.0)
            PROXCTL_RETRY_WRITES: Retry POST/DELETE calls too (default: false)

        Args:
            defaults: Values used where a variable is unset

        Returns:
            RetryConfig with values from environment or defaults
        """
        base = defaults or cls()
        return cls(
            max_retries=int(os.getenv("PROXCTL_RETRY_MAX_RETRIES", str(base.max_retries))),
            base_delay=float(os.getenv("PROXCTL_RETRY_BASE_DELAY", str(base.base_delay))),
            max_delay=float(os.getenv("PROXCTL_RETRY_MAX_DELAY", str(base.max_delay))),
            retry_writes=_env_bool("PROXCTL_RETRY_WRITES", base.retry_writes),
        )

    @classmethod
    def from_config(cls, config: "ProxctlConfig") -> "RetryConfig":
        """Build from a loaded config file, then apply environment overrides."""
        file_values = cls(
            max_retries=config.retry_count,
            base_delay=float(config.retry_delay),
            max_delay=float(config.max_retry_delay),
            retry_writes=config.retry_writes,
        )
        return cls.from_environment(defaults=file_values)

    def to_policy(self, logger: logging.Logger | None = None) -> RetryHandler:
        """Build the retry handler shared by every call on one connection."""
        return RetryHandler(
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            retry_writes=self.retry_writes,
            logger=logger,
        )


__all__ = ["RetryConfig"]
