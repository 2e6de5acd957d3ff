"""Retry logic with exponential backoff for transient API failures.

This module wraps a single remote call with bounded retry. Reads are
idempotent and always eligible; writes are only retried when the handler
was built with ``retry_writes=True``, since most mutating cluster calls
cannot be proven idempotent at the transport layer.

Design Philosophy:
- Ruthless simplicity: one handler, one ``with_retry`` entry point
- Explicit allow-list: only known transient failures are retried
- Deterministic: no jitter, delays follow ``base * 2^(attempt-1)`` capped
- Stateless: configuration is fixed at construction, safe to share

Security:
- Retry warnings carry the exception class name only, never its message
  (request URLs and bodies may embed API tokens)

Usage:
    handler = RetryHandler(max_retries=3, base_delay=1.0, max_delay=30.0)
    data = handler.with_retry(lambda: session.get(url), method="GET")
"""

import logging
import socket
import time
from collections.abc import Callable
from typing import TypeVar

import requests

logger = logging.getLogger(__name__)

T = TypeVar("T")

READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def _get_default_retryable_exceptions() -> tuple[type[BaseException], ...]:
    """Get tuple of default retryable exception types.

    Returns:
        Tuple of exception types that should trigger retries

    Note:
        API error classes are imported lazily since the transport module
        itself depends on this one.
    """
    from proxctl.api_client import TransientApiError

    return (
        TransientApiError,
        requests.ConnectTimeout,
        requests.ReadTimeout,
        requests.ConnectionError,
        requests.Timeout,
        TimeoutError,
        ConnectionRefusedError,
        ConnectionResetError,
        socket.gaierror,
    )


def _get_default_non_retryable_exceptions() -> tuple[type[BaseException], ...]:
    """Subclasses of allow-listed types that must still propagate at once.

    TLS failures arrive as a ConnectionError subclass but never heal on retry.
    """
    from proxctl.repositories import TaskTimeoutError

    return (TaskTimeoutError, requests.exceptions.SSLError)


def is_read_method(method: str) -> bool:
    return method.upper() in READ_METHODS


class RetryHandler:
    """Bounded exponential-backoff retry around single remote calls.

    Attributes:
        max_retries: Retries allowed after the first attempt
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay, in seconds
        retry_writes: Whether non-read methods are retried at all
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        retry_writes: bool = False,
        logger: logging.Logger | None = None,
        retryable_exceptions: tuple[type[BaseException], ...] | None = None,
        non_retryable_exceptions: tuple[type[BaseException], ...] | None = None,
    ):
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        if base_delay < 0 or max_delay < 0:
            raise ValueError("Retry delays must be non-negative")

        self._max_retries = max_retries
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._retry_writes = retry_writes
        self._logger = logger
        self._retryable = (
            retryable_exceptions
            if retryable_exceptions is not None
            else _get_default_retryable_exceptions()
        )
        self._non_retryable = (
            non_retryable_exceptions
            if non_retryable_exceptions is not None
            else _get_default_non_retryable_exceptions()
        )

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def base_delay(self) -> float:
        return self._base_delay

    @property
    def max_delay(self) -> float:
        return self._max_delay

    @property
    def retry_writes(self) -> bool:
        return self._retry_writes

    def with_retry(self, operation: Callable[[], T], method: str = "GET") -> T:
        """Run ``operation``, retrying transient failures.

        Args:
            operation: Zero-argument callable performing one remote call
            method: HTTP method name; GET/HEAD/OPTIONS count as reads

        Returns:
            Whatever ``operation`` returns

        Raises:
            The last exception raised by ``operation`` once it is not
            retryable or retries are exhausted
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return operation()
            except Exception as e:
                if not self.should_retry(e, method, attempt):
                    raise

                delay = self.calculate_delay(attempt)
                self._log_retry(attempt, delay, e)
                time.sleep(delay)

    def is_retryable(self, error: BaseException) -> bool:
        if isinstance(error, self._non_retryable):
            return False
        return isinstance(error, self._retryable)

    def should_retry(self, error: BaseException, method: str, attempt: int) -> bool:
        """Decide whether a failed ``attempt`` (1-based) gets another try."""
        if not self.is_retryable(error):
            return False
        if attempt > self._max_retries:
            return False
        if is_read_method(method):
            return True
        return self._retry_writes

    def calculate_delay(self, attempt: int) -> float:
        """Backoff delay after the given 1-based attempt."""
        return min(self._base_delay * (2 ** (attempt - 1)), self._max_delay)

    def _log_retry(self, attempt: int, delay: float, error: BaseException) -> None:
        target = self._logger or logger
        target.warning(
            f"Retry {attempt}/{self._max_retries} after {delay}s: {type(error).__name__}"
        )

    def __repr__(self) -> str:
        return (
            f"RetryHandler(max_retries={self._max_retries}, base_delay={self._base_delay}, "
            f"max_delay={self._max_delay}, retry_writes={self._retry_writes})"
        )


__all__ = ["READ_METHODS", "RetryHandler", "is_read_method"]
