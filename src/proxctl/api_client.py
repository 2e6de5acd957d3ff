"""Cluster management API client.

Thin ``requests`` transport for the cluster REST API. Every call goes
through a shared RetryHandler: GET counts as a read and is always
retried on transient failures, POST and DELETE are writes and are retried
only when the handler allows it.

Security:
- API token header is set once on the session and never logged
- Error text taken from response bodies is sanitized before surfacing
- TLS verification is on unless explicitly disabled in config
"""

import logging
from typing import TYPE_CHECKING, Any

import requests

from proxctl.log_sanitizer import LogSanitizer
from proxctl.retry_handler import RetryHandler

if TYPE_CHECKING:
    from proxctl.config_manager import ProxctlConfig

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8006
API_PREFIX = "/api2/json"


class ApiError(Exception):
    """Raised when the API answers with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PermissionDeniedError(ApiError):
    """401/403: the token is missing, invalid or lacks privileges."""

    pass


class TransientApiError(ApiError):
    """Server-side condition expected to clear on its own."""

    pass


class TooManyRequestsError(TransientApiError):
    pass


class ServerError(TransientApiError):
    pass


class BadGatewayError(TransientApiError):
    pass


class ServiceUnavailableError(TransientApiError):
    pass


class GatewayTimeoutError(TransientApiError):
    pass


STATUS_ERRORS: dict[int, type[ApiError]] = {
    401: PermissionDeniedError,
    403: PermissionDeniedError,
    429: TooManyRequestsError,
    500: ServerError,
    502: BadGatewayError,
    503: ServiceUnavailableError,
    504: GatewayTimeoutError,
}


def _response_detail(response: requests.Response) -> str:
    """Best-effort error text from a failed response."""
    detail = ""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        if payload.get("message"):
            detail = str(payload["message"])
        elif isinstance(payload.get("errors"), dict):
            detail = "; ".join(f"{k}: {v}" for k, v in payload["errors"].items())

    if not detail:
        detail = response.reason or "Unknown error"
    return LogSanitizer.sanitize(detail.strip())


def error_for_response(response: requests.Response) -> ApiError:
    """Build the ApiError subclass matching the response status code."""
    error_class = STATUS_ERRORS.get(response.status_code, ApiError)
    detail = _response_detail(response)
    return error_class(f"API error {response.status_code}: {detail}", response.status_code)


def build_base_url(server: str) -> str:
    """Normalize ``pve1``, ``pve1:8006`` or a full URL to the API base URL."""
    server = server.strip().rstrip("/")
    if "://" not in server:
        host = server if ":" in server else f"{server}:{DEFAULT_PORT}"
        server = f"https://{host}"
    if server.endswith(API_PREFIX):
        return server
    return f"{server}{API_PREFIX}"


class ProxmoxClient:
    """HTTP transport for the cluster API.

    Example:
        >>> client = ProxmoxClient("pve1", "root@pam!ci", "secret")
        >>> client.get("cluster/resources", params={"type": "vm"})
    """

    def __init__(
        self,
        server: str,
        token_id: str,
        token_secret: str,
        verify_ssl: bool = True,
        timeout: float = 30,
        retry_handler: RetryHandler | None = None,
        session: requests.Session | None = None,
    ):
        if not server:
            raise ValueError("server is required")

        self.base_url = build_base_url(server)
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.retry_handler = retry_handler or RetryHandler(logger=logger)

        self._session = session or requests.Session()
        self._session.headers["Authorization"] = f"PVEAPIToken={token_id}={token_secret}"
        self._session.headers["Accept"] = "application/json"

    @classmethod
    def from_config(cls, config: "ProxctlConfig", retry_handler: RetryHandler | None = None) -> "ProxmoxClient":
        """Build a client from loaded configuration.

        Raises:
            ConfigError: If server or API token is not configured
        """
        from proxctl.config_manager import ConfigError

        missing = [
            key for key in ("server", "token_id", "token_secret") if not getattr(config, key)
        ]
        if missing:
            raise ConfigError(
                f"Missing configuration: {', '.join(missing)}. "
                "Set them with 'proxctl config set KEY VALUE'."
            )

        return cls(
            server=config.server,
            token_id=config.token_id,
            token_secret=config.token_secret,
            verify_ssl=config.verify_ssl,
            timeout=config.timeout,
            retry_handler=retry_handler,
        )

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._request("GET", path, params=params)

    def post(self, path: str, data: dict[str, Any] | None = None) -> Any:
        return self._request("POST", path, data=data)

    def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._request("DELETE", path, params=params)

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug(f"{method} {path}")
        return self.retry_handler.with_retry(
            lambda: self._send(method, url, **kwargs), method=method
        )

    def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        response = self._session.request(
            method, url, timeout=self.timeout, verify=self.verify_ssl, **kwargs
        )
        if not response.ok:
            raise error_for_response(response)

        if not response.content:
            return None
        payload = response.json()
        if isinstance(payload, dict):
            return payload.get("data")
        return payload


__all__ = [
    "ApiError",
    "BadGatewayError",
    "GatewayTimeoutError",
    "PermissionDeniedError",
    "ProxmoxClient",
    "ServerError",
    "ServiceUnavailableError",
    "TooManyRequestsError",
    "TransientApiError",
    "build_base_url",
    "error_for_response",
]
