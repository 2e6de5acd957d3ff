"""Log sanitization module for preventing secret leakage.

Error bodies from the cluster API can echo request parameters back, and
request URLs or headers may carry credentials. Everything surfaced to the
user or a log passes through here first. Redacted values include:
- API token headers (PVEAPIToken=user@realm!id=uuid)
- Ticket cookies and CSRF prevention tokens
- Token secrets, passwords, generic secrets and credentials
- Authorization headers

Design Philosophy:
- Security first: err on side of over-redaction
- Pattern-based: not brittle keyword matching
- Fail-safe: if in doubt, mask it
"""

import re
from re import Pattern
from typing import Any


class LogSanitizer:
    """Sanitize sensitive data from logs and error messages.

    All methods are classmethods and can be called without instantiation.
    """

    REDACTED = "[REDACTED]"

    # Order matters: more specific patterns come first
    SECRET_PATTERNS: dict[str, Pattern] = {
        "api_token_header": re.compile(r"(PVEAPIToken\s*=\s*)([^\s\"',]+)", re.IGNORECASE),
        "auth_cookie": re.compile(r"(PVEAuthCookie\s*=\s*)([^\s\"';,]+)", re.IGNORECASE),
        "csrf_token": re.compile(
            r"(CSRFPreventionToken[\"']?\s*[:=]\s*[\"']?)([^\s\"',]+)", re.IGNORECASE
        ),
        "authorization_header": re.compile(
            r"(Authorization[\"']?\s*[:=]\s*[\"']?(?:Bearer\s+)?)(?!PVEAPIToken)([^\s\"',]+)",
            re.IGNORECASE,
        ),
        "password": re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)', re.IGNORECASE),
        "secret_assignment": re.compile(
            r'(secret["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)', re.IGNORECASE
        ),
        # Token in general (but not "token" as a word)
        "token_assignment": re.compile(
            r'([^a-zA-Z]token["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)', re.IGNORECASE
        ),
        "credential": re.compile(
            r'(credential["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)', re.IGNORECASE
        ),
    }

    SENSITIVE_KEYS = (
        "secret",
        "password",
        "token",
        "credential",
        "authorization",
        "cookie",
    )

    @classmethod
    def sanitize(cls, message: str) -> str:
        """Sanitize message by redacting sensitive patterns.

        Args:
            message: The message to sanitize

        Returns:
            Sanitized message with secrets replaced by [REDACTED]

        Examples:
            >>> LogSanitizer.sanitize("Authorization: PVEAPIToken=root@pam!ci=abc-123")
            'Authorization: PVEAPIToken=[REDACTED]'
            >>> LogSanitizer.sanitize("token_secret=abc123")
            'token_secret=[REDACTED]'
        """
        if not isinstance(message, str):
            message = str(message)

        result = message
        for pattern in cls.SECRET_PATTERNS.values():
            result = pattern.sub(lambda m: m.group(1) + cls.REDACTED, result)
        return result

    @classmethod
    def is_sensitive_key(cls, key: str) -> bool:
        """Whether a config or header key names a secret value.

        ``token_id`` is an identifier, not a secret, so it stays visible.
        """
        key_lower = key.lower()
        if key_lower == "token_id":
            return False
        return any(word in key_lower for word in cls.SENSITIVE_KEYS)

    @classmethod
    def sanitize_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Sanitize dictionary values recursively.

        Examples:
            >>> LogSanitizer.sanitize_dict({"server": "pve1", "token_secret": "abc"})
            {'server': 'pve1', 'token_secret': '[REDACTED]'}
        """
        result: dict[str, Any] = {}
        for key, value in data.items():
            if cls.is_sensitive_key(key) and value not in (None, ""):
                result[key] = cls.REDACTED
            elif isinstance(value, dict):
                result[key] = cls.sanitize_dict(value)
            elif isinstance(value, str):
                result[key] = cls.sanitize(value)
            else:
                result[key] = value
        return result

    @classmethod
    def create_safe_error_message(cls, error: BaseException, context: str = "") -> str:
        """Create error message with secrets sanitized.

        Examples:
            >>> err = ValueError("Login failed: password=hunter2")
            >>> LogSanitizer.create_safe_error_message(err, "Connect")
            'Connect: Login failed: password=[REDACTED]'
        """
        sanitized_msg = cls.sanitize(str(error))
        if context:
            return f"{context}: {sanitized_msg}"
        return sanitized_msg


__all__ = ["LogSanitizer"]
