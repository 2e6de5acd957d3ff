"""Tests for log sanitization."""

import pytest

from proxctl.log_sanitizer import LogSanitizer


class TestSanitize:
    @pytest.mark.parametrize(
        ("message", "secret"),
        [
            ("Authorization: PVEAPIToken=root@pam!ci=0b1c-2d3e", "0b1c-2d3e"),
            ("Cookie: PVEAuthCookie=PVE:root@pam:65F0::sig", "PVE:root@pam:65F0::sig"),
            ('{"CSRFPreventionToken": "65F0:abcdef"}', "65F0:abcdef"),
            ("Authorization: Bearer eyJhbGciOi", "eyJhbGciOi"),
            ("login failed password=hunter2", "hunter2"),
            ("token_secret=abc-123", "abc-123"),
            ("url?api_token=xyz789&x=1", "xyz789"),
            ("credential: s3cr3t", "s3cr3t"),
        ],
    )
    def test_redacts_secrets(self, message, secret):
        sanitized = LogSanitizer.sanitize(message)
        assert secret not in sanitized
        assert LogSanitizer.REDACTED in sanitized

    def test_token_header_redacted_once(self):
        assert (
            LogSanitizer.sanitize("Authorization: PVEAPIToken=root@pam!ci=abc")
            == "Authorization: PVEAPIToken=[REDACTED]"
        )

    def test_plain_message_unchanged(self):
        message = "API error 500: VM 100 is locked (backup)"
        assert LogSanitizer.sanitize(message) == message

    def test_non_string_input(self):
        assert LogSanitizer.sanitize(42) == "42"


class TestSanitizeDict:
    def test_redacts_sensitive_keys(self):
        data = {"server": "pve1", "token_id": "root@pam!ci", "token_secret": "abc", "nested": {"password": "x"}}

        result = LogSanitizer.sanitize_dict(data)

        assert result == {
            "server": "pve1",
            "token_id": "root@pam!ci",
            "token_secret": "[REDACTED]",
            "nested": {"password": "[REDACTED]"},
        }

    def test_empty_secret_not_marked(self):
        assert LogSanitizer.sanitize_dict({"token_secret": None}) == {"token_secret": None}


class TestCreateSafeErrorMessage:
    def test_with_context(self):
        error = ValueError("Login failed: password=hunter2")
        assert (
            LogSanitizer.create_safe_error_message(error, "Connect")
            == "Connect: Login failed: password=[REDACTED]"
        )

    def test_without_context(self):
        assert LogSanitizer.create_safe_error_message(RuntimeError("boom")) == "boom"
