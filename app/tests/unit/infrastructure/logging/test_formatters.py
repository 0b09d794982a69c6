"""Unit tests for infrastructure.logging.formatters module."""

import pytest

from infrastructure.logging.formatters import (
    SENSITIVE_PATTERNS,
    add_app_info,
    mask_recipients,
    mask_sensitive_data,
    truncate_large_values,
)


@pytest.mark.unit
class TestAddAppInfo:
    def test_adds_name_and_version(self):
        processor = add_app_info("notification-engine", "1.2.3")

        result = processor(None, "info", {"event": "test_event"})

        assert result["app_name"] == "notification-engine"
        assert result["app_version"] == "1.2.3"
        assert result["event"] == "test_event"

    def test_default_version_is_unknown(self):
        result = add_app_info("notification-engine")(None, "info", {})

        assert result["app_version"] == "unknown"


@pytest.mark.unit
class TestMaskSensitiveData:
    def test_masks_default_patterns(self):
        processor = mask_sensitive_data()

        result = processor(
            None,
            "info",
            {"event": "x", "api_key": "k", "Authorization": "Bearer t", "channel": "sms"},
        )

        assert result["api_key"] == "***REDACTED***"
        assert result["Authorization"] == "***REDACTED***"
        assert result["channel"] == "sms"

    def test_additional_patterns(self):
        processor = mask_sensitive_data(additional_patterns=frozenset({"webhook_secret"}))

        result = processor(None, "info", {"webhook_secret": "s3cr3t"})

        assert result["webhook_secret"] == "***REDACTED***"

    def test_none_values_are_kept(self):
        result = mask_sensitive_data()(None, "info", {"token": None})

        assert result["token"] is None

    def test_patterns_cover_credentials(self):
        assert "password" in SENSITIVE_PATTERNS
        assert "token" in SENSITIVE_PATTERNS


@pytest.mark.unit
class TestMaskRecipients:
    def test_masks_email_keeping_domain(self):
        result = mask_recipients()(None, "info", {"recipient": "alice@example.com"})

        assert result["recipient"] == "a***@example.com"

    def test_masks_phone_keeping_last_four(self):
        result = mask_recipients()(None, "info", {"phone": "+15551234567"})

        assert result["phone"] == "***4567"

    def test_short_values_fully_masked(self):
        result = mask_recipients()(None, "info", {"to": "abc"})

        assert result["to"] == "***"


@pytest.mark.unit
class TestTruncateLargeValues:
    def test_truncates_long_strings(self):
        result = truncate_large_values(max_length=10)(None, "info", {"content": "x" * 25})

        assert result["content"].startswith("x" * 10)
        assert "25 chars total" in result["content"]

    def test_leaves_short_and_non_string_values(self):
        result = truncate_large_values(max_length=10)(None, "info", {"a": "short", "b": 12345678901})

        assert result == {"a": "short", "b": 12345678901}
