"""Unit tests for NotificationValidator."""

import pytest

from modules.notifications.domain import ChannelType, ValidationFailedError
from modules.notifications.validation import NotificationValidator
from tests.factories.notifications import make_notification


@pytest.fixture
def validator():
    return NotificationValidator()


@pytest.mark.unit
class TestNotificationValidator:
    def test_valid_email(self, validator):
        validator.validate(ChannelType.EMAIL, "user@example.com", "Hi", "Welcome")

    def test_email_requires_subject(self, validator):
        with pytest.raises(ValidationFailedError) as exc_info:
            validator.validate(ChannelType.EMAIL, "user@example.com", "Hi", None)

        assert exc_info.value.errors == [
            {"field": "subject", "message": "Subject is required for email"}
        ]

    def test_email_subject_length(self, validator):
        errors = validator.collect_errors(ChannelType.EMAIL, "user@example.com", "Hi", "s" * 256)

        assert errors == [{"field": "subject", "message": "Subject must be at most 255 characters"}]

    def test_sms_rejects_subject(self, validator):
        with pytest.raises(ValidationFailedError) as exc_info:
            validator.validate(ChannelType.SMS, "+15551234567", "Hi", "Hello")

        assert exc_info.value.errors[0]["field"] == "subject"

    def test_sms_content_limit(self, validator):
        errors = validator.collect_errors(ChannelType.SMS, "+15551234567", "x" * 161)

        assert errors == [{"field": "content", "message": "SMS content must be at most 160 characters"}]
        assert validator.collect_errors(ChannelType.SMS, "+15551234567", "x" * 160) == []

    def test_push_content_limit(self, validator):
        token = "dGVzdC1kZXZpY2UtdG9rZW4="

        assert validator.collect_errors(ChannelType.PUSH, token, "x" * 1000) == []
        assert validator.collect_errors(ChannelType.PUSH, token, "x" * 1001)[0]["field"] == "content"

    def test_webhook_has_no_channel_rules(self, validator):
        validator.validate(ChannelType.WEBHOOK, "https://hooks.example.com/notify", "x" * 5000, "ignored")

    def test_all_errors_are_reported_together(self, validator):
        with pytest.raises(ValidationFailedError) as exc_info:
            validator.validate(ChannelType.EMAIL, "bad", "<script>", None)

        fields = [e["field"] for e in exc_info.value.errors]
        assert fields == ["recipient", "content", "subject"]
        assert "recipient: Invalid email address" in str(exc_info.value)

    def test_validate_notification(self, validator):
        with pytest.raises(ValidationFailedError):
            validator.validate_notification(make_notification(recipient="nope"))
