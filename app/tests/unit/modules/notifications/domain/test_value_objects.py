"""Unit tests for Recipient and NotificationContent parsing."""

import pytest

from modules.notifications.domain import ChannelType
from modules.notifications.domain.value_objects import NotificationContent, Recipient


@pytest.mark.unit
class TestRecipientParse:
    @pytest.mark.parametrize(
        "channel,raw",
        [
            (ChannelType.EMAIL, "user@example.com"),
            (ChannelType.SMS, "+15551234567"),
            (ChannelType.PUSH, "dGVzdC1kZXZpY2UtdG9rZW4="),
            (ChannelType.WEBHOOK, "https://hooks.example.com/notify"),
        ],
    )
    def test_valid_recipients(self, channel, raw):
        result = Recipient.parse(channel, raw)

        assert result.is_valid
        assert result.value.channel == channel

    def test_phone_separators_are_stripped(self):
        result = Recipient.parse(ChannelType.SMS, "+1 (555) 123-4567")

        assert result.value.address == "+15551234567"

    @pytest.mark.parametrize(
        "channel,raw,message",
        [
            (ChannelType.EMAIL, "", "Recipient is required"),
            (ChannelType.EMAIL, None, "Recipient is required"),
            (ChannelType.EMAIL, "not-an-email", "Invalid email address"),
            (ChannelType.EMAIL, "a<b>@example.com", "Recipient contains forbidden characters"),
            (ChannelType.SMS, "1", "Invalid phone number"),
            (ChannelType.SMS, "+0123456789", "Invalid phone number"),
            (ChannelType.WEBHOOK, "http://hooks.example.com", "Webhook URL must use https"),
            (ChannelType.WEBHOOK, "not a url", "Invalid webhook URL"),
            (ChannelType.PUSH, "short", "Device token must be between 8 and 4096 characters"),
            (ChannelType.PUSH, "token-with-dashes", "Invalid device token"),
        ],
    )
    def test_invalid_recipients(self, channel, raw, message):
        result = Recipient.parse(channel, raw)

        assert not result.is_valid
        assert result.value is None
        assert result.errors == (message,)

    def test_too_long(self):
        result = Recipient.parse(ChannelType.EMAIL, "a" * 250 + "@example.com")

        assert result.errors == ("Recipient must be at most 255 characters",)

    def test_invalid_keeps_raw_input(self):
        assert Recipient.parse(ChannelType.SMS, "abc").raw == "abc"

    @pytest.mark.parametrize(
        "channel,raw,masked",
        [
            (ChannelType.EMAIL, "user@example.com", "u***@example.com"),
            (ChannelType.SMS, "+15551234567", "***4567"),
            (ChannelType.WEBHOOK, "https://hooks.example.com/n?token=abc", "https://hooks.example.com/n"),
        ],
    )
    def test_masked(self, channel, raw, masked):
        assert Recipient.parse(channel, raw).value.masked == masked


@pytest.mark.unit
class TestNotificationContentParse:
    def test_valid(self):
        result = NotificationContent.parse("Hello there")

        assert result.is_valid
        assert result.value.length == 11

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_required(self, raw):
        assert NotificationContent.parse(raw).errors == ("Content is required",)

    def test_too_long(self):
        result = NotificationContent.parse("x" * 50001)

        assert result.errors == ("Content must be at most 50000 characters",)

    @pytest.mark.parametrize(
        "raw",
        [
            "<script>alert(1)</script>",
            "click javascript:void(0)",
            '<img onerror="x">',
            "data:text/html;base64,xyz",
        ],
    )
    def test_unsafe_markup(self, raw):
        assert NotificationContent.parse(raw).errors == (
            "Content contains potentially unsafe markup",
        )
