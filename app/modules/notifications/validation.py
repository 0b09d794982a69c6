"""Channel aware validation of notification fields."""

from typing import Dict, List, Optional

from infrastructure.logging import get_module_logger
from modules.notifications.domain.enums import ChannelType
from modules.notifications.domain.errors import ValidationFailedError
from modules.notifications.domain.models import Notification
from modules.notifications.domain.value_objects import NotificationContent, Recipient

logger = get_module_logger()

MAX_SUBJECT_LENGTH = 255
MAX_SMS_CONTENT_LENGTH = 160
MAX_PUSH_CONTENT_LENGTH = 1000


class NotificationValidator:
    """Collects every rule violation before raising.

    Raises ValidationFailedError with a list of ``{"field", "message"}``
    entries so callers can report all problems at once.
    """

    def validate(
        self,
        channel: ChannelType,
        recipient: Optional[str],
        content: Optional[str],
        subject: Optional[str] = None,
    ) -> None:
        errors = self.collect_errors(channel, recipient, content, subject)
        if errors:
            logger.info(
                "notification_validation_failed",
                channel=ChannelType(channel).value,
                fields=[e["field"] for e in errors],
            )
            raise ValidationFailedError(errors)

    def validate_notification(self, notification: Notification) -> None:
        self.validate(
            notification.channel,
            notification.recipient,
            notification.content,
            notification.subject,
        )

    def collect_errors(
        self,
        channel: ChannelType,
        recipient: Optional[str],
        content: Optional[str],
        subject: Optional[str] = None,
    ) -> List[Dict[str, str]]:
        channel = ChannelType(channel)
        errors: List[Dict[str, str]] = []

        parsed_recipient = Recipient.parse(channel, recipient)
        errors.extend({"field": "recipient", "message": m} for m in parsed_recipient.errors)

        parsed_content = NotificationContent.parse(content)
        errors.extend({"field": "content", "message": m} for m in parsed_content.errors)

        if channel == ChannelType.EMAIL:
            if not subject or not subject.strip():
                errors.append({"field": "subject", "message": "Subject is required for email"})
            elif len(subject) > MAX_SUBJECT_LENGTH:
                errors.append(
                    {
                        "field": "subject",
                        "message": f"Subject must be at most {MAX_SUBJECT_LENGTH} characters",
                    }
                )
        elif channel == ChannelType.SMS:
            if subject:
                errors.append({"field": "subject", "message": "SMS does not support a subject"})
            if parsed_content.is_valid and len(content) > MAX_SMS_CONTENT_LENGTH:
                errors.append(
                    {
                        "field": "content",
                        "message": f"SMS content must be at most {MAX_SMS_CONTENT_LENGTH} characters",
                    }
                )
        elif channel == ChannelType.PUSH:
            if parsed_content.is_valid and len(content) > MAX_PUSH_CONTENT_LENGTH:
                errors.append(
                    {
                        "field": "content",
                        "message": f"Push content must be at most {MAX_PUSH_CONTENT_LENGTH} characters",
                    }
                )
        return errors
