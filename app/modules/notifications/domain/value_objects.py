"""Value objects for recipients and message content.

Parsing never raises. ``Recipient.parse`` and ``NotificationContent.parse``
return a ``ParseResult`` that is either valid (carrying the value) or
invalid (keeping the raw string and the list of errors), so callers and
tests can inspect exactly why a field was rejected.
"""

import re
from dataclasses import dataclass
from typing import Generic, Optional, Tuple, TypeVar

from pydantic import EmailStr, HttpUrl, TypeAdapter, ValidationError

from modules.notifications.domain.enums import ChannelType

T = TypeVar("T")

MAX_RECIPIENT_LENGTH = 255
MIN_CONTENT_LENGTH = 1
MAX_CONTENT_LENGTH = 50000
MIN_PUSH_TOKEN_LENGTH = 8
MAX_PUSH_TOKEN_LENGTH = 4096

_FORBIDDEN_RECIPIENT_CHARS = re.compile(r"[<>'\"{};|&\x00]")
_PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
_PHONE_SEPARATORS = re.compile(r"[\s\-()]")
_PUSH_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9+/=]{8,}$")
_SUSPICIOUS_CONTENT = (
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
)

_email_adapter = TypeAdapter(EmailStr)
_url_adapter = TypeAdapter(HttpUrl)


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Either a validated value or the raw input plus its errors."""

    raw: str
    value: Optional[T] = None
    errors: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.value is not None and not self.errors

    @classmethod
    def valid(cls, raw: str, value: T) -> "ParseResult[T]":
        return cls(raw=raw, value=value)

    @classmethod
    def invalid(cls, raw: str, *errors: str) -> "ParseResult[T]":
        return cls(raw=raw, errors=tuple(errors))


@dataclass(frozen=True)
class Recipient:
    """A recipient address normalized for its channel."""

    channel: ChannelType
    address: str

    @classmethod
    def parse(cls, channel: ChannelType, raw: Optional[str]) -> ParseResult["Recipient"]:
        raw = raw if isinstance(raw, str) else ""
        candidate = raw.strip()
        if not candidate:
            return ParseResult.invalid(raw, "Recipient is required")
        if len(candidate) > MAX_RECIPIENT_LENGTH:
            return ParseResult.invalid(
                raw, f"Recipient must be at most {MAX_RECIPIENT_LENGTH} characters"
            )
        if _FORBIDDEN_RECIPIENT_CHARS.search(candidate):
            return ParseResult.invalid(raw, "Recipient contains forbidden characters")

        channel = ChannelType(channel)
        if channel == ChannelType.EMAIL:
            return cls._parse_email(raw, candidate)
        if channel == ChannelType.SMS:
            return cls._parse_phone(raw, candidate)
        if channel == ChannelType.WEBHOOK:
            return cls._parse_webhook(raw, candidate)
        return cls._parse_push_token(raw, candidate)

    @classmethod
    def _parse_email(cls, raw: str, candidate: str) -> ParseResult["Recipient"]:
        try:
            address = _email_adapter.validate_python(candidate)
        except ValidationError:
            return ParseResult.invalid(raw, "Invalid email address")
        return ParseResult.valid(raw, cls(ChannelType.EMAIL, str(address)))

    @classmethod
    def _parse_phone(cls, raw: str, candidate: str) -> ParseResult["Recipient"]:
        digits = _PHONE_SEPARATORS.sub("", candidate)
        if not _PHONE_PATTERN.match(digits):
            return ParseResult.invalid(raw, "Invalid phone number")
        return ParseResult.valid(raw, cls(ChannelType.SMS, digits))

    @classmethod
    def _parse_webhook(cls, raw: str, candidate: str) -> ParseResult["Recipient"]:
        try:
            url = _url_adapter.validate_python(candidate)
        except ValidationError:
            return ParseResult.invalid(raw, "Invalid webhook URL")
        if url.scheme != "https":
            return ParseResult.invalid(raw, "Webhook URL must use https")
        return ParseResult.valid(raw, cls(ChannelType.WEBHOOK, candidate))

    @classmethod
    def _parse_push_token(cls, raw: str, candidate: str) -> ParseResult["Recipient"]:
        if not MIN_PUSH_TOKEN_LENGTH <= len(candidate) <= MAX_PUSH_TOKEN_LENGTH:
            return ParseResult.invalid(
                raw,
                f"Device token must be between {MIN_PUSH_TOKEN_LENGTH} and "
                f"{MAX_PUSH_TOKEN_LENGTH} characters",
            )
        if not _PUSH_TOKEN_PATTERN.match(candidate):
            return ParseResult.invalid(raw, "Invalid device token")
        return ParseResult.valid(raw, cls(ChannelType.PUSH, candidate))

    @property
    def masked(self) -> str:
        """Address safe to print in logs."""
        if self.channel == ChannelType.EMAIL:
            local, _, domain = self.address.partition("@")
            return f"{local[:1]}***@{domain}"
        if self.channel == ChannelType.WEBHOOK:
            return self.address.split("?", 1)[0]
        return f"***{self.address[-4:]}"

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class NotificationContent:
    """Message body that passed length and script-injection checks."""

    body: str

    @classmethod
    def parse(cls, raw: Optional[str]) -> ParseResult["NotificationContent"]:
        raw = raw if isinstance(raw, str) else ""
        errors = []
        if len(raw.strip()) < MIN_CONTENT_LENGTH:
            errors.append("Content is required")
        elif len(raw) > MAX_CONTENT_LENGTH:
            errors.append(f"Content must be at most {MAX_CONTENT_LENGTH} characters")
        if any(pattern.search(raw) for pattern in _SUSPICIOUS_CONTENT):
            errors.append("Content contains potentially unsafe markup")
        if errors:
            return ParseResult.invalid(raw, *errors)
        return ParseResult.valid(raw, cls(raw))

    @property
    def length(self) -> int:
        return len(self.body)

    def __str__(self) -> str:
        return self.body
