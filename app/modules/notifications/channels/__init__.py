"""Channel transports and the registry that routes to them."""

from modules.notifications.channels.base import ChannelResult, ChannelTransport
from modules.notifications.channels.registry import (
    CHANNEL_NOT_REGISTERED,
    CHANNEL_UNAVAILABLE,
    INVALID_RECIPIENT,
    TRANSPORT_ERROR,
    TRANSPORT_TIMEOUT,
    ChannelRegistry,
    ChannelStats,
    register_transports,
)

__all__ = [
    "ChannelResult",
    "ChannelTransport",
    "ChannelRegistry",
    "ChannelStats",
    "register_transports",
    "CHANNEL_NOT_REGISTERED",
    "CHANNEL_UNAVAILABLE",
    "INVALID_RECIPIENT",
    "TRANSPORT_ERROR",
    "TRANSPORT_TIMEOUT",
]
