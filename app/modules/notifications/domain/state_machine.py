"""Notification status state machine.

Only the transitions listed in ``TRANSITIONS`` are legal. Everything else is
rejected with InvalidStateTransitionError; nothing is coerced.
"""

from typing import Dict, FrozenSet, Optional

from modules.notifications.domain.enums import NotificationStatus
from modules.notifications.domain.errors import InvalidStateTransitionError

_S = NotificationStatus

TRANSITIONS: Dict[NotificationStatus, FrozenSet[NotificationStatus]] = {
    _S.CREATED: frozenset({_S.QUEUED, _S.CANCELLED}),
    _S.QUEUED: frozenset({_S.PROCESSING, _S.CANCELLED}),
    _S.PROCESSING: frozenset({_S.SENT, _S.FAILED}),
    _S.SENT: frozenset({_S.DELIVERED}),
    _S.DELIVERED: frozenset(),
    _S.FAILED: frozenset({_S.QUEUED}),
    _S.CANCELLED: frozenset({_S.QUEUED}),
}

CANCELLABLE: FrozenSet[NotificationStatus] = frozenset({_S.CREATED, _S.QUEUED})
IMMUTABLE: FrozenSet[NotificationStatus] = frozenset({_S.SENT, _S.DELIVERED})
PENDING: FrozenSet[NotificationStatus] = frozenset({_S.CREATED, _S.QUEUED})


def allowed_transitions(current: NotificationStatus) -> FrozenSet[NotificationStatus]:
    return TRANSITIONS[current]


def can_transition(current: NotificationStatus, target: NotificationStatus) -> bool:
    return target in TRANSITIONS[current]


def assert_transition(
    current: NotificationStatus,
    target: NotificationStatus,
    notification_id: Optional[str] = None,
) -> None:
    """Raise InvalidStateTransitionError unless ``current -> target`` is legal."""
    if not can_transition(current, target):
        raise InvalidStateTransitionError(current, target, notification_id)
