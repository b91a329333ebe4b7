# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationSink(Protocol):
    """Interface for delivering workflow notifications (email, push, sockets)."""

    async def notify(self, user_ids: list[uuid.UUID], event_type: str, payload: dict[str, Any]) -> None:
        """Deliver an event to the given users."""
        ...


@dataclass
class SentNotification:
    user_ids: list[uuid.UUID]
    event_type: str
    payload: dict[str, Any]


class InMemoryNotificationSink:
    """Records notifications instead of delivering them."""

    def __init__(self) -> None:
        self.sent: list[SentNotification] = []

    async def notify(self, user_ids: list[uuid.UUID], event_type: str, payload: dict[str, Any]) -> None:
        self.sent.append(SentNotification(user_ids=list(user_ids), event_type=event_type, payload=payload))


_notification_sink: NotificationSink = InMemoryNotificationSink()


def get_notification_sink() -> NotificationSink:
    """Return the active notification sink."""
    return _notification_sink


def set_notification_sink(sink: NotificationSink) -> None:
    """Override the sink (for testing or production wiring)."""
    global _notification_sink
    _notification_sink = sink


async def send_notification(user_ids: list[uuid.UUID], event_type: str, payload: dict[str, Any]) -> bool:
    """Deliver a notification, logging instead of raising on failure.

    Returns True when the sink accepted the event.
    """
    recipients = [u for u in user_ids if u is not None]
    if not recipients:
        return True
    try:
        await get_notification_sink().notify(recipients, event_type, payload)
    except Exception:
        logger.exception("Failed to send %s notification to %s", event_type, recipients)
        return False
    return True
