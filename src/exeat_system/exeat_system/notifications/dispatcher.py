from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from ..core.enums import NotificationType, RecipientType

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    def notify(
        self,
        recipient_type: RecipientType,
        recipient_id: int | str | None,
        notification_type: NotificationType,
        payload: Mapping[str, Any],
    ) -> None:
        """Deliver one notification; may raise DeliveryFailure."""

        raise NotImplementedError


class LoggingNotificationDispatcher:
    """Writes notifications to the log only (development and dry runs)."""

    def notify(self, recipient_type, recipient_id, notification_type, payload) -> None:
        logger.info(
            "notification %s -> %s:%s %s",
            notification_type.value,
            recipient_type.value,
            recipient_id,
            dict(payload),
        )


class SafeNotifier:
    """Fire-and-forget wrapper: a failed notification never fails the caller."""

    def __init__(self, dispatcher: NotificationDispatcher):
        self._dispatcher = dispatcher

    def send(
        self,
        recipient_type: RecipientType,
        recipient_id: int | str | None,
        notification_type: NotificationType,
        payload: Mapping[str, Any],
    ) -> bool:
        try:
            self._dispatcher.notify(recipient_type, recipient_id, notification_type, payload)
        except Exception:
            logger.exception(
                "Failed to send %s notification to %s:%s (exeat_id=%s)",
                notification_type.value,
                recipient_type.value,
                recipient_id,
                payload.get("exeat_id"),
            )
            return False
        return True
