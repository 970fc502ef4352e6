from __future__ import annotations

import json
import logging

from mysql.connector import Error as MySQLError

from ..core.exceptions import DeliveryFailure
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor

logger = logging.getLogger(__name__)


class MySQLNotificationDispatcher:
    """Stores in-app notifications; external channels read from this table."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def notify(self, recipient_type, recipient_id, notification_type, payload) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO exeat_notifications(
                        exeat_request_id, recipient_type, recipient_id, notification_type, payload
                    )
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (
                        payload.get("exeat_id"),
                        recipient_type.value,
                        None if recipient_id is None else str(recipient_id),
                        notification_type.value,
                        json.dumps(dict(payload), default=str),
                    ),
                )
        except MySQLError as exc:
            raise DeliveryFailure(f"Could not store {notification_type.value} notification") from exc
        logger.debug("Stored %s notification for %s:%s", notification_type.value, recipient_type.value, recipient_id)
