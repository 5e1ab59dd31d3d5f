# madarij/services/notification_service.py
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import List

from madarij.infra.table_client import NotificationStore, get_table_client
from madarij.models.notification import Notification, NotificationCreate
from madarij.services.errors import InvalidNotificationId

logger = logging.getLogger(__name__)


def _validate_id(notification_id: str) -> str:
    try:
        return uuid.UUID(notification_id).hex
    except (ValueError, AttributeError, TypeError):
        raise InvalidNotificationId()


class NotificationService:
    """
    Lógica de notificaciones sobre el store.
    Toda operación va acotada al usuario autenticado (user_id = sub del JWT).
    """

    def __init__(self, store: NotificationStore):
        self.store = store

    def create(self, payload: NotificationCreate) -> Notification:
        row_key = uuid.uuid4().hex
        created_at = datetime.now(timezone.utc).isoformat()

        entity = {
            "PartitionKey": payload.recipient,
            "RowKey": row_key,
            "type": payload.type,
            "title": payload.title,
            "message": payload.message,
            "read": False,
            "createdAt": created_at,
        }
        # Table Storage no guarda dicts
        if payload.data:
            entity["data"] = json.dumps(payload.data, ensure_ascii=False)

        self.store.insert(entity)
        logger.info("Notificación %s (%s) creada para %s", row_key, payload.type, payload.recipient)
        return Notification.from_entity(entity)

    def list_notifications(self, user_id: str) -> List[Notification]:
        return [Notification.from_entity(e) for e in self.store.list_for_user(user_id)]

    def unread_count(self, user_id: str) -> int:
        return self.store.count_unread(user_id)

    def mark_as_read(self, user_id: str, notification_id: str) -> Notification:
        entity = self.store.mark_as_read(user_id, _validate_id(notification_id))
        return Notification.from_entity(entity)

    def mark_all_as_read(self, user_id: str) -> int:
        changed = self.store.mark_all_as_read(user_id)
        logger.info("%d notificaciones marcadas como leídas para %s", changed, user_id)
        return changed


def get_notification_service() -> NotificationService:
    """Dependencia de FastAPI (los tests la sobreescriben)."""
    return NotificationService(NotificationStore(get_table_client()))
