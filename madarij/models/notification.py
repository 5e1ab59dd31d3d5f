# madarij/models/notification.py
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationType(str, Enum):
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_REMINDER = "interview_reminder"
    STUDENT_ACCEPTED = "student_accepted"
    STUDENT_REJECTED = "student_rejected"
    GENERIC = "generic"


class Notification(BaseModel):
    """
    Forma pública de una notificación (lo que viaja en el JSON).
    `type` queda como str: el conjunto de tipos es abierto.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    type: str = NotificationType.GENERIC.value
    title: str
    message: str
    isRead: bool = False
    createdAt: datetime

    @classmethod
    def from_entity(cls, entity: dict) -> "Notification":
        """
        Entidad de Table Storage -> modelo.
        Si una entidad no trae 'read', cuenta como NO leída.
        """
        return cls(
            _id=entity["RowKey"],
            type=entity.get("type") or NotificationType.GENERIC.value,
            title=entity.get("title", ""),
            message=entity.get("message", ""),
            isRead=bool(entity.get("read", False)),
            createdAt=entity["createdAt"],
        )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class NotificationCreate(BaseModel):
    type: str = NotificationType.GENERIC.value
    title: str
    message: str
    recipient: str
    data: Optional[Dict[str, Any]] = None
