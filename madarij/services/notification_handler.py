# madarij/services/notification_handler.py
import logging
from collections import defaultdict
from typing import Optional

from madarij.models.notification import Notification, NotificationCreate, NotificationType
from madarij.models.queue_message import DomainEvent
from madarij.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

# tipo -> (título, plantilla del mensaje)
TEMPLATES = {
    NotificationType.INTERVIEW_SCHEDULED.value: (
        "موعد مقابلة جديد",
        "تم تحديد موعد مقابلة للطالب {student} بتاريخ {date}",
    ),
    NotificationType.INTERVIEW_REMINDER.value: (
        "تذكير بموعد مقابلة",
        "تذكير: مقابلة الطالب {student} بتاريخ {date}",
    ),
    NotificationType.STUDENT_ACCEPTED.value: (
        "قبول طالب",
        "تم قبول الطالب {student} في {halqa}",
    ),
    NotificationType.STUDENT_REJECTED.value: (
        "رفض طالب",
        "تم رفض طلب التحاق الطالب {student}",
    ),
}
DEFAULT_TEMPLATE = ("إشعار جديد", "لديك إشعار جديد")


def render_event(event: DomainEvent):
    """Devuelve (title, message) para el evento."""
    title, template = TEMPLATES.get(event.type, DEFAULT_TEMPLATE)
    # campos que falten en data salen como "-"
    fields = defaultdict(lambda: "-", event.data or {})
    message = template.format_map(fields)
    return event.title or title, event.message or message


def process_domain_event(msg: dict, service: NotificationService) -> Optional[Notification]:
    """
    Procesa un evento de dominio que viene de la cola.
    Estructura esperada:
      {
        "type": "interview_scheduled",
        "recipient": "<user id>",
        "data": {"student": "...", "date": "..."}
      }
    """
    event = DomainEvent.model_validate(msg)
    if not event.recipient:
        # si no hay destinatario no hay a quién notificar
        logger.warning("Evento %s sin recipient, se descarta", event.type)
        return None

    title, message = render_event(event)
    return service.create(NotificationCreate(
        type=event.type,
        title=title,
        message=message,
        recipient=event.recipient,
        data=event.data,
    ))
