# madarij/api/notifications.py
from fastapi import APIRouter, Depends, HTTPException, status

from madarij.config import dev_endpoints_enabled
from madarij.infra.servicebus_consumer import consumer_status
from madarij.models.notification import NotificationCreate
from madarij.security.jwt_utils import get_current_user
from madarij.services.notification_service import NotificationService, get_notification_service

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    user_id: str = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Notificaciones del usuario del JWT, más nuevas primero."""
    notis = service.list_notifications(user_id)
    return {"notifications": [n.to_json() for n in notis]}


@router.get("/unread-count")
def unread_count(
    user_id: str = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    return {"count": service.unread_count(user_id)}


@router.put("/read-all")
def mark_all_as_read(
    user_id: str = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    service.mark_all_as_read(user_id)
    return {"message": "تم تحديد جميع الإشعارات كمقروءة"}


@router.put("/{notification_id}/read")
def mark_as_read(
    notification_id: str,
    user_id: str = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """
    Marca una notificación como leída.
    Si es de otro usuario responde 404, igual que si no existiera.
    """
    service.mark_as_read(user_id, notification_id)
    return {"message": "تم تحديد الإشعار كمقروء"}


# =========================
# DEV-ONLY: /api/notifications/dev-send
# Crea una notificación arbitraria para pruebas.
# Si no se manda recipient, usa el del token (sub).
# =========================

class DevSendIn(NotificationCreate):
    recipient: str = ""


@router.post("/dev-send", status_code=status.HTTP_201_CREATED)
def dev_send(
    body: DevSendIn,
    user_id: str = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    if not dev_endpoints_enabled():
        raise HTTPException(status_code=404, detail="المسار غير موجود")

    payload = NotificationCreate(**{**body.model_dump(), "recipient": body.recipient or user_id})
    notification = service.create(payload)
    return {"notification": notification.to_json()}


@router.get("/debug/consumer-status")
def debug_consumer_status(user_id: str = Depends(get_current_user)):
    """
    Estado del consumer de Service Bus (solo fuera de producción):
    - startedAt, lastMessageAt, lastError
    - queue, hasConnectionString
    """
    if not dev_endpoints_enabled():
        raise HTTPException(status_code=404, detail="المسار غير موجود")
    return consumer_status()
