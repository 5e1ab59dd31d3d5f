# madarij/client/api.py
import logging
from typing import Callable, List, Optional

import httpx
from pydantic import ValidationError

from madarij.config import API_BASE_URL
from madarij.models.notification import Notification

logger = logging.getLogger(__name__)

FETCH_FAILED = "فشل تحميل الإشعارات"
COUNT_FAILED = "فشل تحميل عدد الإشعارات"
MARK_ONE_FAILED = "فشل تحديث حالة الإشعار"
MARK_ALL_FAILED = "فشل تحديث حالة الإشعارات"


class NotificationRequestError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotificationsAPI:
    """
    Cliente HTTP de /api/notifications.
    `token_provider` devuelve el bearer actual (lo da el subsistema de auth).
    """

    def __init__(
        self,
        token_provider: Callable[[], Optional[str]],
        base_url: str = API_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.token_provider = token_provider
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self):
        await self.client.aclose()

    def _headers(self) -> dict:
        token = self.token_provider()
        # sin token no se manda el header, el servidor responde 401
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(self, method: str, url: str, fallback: str) -> dict:
        try:
            response = await self.client.request(method, url, headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning("%s %s falló: %s", method, url, e)
            raise NotificationRequestError(fallback)

        if response.is_error:
            raise NotificationRequestError(
                _server_message(response) or fallback,
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            logger.warning("%s %s devolvió un cuerpo que no es JSON", method, url)
            raise NotificationRequestError(fallback, status_code=response.status_code)
        if not isinstance(body, dict):
            raise NotificationRequestError(fallback, status_code=response.status_code)
        return body

    async def fetch_notifications(self) -> List[Notification]:
        data = await self._request("GET", "/api/notifications", FETCH_FAILED)
        try:
            return [Notification.model_validate(n) for n in data.get("notifications") or []]
        except (ValidationError, TypeError) as e:
            logger.warning("Lista de notificaciones con forma inesperada: %s", e)
            raise NotificationRequestError(FETCH_FAILED)

    async def fetch_unread_count(self) -> int:
        data = await self._request("GET", "/api/notifications/unread-count", COUNT_FAILED)
        try:
            return int(data.get("count", 0))
        except (TypeError, ValueError):
            raise NotificationRequestError(COUNT_FAILED)

    async def mark_as_read(self, notification_id: str) -> str:
        await self._request("PUT", f"/api/notifications/{notification_id}/read", MARK_ONE_FAILED)
        return notification_id

    async def mark_all_as_read(self) -> bool:
        await self._request("PUT", "/api/notifications/read-all", MARK_ALL_FAILED)
        return True


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message")
    return None
