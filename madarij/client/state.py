# madarij/client/state.py
"""
Caché local de notificaciones del cliente.

`NotificationStateStore` es el único que escribe en `NotificationState`.
Cada petición lógica (fetch, unread_count, mark_one, mark_all) pasa por
idle -> pending -> fulfilled | rejected, y cada transición se aplica entera
dentro del event loop antes de avisar a los suscriptores.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from madarij.client.api import NotificationRequestError, NotificationsAPI
from madarij.models.notification import Notification

logger = logging.getLogger(__name__)

IDLE = "idle"
PENDING = "pending"
FULFILLED = "fulfilled"
REJECTED = "rejected"

REQUESTS = ("fetch", "unread_count", "mark_one", "mark_all")


def _idle_requests() -> Dict[str, str]:
    return {name: IDLE for name in REQUESTS}


@dataclass
class NotificationState:
    notifications: List[Notification] = field(default_factory=list)
    unread_count: int = 0
    is_loading: bool = False
    error: Optional[str] = None
    requests: Dict[str, str] = field(default_factory=_idle_requests)


class NotificationStateStore:

    def __init__(self, api: NotificationsAPI):
        self.api = api
        self.state = NotificationState()
        self._subscribers: List[Callable[[NotificationState], None]] = []

    def subscribe(self, callback: Callable[[NotificationState], None]) -> Callable[[], None]:
        """Devuelve la función para desuscribirse."""
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    def _notify(self):
        for callback in list(self._subscribers):
            callback(self.state)

    def _transition(self, request: str, status: str, reducer: Optional[Callable[..., None]] = None, *args):
        self.state.requests[request] = status
        if reducer:
            reducer(*args)
        self._notify()

    # ===== reducers =====

    def _fetch_pending(self):
        self.state.is_loading = True
        self.state.error = None

    def _fetch_fulfilled(self, notifications: List[Notification]):
        self.state.is_loading = False
        # reemplazo completo, la última respuesta gana
        self.state.notifications = list(notifications)
        self.state.unread_count = sum(1 for n in notifications if not n.isRead)
        self.state.error = None

    def _fetch_rejected(self, message: str):
        self.state.is_loading = False
        self.state.error = message

    def _fetch_cancelled(self):
        self.state.is_loading = False

    def _unread_count_fulfilled(self, count: int):
        self.state.unread_count = count

    def _mark_one_fulfilled(self, notification_id: str):
        for i, n in enumerate(self.state.notifications):
            if n.id == notification_id:
                if not n.isRead:
                    self.state.notifications[i] = n.model_copy(update={"isRead": True})
                    self.state.unread_count = max(0, self.state.unread_count - 1)
                return

    def _mark_all_fulfilled(self):
        self.state.notifications = [
            n if n.isRead else n.model_copy(update={"isRead": True})
            for n in self.state.notifications
        ]
        self.state.unread_count = 0

    def _set_error(self, message: str):
        self.state.error = message

    def clear_error(self):
        self.state.error = None
        self._notify()

    # ===== peticiones =====

    async def _run(self, request: str, call, on_fulfilled, on_rejected=None, on_pending=None, on_cancelled=None):
        self._transition(request, PENDING, on_pending)
        try:
            result = await call()
        except NotificationRequestError as e:
            logger.info("Petición %s rechazada: %s", request, e.message)
            self._transition(request, REJECTED, on_rejected or self._set_error, e.message)
            return False
        except asyncio.CancelledError:
            self._transition(request, IDLE, on_cancelled)
            raise
        self._transition(request, FULFILLED, on_fulfilled, result)
        return True

    async def fetch_notifications(self) -> bool:
        return await self._run(
            "fetch",
            self.api.fetch_notifications,
            self._fetch_fulfilled,
            on_rejected=self._fetch_rejected,
            on_pending=self._fetch_pending,
            on_cancelled=self._fetch_cancelled,
        )

    async def fetch_unread_count(self) -> bool:
        return await self._run("unread_count", self.api.fetch_unread_count, self._unread_count_fulfilled)

    async def mark_as_read(self, notification_id: str) -> bool:
        return await self._run(
            "mark_one",
            lambda: self.api.mark_as_read(notification_id),
            self._mark_one_fulfilled,
        )

    async def mark_all_as_read(self) -> bool:
        return await self._run(
            "mark_all",
            self.api.mark_all_as_read,
            lambda _: self._mark_all_fulfilled(),
        )
