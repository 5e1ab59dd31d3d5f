# madarij/client/bell.py
"""
Campana de notificaciones: presentación pura sobre NotificationStateStore.
Los textos van en árabe tal cual (RTL), sin transliterar.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from madarij.client.poller import NotificationPoller
from madarij.client.state import NotificationStateStore
from madarij.config import NOTIFICATIONS_DISPLAY_LIMIT
from madarij.models.notification import Notification, NotificationType

TITLE = "الإشعارات"
MARK_ALL_LABEL = "تحديد الكل كمقروء"
VIEW_ALL_LABEL = "عرض كل الإشعارات"
EMPTY_TEXT = "لا توجد إشعارات"
LOADING_TEXT = "جاري التحميل..."

ICONS = {
    NotificationType.INTERVIEW_SCHEDULED.value: "calendar",
    NotificationType.INTERVIEW_REMINDER.value: "calendar",
    NotificationType.STUDENT_ACCEPTED.value: "check",
    NotificationType.STUDENT_REJECTED.value: "x",
}
DEFAULT_ICON = "bell"


def icon_for(notification_type: str) -> str:
    return ICONS.get(notification_type, DEFAULT_ICON)


def badge_text(unread_count: int) -> Optional[str]:
    if unread_count <= 0:
        return None
    if unread_count > 9:
        return "9+"
    return str(unread_count)


def format_relative_time(created_at: datetime, now: Optional[datetime] = None) -> str:
    """
    Cuatro franjas con división entera (sin redondeo):
    < 1 min, < 60 min, < 24 h, y el resto en días.
    """
    now = now or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)

    seconds = (now - created_at).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "الآن"
    if minutes < 60:
        return f"منذ {minutes} دقيقة"
    if hours < 24:
        return f"منذ {hours} ساعة"
    return f"منذ {days} يوم"


@dataclass
class BellItem:
    id: str
    icon: str
    title: str
    message: str
    time: str
    unread: bool


@dataclass
class BellView:
    badge: Optional[str]
    items: List[BellItem] = field(default_factory=list)
    is_loading: bool = False
    show_mark_all: bool = False
    show_view_all: bool = False
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.is_loading and not self.items


class NotificationBell:

    def __init__(
        self,
        store: NotificationStateStore,
        poller: Optional[NotificationPoller] = None,
        limit: int = NOTIFICATIONS_DISPLAY_LIMIT,
    ):
        self.store = store
        self.poller = poller or NotificationPoller(store)
        self.limit = limit
        self.is_open = False

    # ciclo de vida: el polling vive mientras la campana está montada
    def mount(self):
        self.poller.start()

    async def unmount(self):
        await self.poller.stop()

    def toggle(self):
        self.is_open = not self.is_open

    def view(self, now: Optional[datetime] = None) -> BellView:
        state = self.store.state
        now = now or datetime.now(timezone.utc)
        # el recorte es solo visual
        visible = state.notifications[:self.limit]
        return BellView(
            badge=badge_text(state.unread_count),
            items=[self._item(n, now) for n in visible],
            is_loading=state.is_loading,
            show_mark_all=state.unread_count > 0,
            show_view_all=len(state.notifications) > self.limit,
            error=state.error,
        )

    def _item(self, n: Notification, now: datetime) -> BellItem:
        return BellItem(
            id=n.id,
            icon=icon_for(n.type),
            title=n.title,
            message=n.message,
            time=format_relative_time(n.createdAt, now),
            unread=not n.isRead,
        )

    async def click(self, notification: Notification) -> bool:
        """Solo las no leídas disparan mark-as-read."""
        if notification.isRead:
            return False
        return await self.store.mark_as_read(notification.id)

    async def click_item(self, index: int) -> bool:
        visible = self.store.state.notifications[:self.limit]
        if not 0 <= index < len(visible):
            return False
        return await self.click(visible[index])

    async def mark_all(self) -> bool:
        if self.store.state.unread_count <= 0:
            return False
        return await self.store.mark_all_as_read()

    def render_lines(self, now: Optional[datetime] = None) -> List[str]:
        view = self.view(now)
        header = TITLE if not view.badge else f"{TITLE} ({view.badge})"
        lines = [header]
        if view.show_mark_all:
            lines.append(f"[{MARK_ALL_LABEL}]")

        if view.is_loading:
            lines.append(LOADING_TEXT)
        elif view.is_empty:
            lines.append(EMPTY_TEXT)
        else:
            for item in view.items:
                dot = "●" if item.unread else " "
                lines.append(f"{dot} [{item.icon}] {item.title} - {item.message} ({item.time})")

        if view.show_view_all:
            lines.append(f"[{VIEW_ALL_LABEL}]")
        return lines
