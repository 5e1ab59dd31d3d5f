import asyncio

import httpx
import pytest

from madarij.client.api import FETCH_FAILED, NotificationRequestError, NotificationsAPI
from madarij.client.state import FULFILLED, IDLE, PENDING, REJECTED, NotificationStateStore
from madarij.security.jwt_utils import create_access_token
from conftest import make_notification


class FakeAPI:

    def __init__(self, notifications=(), count=0):
        self.notifications = list(notifications)
        self.count = count
        self.error = None
        self.marked = []

    async def fetch_notifications(self):
        if self.error:
            raise NotificationRequestError(self.error)
        return list(self.notifications)

    async def fetch_unread_count(self):
        if self.error:
            raise NotificationRequestError(self.error)
        return self.count

    async def mark_as_read(self, notification_id):
        if self.error:
            raise NotificationRequestError(self.error)
        self.marked.append(notification_id)
        return notification_id

    async def mark_all_as_read(self):
        if self.error:
            raise NotificationRequestError(self.error)
        return True


async def test_fetch_replaces_cache_and_reconciles_unread_count():
    api = FakeAPI([make_notification(i, read=i > 2) for i in range(12)])
    store = NotificationStateStore(api)
    store.state.notifications = [make_notification(99)]

    assert await store.fetch_notifications() is True

    assert store.state.notifications == api.notifications
    assert store.state.unread_count == 3
    assert store.state.is_loading is False
    assert store.state.requests["fetch"] == FULFILLED


async def test_fetch_pending_sets_loading_and_clears_error():
    seen = []
    store = NotificationStateStore(FakeAPI())
    store.state.error = "old"
    store.subscribe(lambda s: seen.append((s.requests["fetch"], s.is_loading, s.error)))

    await store.fetch_notifications()

    assert seen == [(PENDING, True, None), (FULFILLED, False, None)]


async def test_fetch_rejected_keeps_last_good_cache():
    api = FakeAPI([make_notification(0)])
    store = NotificationStateStore(api)
    await store.fetch_notifications()

    api.error = FETCH_FAILED
    assert await store.fetch_notifications() is False

    assert store.state.error == FETCH_FAILED
    assert store.state.is_loading is False
    assert store.state.requests["fetch"] == REJECTED
    assert [n.id for n in store.state.notifications] == [api.notifications[0].id]

    api.error = None
    await store.fetch_notifications()
    assert store.state.error is None


async def test_unread_count_overwrites_counter():
    store = NotificationStateStore(FakeAPI(count=7))
    store.state.unread_count = 2

    await store.fetch_unread_count()

    assert store.state.unread_count == 7


async def test_mark_one_flips_flag_and_decrements():
    api = FakeAPI([make_notification(0), make_notification(1, read=True)])
    store = NotificationStateStore(api)
    await store.fetch_notifications()

    await store.mark_as_read(api.notifications[0].id)

    assert store.state.notifications[0].isRead is True
    assert store.state.unread_count == 0


async def test_mark_one_on_read_notification_is_noop():
    api = FakeAPI([make_notification(0, read=True), make_notification(1)])
    store = NotificationStateStore(api)
    await store.fetch_notifications()

    assert await store.mark_as_read(api.notifications[0].id) is True

    assert store.state.unread_count == 1
    assert store.state.error is None


async def test_unread_count_never_goes_negative():
    api = FakeAPI([make_notification(0)])
    store = NotificationStateStore(api)
    await store.fetch_notifications()
    # el contador puede venir desfasado de otro fetch
    store.state.unread_count = 0

    await store.mark_as_read(api.notifications[0].id)
    await store.mark_as_read(api.notifications[0].id)

    assert store.state.unread_count == 0


async def test_mark_all_reads_everything():
    api = FakeAPI([make_notification(i) for i in range(4)])
    store = NotificationStateStore(api)
    await store.fetch_notifications()

    await store.mark_all_as_read()

    assert all(n.isRead for n in store.state.notifications)
    assert store.state.unread_count == 0


async def test_rejected_mark_leaves_cache_untouched():
    api = FakeAPI([make_notification(0)])
    store = NotificationStateStore(api)
    await store.fetch_notifications()
    api.error = "الإشعار غير موجود"

    assert await store.mark_as_read(api.notifications[0].id) is False

    assert store.state.notifications[0].isRead is False
    assert store.state.unread_count == 1
    assert store.state.error == "الإشعار غير موجود"
    assert store.state.requests["mark_one"] == REJECTED

    store.clear_error()
    assert store.state.error is None


async def test_cancelled_fetch_returns_to_idle():
    gate = asyncio.Event()

    class SlowAPI(FakeAPI):
        async def fetch_notifications(self):
            await gate.wait()
            return []

    store = NotificationStateStore(SlowAPI())
    task = asyncio.create_task(store.fetch_notifications())
    await asyncio.sleep(0)
    assert store.state.is_loading is True

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert store.state.is_loading is False
    assert store.state.requests["fetch"] == IDLE


# ===== contra la app real =====

@pytest.fixture
async def http_api(api_app):
    token = {"value": create_access_token("user-1")}
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=api_app), base_url="http://test")
    api = NotificationsAPI(lambda: token["value"], client=client)
    api.token = token
    yield api
    await api.aclose()


async def test_round_trip_against_service(http_api, seed):
    seed("user-1", 4, unread={0, 2})
    store = NotificationStateStore(http_api)

    await store.fetch_notifications()
    assert store.state.unread_count == 2

    await store.mark_as_read(store.state.notifications[0].id)
    assert store.state.unread_count == 1

    await store.mark_all_as_read()
    await store.fetch_unread_count()
    assert store.state.unread_count == 0
    assert store.state.requests["unread_count"] == FULFILLED


async def test_server_message_reaches_error_state(http_api, seed):
    seed("user-2", 1, unread={0})
    store = NotificationStateStore(http_api)

    await store.mark_as_read(f"{0:032x}")

    assert store.state.error == "الإشعار غير موجود"


async def test_unauthenticated_request_is_rejected(http_api):
    http_api.token["value"] = None
    store = NotificationStateStore(http_api)

    await store.fetch_notifications()

    assert store.state.requests["fetch"] == REJECTED
    assert store.state.error == "غير مصرح، يرجى تسجيل الدخول"
    assert store.state.notifications == []


async def test_transport_failure_uses_fallback_message():
    def boom(request):
        raise httpx.ConnectError("down", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(boom), base_url="http://test")
    store = NotificationStateStore(NotificationsAPI(lambda: "t", client=client))

    await store.fetch_notifications()
    await client.aclose()

    assert store.state.error == FETCH_FAILED


def _store_with_response(response: httpx.Response) -> NotificationStateStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response), base_url="http://test")
    return NotificationStateStore(NotificationsAPI(lambda: "t", client=client))


@pytest.mark.parametrize("response", [
    httpx.Response(200, text="<html>"),
    httpx.Response(200, json={"notifications": [{"x": 1}]}),
    httpx.Response(200, json={"notifications": 5}),
    httpx.Response(200, json=["not", "a", "dict"]),
    httpx.Response(500, content=b""),
    httpx.Response(500, json={"detail": "x"}),
])
async def test_unusable_response_rejects_fetch_with_fallback(response):
    store = _store_with_response(response)

    assert await store.fetch_notifications() is False
    await store.api.aclose()

    assert store.state.requests["fetch"] == REJECTED
    assert store.state.is_loading is False
    assert store.state.error == FETCH_FAILED


async def test_unusable_count_rejects_with_fallback():
    store = _store_with_response(httpx.Response(200, json={"count": "many"}))

    assert await store.fetch_unread_count() is False
    await store.api.aclose()

    assert store.state.requests["unread_count"] == REJECTED
    assert store.state.error == "فشل تحميل عدد الإشعارات"
