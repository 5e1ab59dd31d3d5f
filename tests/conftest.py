from datetime import datetime, timedelta, timezone

import pytest
from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from fastapi.testclient import TestClient

from madarij.infra.table_client import NotificationStore
from madarij.main import app
from madarij.models.notification import Notification
from madarij.security.jwt_utils import create_access_token
from madarij.services.notification_service import NotificationService, get_notification_service

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class FakeTableClient:
    """Lo justo de azure.data.tables.TableClient que usa NotificationStore."""

    def __init__(self):
        self.entities = {}
        self.updates = 0
        self.transactions = []

    def create_entity(self, entity):
        key = (entity["PartitionKey"], entity["RowKey"])
        if key in self.entities:
            raise ResourceExistsError("exists")
        self.entities[key] = dict(entity)

    def query_entities(self, query_filter, parameters=None, select=None):
        pk = parameters["pk"]
        rows = [dict(e) for (p, _), e in sorted(self.entities.items()) if p == pk]
        if "read eq false" in query_filter:
            rows = [e for e in rows if not e.get("read")]
        if select:
            rows = [{k: e[k] for k in select if k in e} for e in rows]
        return iter(rows)

    def get_entity(self, partition_key, row_key):
        try:
            return dict(self.entities[(partition_key, row_key)])
        except KeyError:
            raise ResourceNotFoundError("not found")

    def _merge(self, entity):
        key = (entity["PartitionKey"], entity["RowKey"])
        if key not in self.entities:
            raise ResourceNotFoundError("not found")
        self.entities[key].update(entity)

    def update_entity(self, entity, mode=None):
        self.updates += 1
        self._merge(entity)

    def submit_transaction(self, operations):
        operations = list(operations)
        assert len(operations) <= 100
        self.transactions.append(len(operations))
        for op, entity, _ in operations:
            assert op == "update"
            self._merge(entity)


def make_entity(user_id, index, read=False, type_="generic", created_at=None):
    created_at = created_at or NOW - timedelta(minutes=index)
    return {
        "PartitionKey": user_id,
        "RowKey": f"{index:032x}",
        "type": type_,
        "title": f"عنوان {index}",
        "message": f"رسالة {index}",
        "read": read,
        "createdAt": created_at.isoformat(),
    }


def make_notification(index, read=False, type_="generic", created_at=None):
    return Notification.from_entity(make_entity("u", index, read, type_, created_at))


@pytest.fixture
def table():
    return FakeTableClient()


@pytest.fixture
def store(table):
    return NotificationStore(table)


@pytest.fixture
def service(store):
    return NotificationService(store)


@pytest.fixture
def seed(table):
    def _seed(user_id, count, unread=()):
        for i in range(count):
            table.create_entity(make_entity(user_id, i, read=i not in unread))
    return _seed


@pytest.fixture
def api_app(service):
    app.dependency_overrides[get_notification_service] = lambda: service
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app):
    return TestClient(api_app)


@pytest.fixture
def auth_headers():
    def _headers(user_id="user-1"):
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return _headers
