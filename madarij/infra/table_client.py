# madarij/infra/table_client.py
import logging
from typing import List

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.data.tables import TableClient, TableServiceClient, UpdateMode

from madarij.config import AZURE_STORAGE_CONNECTION_STRING, TABLE_NAME
from madarij.services.errors import NotificationNotFound

logger = logging.getLogger(__name__)

# límite de Azure por transacción (misma partición)
BATCH_SIZE = 100


def get_table_client() -> TableClient:
    if not AZURE_STORAGE_CONNECTION_STRING:
        raise RuntimeError("AZURE_STORAGE_CONNECTION_STRING no está configurada en .env")

    service = TableServiceClient.from_connection_string(conn_str=AZURE_STORAGE_CONNECTION_STRING)
    return service.get_table_client(table_name=TABLE_NAME)


def ensure_table():
    if not AZURE_STORAGE_CONNECTION_STRING:
        logger.warning("Sin AZURE_STORAGE_CONNECTION_STRING, no se crea la tabla %s", TABLE_NAME)
        return
    try:
        get_table_client().create_table()
        logger.info("Tabla %s creada", TABLE_NAME)
    except ResourceExistsError:
        pass


class NotificationStore:
    """
    Notificaciones en Table Storage.
    PartitionKey = id del usuario destinatario, RowKey = id de la notificación.
    """

    def __init__(self, table_client: TableClient):
        self.table = table_client

    def insert(self, entity: dict):
        self.table.create_entity(entity=entity)

    def list_for_user(self, user_id: str) -> List[dict]:
        """Todas las del usuario, más nuevas primero (orden estable)."""
        entities = self.table.query_entities(
            query_filter="PartitionKey eq @pk",
            parameters={"pk": user_id},
        )
        return sorted(
            entities,
            key=lambda e: (e.get("createdAt", ""), e["RowKey"]),
            reverse=True,
        )

    def count_unread(self, user_id: str) -> int:
        # solo la clave, no hace falta traer el payload para el badge
        entities = self.table.query_entities(
            query_filter="PartitionKey eq @pk and read eq false",
            parameters={"pk": user_id},
            select=["RowKey"],
        )
        return sum(1 for _ in entities)

    def get_for_user(self, user_id: str, notification_id: str) -> dict:
        try:
            return self.table.get_entity(partition_key=user_id, row_key=notification_id)
        except ResourceNotFoundError:
            raise NotificationNotFound()

    def mark_as_read(self, user_id: str, notification_id: str) -> dict:
        """
        Marca una notificación como leída.
        Si ya estaba leída no escribe nada.
        """
        entity = self.get_for_user(user_id, notification_id)
        if entity.get("read"):
            return entity

        entity["read"] = True
        self.table.update_entity(entity=entity, mode=UpdateMode.MERGE)
        return entity

    def mark_all_as_read(self, user_id: str) -> int:
        unread = list(self.table.query_entities(
            query_filter="PartitionKey eq @pk and read eq false",
            parameters={"pk": user_id},
            select=["PartitionKey", "RowKey"],
        ))

        for start in range(0, len(unread), BATCH_SIZE):
            batch = unread[start:start + BATCH_SIZE]
            self.table.submit_transaction([
                (
                    "update",
                    {"PartitionKey": e["PartitionKey"], "RowKey": e["RowKey"], "read": True},
                    {"mode": UpdateMode.MERGE},
                )
                for e in batch
            ])
        return len(unread)
