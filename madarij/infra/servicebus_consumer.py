# madarij/infra/servicebus_consumer.py
import asyncio
import json
import logging
from datetime import datetime, timezone

from azure.servicebus import TransportType
from azure.servicebus.aio import ServiceBusClient

from madarij.config import SB_CONN_STR, SB_QUEUE
from madarij.services.notification_handler import process_domain_event
from madarij.services.notification_service import get_notification_service

logger = logging.getLogger(__name__)

BACKOFF_SECONDS = 5

_status = {
    "startedAt": None,
    "lastMessageAt": None,
    "lastError": None,
}


def consumer_status() -> dict:
    return {
        **_status,
        "queue": SB_QUEUE,
        "hasConnectionString": bool(SB_CONN_STR),
    }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def decode_body(msg) -> dict:
    # el body llega como generador de bytes
    body_bytes = b"".join(part for part in msg.body)
    return json.loads(body_bytes.decode("utf-8"))


async def handle_message(receiver, msg):
    """
    Procesa un mensaje y lo confirma sólo si salió bien.
    Si falla no se completa: Service Bus lo reintenta (o DLQ por MaxDeliveryCount).
    """
    try:
        payload = decode_body(msg)
        logger.debug("Evento recibido: %s", payload)
        # el store es síncrono, fuera del event loop
        await asyncio.to_thread(process_domain_event, payload, get_notification_service())
        await receiver.complete_message(msg)
        _status["lastMessageAt"] = _now()
    except Exception as e:
        _status["lastError"] = str(e)
        logger.exception("Error procesando evento de dominio")


async def consume_domain_events():
    """
    Consumer asíncrono de Azure Service Bus:
      - AMQP sobre WebSocket (443) para funcionar en App Service.
      - Cada mensaje es un evento de dominio -> process_domain_event.
      - Reconecta con backoff fijo si se cae.
    """
    if not SB_CONN_STR:
        logger.warning("Falta AZURE_SERVICE_BUS_CONNECTION_STRING. No se consumirá la cola.")
        return

    _status["startedAt"] = _now()

    while True:
        try:
            logger.info("Conectando a Service Bus (cola: %s)", SB_QUEUE)
            async with ServiceBusClient.from_connection_string(
                SB_CONN_STR,
                transport_type=TransportType.AmqpOverWebsocket,
            ) as sb_client:
                receiver = sb_client.get_queue_receiver(queue_name=SB_QUEUE, max_wait_time=20)
                async with receiver:
                    logger.info("Escuchando cola: %s", SB_QUEUE)
                    while True:
                        messages = await receiver.receive_messages(
                            max_message_count=10,
                            max_wait_time=10,
                        )
                        if not messages:
                            await asyncio.sleep(0.5)
                            continue

                        for msg in messages:
                            await handle_message(receiver, msg)

            await asyncio.sleep(1)

        except asyncio.CancelledError:
            raise
        except Exception as e:
            _status["lastError"] = str(e)
            logger.warning("Error de conexión con Service Bus, reintento en %ss: %s", BACKOFF_SECONDS, e)
            await asyncio.sleep(BACKOFF_SECONDS)
