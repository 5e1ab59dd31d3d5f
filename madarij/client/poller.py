# madarij/client/poller.py
import asyncio
import contextlib
import logging
from typing import Optional, Set

from madarij.client.state import NotificationStateStore
from madarij.config import POLL_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class NotificationPoller:
    """
    Tarea periódica cancelable que vuelve a pedir la lista completa.
    Es polling, no push: un fetch al arrancar y otro cada `interval` segundos.
    Los ticks no se deduplican; si dos respuestas se cruzan gana la última.
    """

    def __init__(self, store: NotificationStateStore, interval: float = POLL_INTERVAL_SECONDS):
        self.store = store
        self.interval = interval
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self):
        if self.running:
            return
        self._timer = asyncio.create_task(self._loop())

    def _spawn_fetch(self):
        task = asyncio.create_task(self.store.fetch_notifications())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _loop(self):
        self._spawn_fetch()
        while True:
            await asyncio.sleep(self.interval)
            logger.debug("Tick de polling de notificaciones")
            self._spawn_fetch()

    async def stop(self, cancel_in_flight: bool = True):
        timer, self._timer = self._timer, None
        tasks = [timer] if timer else []
        if timer:
            timer.cancel()
        if cancel_in_flight:
            in_flight = list(self._in_flight)
            for task in in_flight:
                task.cancel()
            tasks.extend(in_flight)

        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
