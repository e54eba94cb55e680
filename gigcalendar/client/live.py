# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Client: background listener on the ``/ws`` live-update channel.

Feeds every ``dataUpdate`` message into ``ClientStore.apply_update``. A lost
connection is retried ``RECONNECT_ATTEMPTS`` times, ``RECONNECT_DELAY``
seconds apart; a successful connection resets the counter.
"""

import json
import threading
from typing import Optional

from websockets.exceptions import WebSocketException
from websockets.sync.client import connect

from gigcalendar.client.store import ClientStore
from gigcalendar.core.config import settings
from gigcalendar.core.logging import get_logger

logger = get_logger(__name__)


class LiveUpdates:
    def __init__(
        self,
        store: ClientStore,
        url: Optional[str] = None,
        reconnect_attempts: Optional[int] = None,
        reconnect_delay: Optional[float] = None,
    ) -> None:
        self.store = store
        self.url = url or settings.WS_URL
        self.reconnect_attempts = (
            settings.RECONNECT_ATTEMPTS if reconnect_attempts is None else reconnect_attempts
        )
        self.reconnect_delay = (
            settings.RECONNECT_DELAY if reconnect_delay is None else reconnect_delay
        )
        self.connected = threading.Event()
        self._stop = threading.Event()
        self._connection = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="gigcalendar-live", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        connection = self._connection
        if connection is not None:
            connection.close()
        self.join(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def handle(self, raw: str | bytes) -> bool:
        """Decode one frame and hand it to the store. Bad frames are skipped."""
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Dropping malformed live update: %s", exc)
            return False
        if not isinstance(message, dict):
            logger.warning("Dropping live update that is not an object")
            return False
        return self.store.apply_update(message)

    def _run(self) -> None:
        failures = 0
        while not self._stop.is_set():
            try:
                with connect(self.url, open_timeout=settings.CLIENT_TIMEOUT) as connection:
                    self._connection = connection
                    self.connected.set()
                    failures = 0
                    logger.info("Live updates connected: %s", self.url)
                    for raw in connection:
                        self.handle(raw)
            except (OSError, TimeoutError, WebSocketException) as exc:
                if self._stop.is_set():
                    break
                logger.warning("Live connection failed: %s", exc)
            finally:
                self._connection = None
                self.connected.clear()

            if self._stop.is_set():
                break
            failures += 1
            if failures > self.reconnect_attempts:
                logger.error(
                    "Giving up on live updates after %d reconnect attempts",
                    self.reconnect_attempts,
                )
                break
            self._stop.wait(self.reconnect_delay)
        logger.info("Live updates stopped")
