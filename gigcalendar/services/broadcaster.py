# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: live-update broadcaster.

Publish/subscribe fan-out of full collection snapshots. One producer (the
calendar service), N subscribers (connected clients). Each subscriber owns a
sink; publishing holds a lock while handing the message to every sink, so a
given subscriber sees messages in publish order. There is no history: a
subscriber only receives what is published after it subscribed.
"""

import asyncio
import itertools
import threading
from typing import Any, Callable

from gigcalendar.core.logging import get_logger
from gigcalendar.metrics import (
    BROADCAST_DELIVERY_FAILURES,
    BROADCASTS_TOTAL,
    LIVE_SUBSCRIBERS,
)

logger = get_logger(__name__)

EVENT_NAME = "dataUpdate"

Sink = Callable[[dict[str, Any]], None]


def build_message(collection: str, snapshot: list[dict[str, Any]]) -> dict[str, Any]:
    return {"event": EVENT_NAME, "type": collection, "data": snapshot}


class Subscription:
    """Handle returned by ``Broadcaster.subscribe``."""

    def __init__(self, subscription_id: int, sink: Sink) -> None:
        self.id = subscription_id
        self._sink = sink

    def deliver(self, message: dict[str, Any]) -> None:
        self._sink(message)

    def __repr__(self) -> str:
        return f"<Subscription {self.id}>"


def queue_sink(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> Sink:
    """Sink that hands messages to ``queue`` on ``loop`` from any thread."""

    def _deliver(message: dict[str, Any]) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, message)

    return _deliver


class Broadcaster:
    """Fire-and-forget fan-out of ``{event, type, data}`` messages."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    def subscribe(self, sink: Sink) -> Subscription:
        with self._lock:
            subscription = Subscription(next(self._ids), sink)
            self._subscribers[subscription.id] = subscription
            LIVE_SUBSCRIBERS.set(len(self._subscribers))
        logger.info("Live subscriber connected: id=%d", subscription.id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            removed = self._subscribers.pop(subscription.id, None)
            LIVE_SUBSCRIBERS.set(len(self._subscribers))
        if removed is not None:
            logger.info("Live subscriber disconnected: id=%d", subscription.id)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, collection: str, snapshot: list[dict[str, Any]]) -> int:
        """Send the full ``snapshot`` of ``collection`` to every subscriber.

        Returns the number of subscribers the message was handed to. A sink
        that raises is dropped; the error never reaches the caller.
        """
        with self._lock:
            delivered = self._deliver(build_message(collection, snapshot))
        self._record(collection, snapshot, delivered)
        return delivered

    def publish_latest(
        self, collection: str, fetch: Callable[[], list[dict[str, Any]]]
    ) -> int:
        """Read the collection with ``fetch`` and send it, under one lock.

        Concurrent writers may finish in any order, but the snapshot is taken
        inside the lock, so the last message sent is never older than the
        last write that published.
        """
        with self._lock:
            snapshot = fetch()
            delivered = self._deliver(build_message(collection, snapshot))
        self._record(collection, snapshot, delivered)
        return delivered

    def _deliver(self, message: dict[str, Any]) -> int:
        # caller holds self._lock
        delivered = 0
        failed: list[int] = []
        for subscription in self._subscribers.values():
            try:
                subscription.deliver(message)
                delivered += 1
            except Exception as exc:
                BROADCAST_DELIVERY_FAILURES.inc()
                logger.warning(
                    "Dropping live subscriber id=%d: %s", subscription.id, exc
                )
                failed.append(subscription.id)
        for subscription_id in failed:
            self._subscribers.pop(subscription_id, None)
        LIVE_SUBSCRIBERS.set(len(self._subscribers))
        return delivered

    @staticmethod
    def _record(collection: str, snapshot: list[dict[str, Any]], delivered: int) -> None:
        BROADCASTS_TOTAL.labels(collection=collection).inc()
        logger.debug(
            "Broadcast %s: records=%d, subscribers=%d",
            collection, len(snapshot), delivered,
        )
