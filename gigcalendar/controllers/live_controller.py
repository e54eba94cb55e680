# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: live-update channel.

Every connected socket receives ``{"event": "dataUpdate", "type": <collection>,
"data": <full snapshot>}`` after each successful write. Nothing is replayed on
connect; clients fetch the initial state over REST.
"""

import asyncio

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from gigcalendar.core.dependencies import get_broadcaster
from gigcalendar.core.logging import get_logger
from gigcalendar.services.broadcaster import Broadcaster, queue_sink

router = APIRouter(tags=["Live"])
logger = get_logger(__name__)


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


async def _wait_for_close(websocket: WebSocket) -> None:
    # Clients never send anything meaningful; reading only detects the close.
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws")
async def live_updates(
    websocket: WebSocket,
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    queue: asyncio.Queue = asyncio.Queue()
    # Subscribe before accepting so no write after the handshake is missed.
    subscription = broadcaster.subscribe(queue_sink(asyncio.get_running_loop(), queue))
    tasks: list[asyncio.Task] = []
    try:
        await websocket.accept()
        tasks = [
            asyncio.create_task(_pump(websocket, queue)),
            asyncio.create_task(_wait_for_close(websocket)),
        ]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = None if task.cancelled() else task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Live connection closed with error: %s", exc)
    finally:
        for task in tasks:
            task.cancel()
        broadcaster.unsubscribe(subscription)
