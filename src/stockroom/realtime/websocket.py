"""WebSocket endpoint — real-time widget changes for connected clients.

Learn: Each client connects to /updates. The handler:
1. Registers a WebSocketSink with the notifier (connecting = subscribing)
2. Forwards every change event to the client as a JSON text frame
3. Reads and ignores anything the client sends
4. Unregisters on disconnect (closing = unsubscribing)

This is a long-lived connection — one per browser tab.
"""

import asyncio

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from stockroom.api.deps import get_notifier
from stockroom.config import settings
from stockroom.events.types import ChangeEvent
from stockroom.realtime.notifier import ChangeNotifier

logger = structlog.get_logger()
router = APIRouter()


class SinkOverflowError(Exception):
    """Raised when a client falls too far behind on queued frames."""
    pass


class WebSocketSink:
    """Event sink backed by one WebSocket connection.

    Learn: send_event() only enqueues. A separate writer task drains the
    queue onto the socket, so a slow client never stalls the broadcast
    for everybody else, and frames go out in publish order. When the
    queue is full the sink raises, the notifier evicts it, and the
    endpoint closes the socket so the client knows to reconnect.
    """

    def __init__(self, websocket: WebSocket, max_pending: int = 100):
        self.websocket = websocket
        self.queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_pending)
        self.overflowed = asyncio.Event()

    async def send_event(self, event: ChangeEvent) -> None:
        if WebSocketState.DISCONNECTED in (
            self.websocket.client_state,
            self.websocket.application_state,
        ):
            raise WebSocketDisconnect(code=1006)
        try:
            self.queue.put_nowait(event.to_json())
        except asyncio.QueueFull:
            self.overflowed.set()
            raise SinkOverflowError(
                f"{self.queue.maxsize} frames pending, client not reading"
            )

    async def pump(self) -> None:
        """Write queued frames to the socket until cancelled or disconnected."""
        while True:
            frame = await self.queue.get()
            await self.websocket.send_text(frame)


async def _stop_tasks(*tasks: asyncio.Task) -> None:
    """Cancel tasks and wait until each has actually finished."""
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


@router.websocket("/updates")
async def widget_updates(
    websocket: WebSocket,
    notifier: ChangeNotifier = Depends(get_notifier),
):
    """Push every widget change to this client until it disconnects.

    Learn: Two concurrent tasks run:
    1. Writer — drains the sink's queue onto the socket
    2. Reader — reads client messages (accepted, ignored)

    When either side finishes, or the sink overflows, the rest is
    cancelled and the sink is unregistered.
    """
    connection_id = notifier.next_connection_id()
    sink = WebSocketSink(websocket, max_pending=settings.ws_send_queue_size)

    # Subscribe before accepting so no event committed after the handshake is missed
    await notifier.subscribe(connection_id, sink)
    try:
        await websocket.accept()
    except Exception:
        await notifier.unsubscribe(connection_id)
        raise

    log = logger.bind(connection_id=connection_id)
    log.info("ws.connected")

    async def reader():
        # Text or binary, client frames are read and dropped
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
            log.debug("ws.client_message_ignored")

    writer_task = asyncio.create_task(sink.pump())
    reader_task = asyncio.create_task(reader())
    overflow_task = asyncio.create_task(sink.overflowed.wait())

    try:
        done, _ = await asyncio.wait(
            [writer_task, reader_task, overflow_task],
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                log.warning("ws.connection_error", error=str(task.exception()))
    finally:
        await _stop_tasks(writer_task, reader_task, overflow_task)
        await notifier.unsubscribe(connection_id)
        if websocket.client_state == WebSocketState.CONNECTED:
            # 1013 = try again later: client fell behind and must resync
            await websocket.close(code=1013 if sink.overflowed.is_set() else 1000)
        log.info("ws.disconnected")
