"""In-process change notifier — fans widget events out to live listeners.

Learn: This is fire-and-forget pub/sub inside one process. If no one is
listening, the event is lost. That's fine for real-time UI updates (the
client can always GET /widgets to catch up).

Listeners are "sinks": anything with an async send_event(event) method.
Each one is registered under the integer id of the connection it serves.

Delivery rules:
- publish() schedules a broadcast and returns at once, so the mutating
  request never waits on listeners.
- broadcast() delivers to a snapshot of the registry and waits for every
  delivery of that event to finish.
- A sink that raises is logged and evicted. Other sinks still get the event.
"""

import asyncio
import itertools
from typing import Protocol

import structlog

from stockroom.events.types import ChangeEvent

logger = structlog.get_logger()


class EventSink(Protocol):
    """A registered recipient of change events (one per client connection)."""

    async def send_event(self, event: ChangeEvent) -> None: ...


class ChangeNotifier:
    """Registry of sinks keyed by connection id, plus broadcast.

    Learn: One instance per application, created in the FastAPI lifespan
    and stored on app.state. Routes reach it through get_notifier().

    Usage:
        notifier = ChangeNotifier()
        await notifier.subscribe(conn_id, sink)
        notifier.publish(ChangeEvent.created(widget))
        await notifier.close()
    """

    def __init__(self) -> None:
        self._sinks: dict[int, EventSink] = {}
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._sinks)

    @property
    def connection_count(self) -> int:
        return len(self._sinks)

    def next_connection_id(self) -> int:
        return next(self._ids)

    # ─── Registry ───────────────────────────────────────

    async def subscribe(self, connection_id: int, sink: EventSink) -> None:
        """Register a sink, replacing any sink already under this id."""
        async with self._lock:
            replaced = connection_id in self._sinks
            self._sinks[connection_id] = sink
        logger.info(
            "notifier.subscribed",
            connection_id=connection_id,
            replaced=replaced,
            listeners=len(self._sinks),
        )

    async def unsubscribe(self, connection_id: int) -> None:
        """Remove a sink. No-op when the id is not registered."""
        async with self._lock:
            removed = self._sinks.pop(connection_id, None)
        if removed is not None:
            logger.info(
                "notifier.unsubscribed",
                connection_id=connection_id,
                listeners=len(self._sinks),
            )

    # ─── Delivery ───────────────────────────────────────

    async def broadcast(self, event: ChangeEvent) -> None:
        """Deliver one event to every registered sink and wait for all of them."""
        async with self._lock:
            targets = list(self._sinks.items())

        if not targets:
            return

        await asyncio.gather(
            *(self._deliver(cid, sink, event) for cid, sink in targets)
        )
        logger.debug(
            "notifier.broadcast",
            type=event.type.value,
            widget_id=event.id,
            listeners=len(targets),
        )

    async def _deliver(self, connection_id: int, sink: EventSink, event: ChangeEvent) -> None:
        try:
            await sink.send_event(event)
        except Exception as e:
            logger.warning(
                "notifier.sink_failed",
                connection_id=connection_id,
                type=event.type.value,
                widget_id=event.id,
                error=str(e),
            )
            async with self._lock:
                # Only evict the sink that failed, not a newer one under the same id
                if self._sinks.get(connection_id) is sink:
                    del self._sinks[connection_id]

    def publish(self, event: ChangeEvent) -> asyncio.Task:
        """Schedule a broadcast without waiting for it.

        Must be called from inside the running event loop.
        """
        task = asyncio.create_task(self.broadcast(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait until every scheduled broadcast has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        """Finish pending broadcasts, then drop every registration."""
        await self.drain()
        async with self._lock:
            count = len(self._sinks)
            self._sinks.clear()
        logger.info("notifier.closed", dropped_listeners=count)
