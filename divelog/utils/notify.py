"""In-process fan-out of row change notifications for the dives table.

Route handlers publish after commit, from Starlette's worker threads. Each
server-sent-events subscriber owns an asyncio queue on its event loop, and
publishing hands the message over with ``call_soon_threadsafe``, so a waiting
subscriber never occupies a worker thread. Publishing never blocks: a
subscriber whose queue is full misses events and refreshes on the next one.
"""
import asyncio
import json
import logging
import threading
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

logger = logging.getLogger(__name__)

MAX_PENDING = 100


class Subscriber:
    """One listener: an asyncio queue bound to the loop that created it."""

    def __init__(self, loop: asyncio.AbstractEventLoop, table: str):
        self.loop = loop
        self.table = table
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=MAX_PENDING)

    def offer(self, message: dict) -> None:
        # runs on self.loop
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("Dropping %s change for slow subscriber", self.table)

    async def get(self) -> dict:
        return await self.queue.get()


class ChangeBroker:
    def __init__(self, table: str):
        self.table = table
        self._lock = threading.Lock()
        self._subscribers: list[Subscriber] = []

    def subscribe(self) -> Subscriber:
        """Register a listener on the running event loop."""
        sub = Subscriber(asyncio.get_running_loop(), self.table)
        with self._lock:
            self._subscribers.append(sub)
        return sub

    def unsubscribe(self, sub: Subscriber) -> None:
        with self._lock:
            if sub in self._subscribers:
                self._subscribers.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: str, row_id: UUID, status: Optional[str] = None) -> dict:
        message = {
            "table": self.table,
            "event": event,
            "id": str(row_id),
            "status": status,
            "at": datetime.now(timezone.utc).isoformat(),
        }
        with self._lock:
            subscribers = list(self._subscribers)
        for sub in subscribers:
            try:
                sub.loop.call_soon_threadsafe(sub.offer, message)
            except RuntimeError:
                # the subscriber's loop has shut down without unsubscribing
                self.unsubscribe(sub)
        return message


def format_sse(message: dict) -> str:
    return f"event: {message['event']}\ndata: {json.dumps(message)}\n\n"


dive_changes = ChangeBroker("dives")
