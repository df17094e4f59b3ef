"""Notification Broadcaster — in-process fan-out of event envelopes to live subscribers.

Invariants:
    - publish() never blocks and never raises on delivery problems
    - Closed subscribers are skipped; a full subscriber queue drops that one message
    - No persistence, no replay: a subscriber only sees events published after subscribe()
    - Per-subscriber order equals publish() call order

Design Decisions:
    - One bounded asyncio.Queue per subscriber: a slow client can't stall publishers
      or other subscribers (ADR: best-effort delivery)
    - Transports (WebSocket, SSE) own the pump loop and call unsubscribe() in `finally`
    - Module-level singleton via get_broadcaster(): single-process uvicorn, same
      trade-off as the settlement scheduler (no horizontal fan-out)
"""

import asyncio
import contextlib
import itertools
import logging
from dataclasses import dataclass, field

from crowdchain.config import get_settings
from crowdchain.core.domain_types import EventType
from crowdchain.core.events import build_envelope

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


@dataclass(eq=False)
class Subscription:
    """Handle for one connected subscriber."""
    queue: asyncio.Queue
    id: int = field(default_factory=lambda: next(_ids))
    is_open: bool = True
    dropped: int = 0

    async def next_event(self) -> dict | None:
        """Next envelope, or None once the subscription has been closed and drained."""
        if not self.is_open and self.queue.empty():
            return None
        return await self.queue.get()

    def offer(self, envelope: dict) -> bool:
        if not self.is_open:
            return False
        try:
            self.queue.put_nowait(envelope)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    def close(self) -> None:
        if not self.is_open:
            return
        self.is_open = False
        # wakes a pump blocked in next_event()
        with contextlib.suppress(asyncio.QueueFull):
            self.queue.put_nowait(None)


class NotificationBroadcaster:
    """Registry of live subscriptions with best-effort publish."""

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscribers: set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        sub = Subscription(queue=asyncio.Queue(maxsize=self._queue_size))
        self._subscribers.add(sub)
        logger.info(
            "Subscriber %s connected", sub.id,
            extra={"subscribers": len(self._subscribers)},
        )
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        sub.close()
        if sub in self._subscribers:
            self._subscribers.discard(sub)
            logger.info(
                "Subscriber %s disconnected", sub.id,
                extra={"subscribers": len(self._subscribers)},
            )

    def publish(self, event_type: EventType, data: dict | None = None) -> int:
        """Deliver to every open subscriber. Returns how many accepted the event."""
        envelope = build_envelope(event_type, data)
        delivered = 0
        for sub in list(self._subscribers):
            if sub.offer(envelope):
                delivered += 1
            elif sub.is_open:
                logger.warning(
                    "Subscriber %s queue full, event dropped", sub.id,
                    extra={"event_type": event_type.value},
                )
        logger.debug(
            "Published %s", event_type.value,
            extra={"event_type": event_type.value, "delivered": delivered},
        )
        return delivered

    def close_all(self) -> None:
        for sub in list(self._subscribers):
            self.unsubscribe(sub)


_broadcaster: NotificationBroadcaster | None = None


def get_broadcaster() -> NotificationBroadcaster:
    """Process-wide broadcaster (FastAPI dependency)."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = NotificationBroadcaster(get_settings().subscriber_queue_size)
    return _broadcaster
