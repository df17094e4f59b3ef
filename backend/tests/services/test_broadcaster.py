"""Notification Broadcaster — tests for best-effort fan-out.

Tests cover:
    - publishing with zero subscribers is a no-op returning 0
    - every open subscriber receives the same envelope, in publish order
    - late subscribers never see earlier events
    - unsubscribed / closed subscribers are skipped
    - a full queue drops the message for that subscriber only
    - closing wakes a waiting consumer with None
"""

import asyncio

from crowdchain.core.domain_types import EventType
from crowdchain.services.broadcaster import NotificationBroadcaster


def test_publish_with_no_subscribers_is_noop():
    broadcaster = NotificationBroadcaster()
    assert broadcaster.publish(EventType.USER_REGISTERED, {"user_id": "u"}) == 0
    assert broadcaster.subscriber_count == 0


async def test_every_subscriber_receives_envelope_in_order():
    broadcaster = NotificationBroadcaster()
    first, second = broadcaster.subscribe(), broadcaster.subscribe()

    assert broadcaster.publish(EventType.PROJECT_CREATED, {"n": 1}) == 2
    assert broadcaster.publish(EventType.PROJECT_APPROVED, {"n": 2}) == 2

    for sub in (first, second):
        a, b = await sub.next_event(), await sub.next_event()
        assert (a["type"], a["data"]) == ("PROJECT_CREATED", {"n": 1})
        assert (b["type"], b["data"]) == ("PROJECT_APPROVED", {"n": 2})
        assert "timestamp" in a


async def test_late_subscriber_sees_no_history():
    broadcaster = NotificationBroadcaster()
    broadcaster.publish(EventType.USER_BANNED, {"user_id": "x"})
    late = broadcaster.subscribe()
    assert late.queue.empty()


async def test_unsubscribed_subscriber_is_skipped():
    broadcaster = NotificationBroadcaster()
    gone, live = broadcaster.subscribe(), broadcaster.subscribe()
    broadcaster.unsubscribe(gone)
    broadcaster.unsubscribe(gone)  # idempotent

    assert broadcaster.publish(EventType.WALLET_CONNECTED) == 1
    assert broadcaster.subscriber_count == 1
    assert (await live.next_event())["type"] == "WALLET_CONNECTED"


async def test_full_queue_drops_only_for_slow_subscriber():
    broadcaster = NotificationBroadcaster(queue_size=1)
    slow, fast = broadcaster.subscribe(), broadcaster.subscribe()

    broadcaster.publish(EventType.PROJECT_CREATED, {"n": 1})
    await fast.next_event()
    delivered = broadcaster.publish(EventType.PROJECT_CREATED, {"n": 2})

    assert delivered == 1
    assert slow.dropped == 1
    assert (await slow.next_event())["data"] == {"n": 1}
    assert (await fast.next_event())["data"] == {"n": 2}


async def test_close_wakes_waiting_consumer():
    broadcaster = NotificationBroadcaster()
    sub = broadcaster.subscribe()
    waiter = asyncio.create_task(sub.next_event())
    await asyncio.sleep(0)

    broadcaster.close_all()

    assert await asyncio.wait_for(waiter, timeout=1) is None
    assert broadcaster.subscriber_count == 0
    assert await sub.next_event() is None
