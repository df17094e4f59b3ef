"""Event Transports — WebSocket and SSE pumps over the notification broadcaster.

Invariants:
    - Every connection gets its own Subscription and a CONNECTED greeting first
    - unsubscribe() runs in `finally`: disconnects, errors and cancellation all deregister
    - Envelopes are forwarded verbatim ({type, data, timestamp}); nothing is replayed

Design Decisions:
    - WebSocket at /ws (unauthenticated, broadcast-only); SSE at
      /api/v1/events/stream for clients that can't open sockets
    - pump_websocket / sse_events are plain coroutines so they can be driven in tests
      without a live HTTP stream
    - WebSocket reader runs as a sibling task: a client disconnect is noticed even while
      no events are flowing
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse

from crowdchain.api.dependencies import broadcaster_dep
from crowdchain.core.events import connected_envelope
from crowdchain.services.broadcaster import NotificationBroadcaster, Subscription

logger = logging.getLogger(__name__)
router = APIRouter(tags=["events"])

# ADR: SSE headers prevent proxy/browser buffering of streamed events.
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}

KEEPALIVE_SECONDS = 15.0


# -- WebSocket -----------------------------------------------------------------

@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    broadcaster: NotificationBroadcaster = Depends(broadcaster_dep),
):
    await pump_websocket(websocket, broadcaster)


async def pump_websocket(websocket, broadcaster: NotificationBroadcaster) -> None:
    """Forward broadcast envelopes to one socket until either side goes away."""
    await websocket.accept()
    sub = broadcaster.subscribe()
    reader = asyncio.create_task(_read_until_disconnect(websocket))
    try:
        await websocket.send_json(connected_envelope())
        while True:
            nxt = asyncio.create_task(sub.next_event())
            done, _ = await asyncio.wait(
                {reader, nxt}, return_when=asyncio.FIRST_COMPLETED,
            )
            if nxt not in done:
                nxt.cancel()
                break
            envelope = nxt.result()
            if envelope is None:
                break
            await websocket.send_json(envelope)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"WebSocket subscriber {sub.id} failed: {e}")
    finally:
        reader.cancel()
        broadcaster.unsubscribe(sub)


async def _read_until_disconnect(websocket) -> None:
    """Discard inbound frames; return once the client disconnects."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


# -- Server-Sent Events ----------------------------------------------------------

@router.get("/api/v1/events/stream")
async def stream_events(
    broadcaster: NotificationBroadcaster = Depends(broadcaster_dep),
):
    """SSE stream of every broadcast event from now on."""
    return StreamingResponse(
        sse_events(broadcaster),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


async def sse_events(
    broadcaster: NotificationBroadcaster, keepalive: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    sub = broadcaster.subscribe()
    try:
        yield _sse_line(connected_envelope())
        async for chunk in _sse_pump(sub, keepalive):
            yield chunk
    except asyncio.CancelledError:
        logger.info("Client disconnected from event stream (subscriber=%s)", sub.id)
        raise
    finally:
        broadcaster.unsubscribe(sub)


async def _sse_pump(sub: Subscription, keepalive: float) -> AsyncIterator[str]:
    while True:
        try:
            envelope = await asyncio.wait_for(sub.next_event(), timeout=keepalive)
        except asyncio.TimeoutError:
            yield ": keepalive\n\n"
            continue
        if envelope is None:
            return
        yield _sse_line(envelope)


def _sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"
