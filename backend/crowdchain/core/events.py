"""Event Envelopes — the {type, data, timestamp} shape every subscriber receives.

Invariants:
    - type is always an EventType value (closed set)
    - timestamp is ISO-8601 UTC
    - data is JSON-safe: UUID, Decimal and datetime values are stringified

Design Decisions:
    - Stringify at envelope build time so transports (WebSocket, SSE) never need a custom encoder
    - Decimal → "123.45" string, never float: clients render money exactly
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import UUID

from crowdchain.core.domain_types import EventType


def _jsonable(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def build_envelope(
    event_type: EventType, data: dict | None = None, now: datetime | None = None,
) -> dict:
    """Build the broadcast envelope for one event."""
    return {
        "type": event_type.value,
        "data": _jsonable(data or {}),
        "timestamp": (now or datetime.now(timezone.utc)).isoformat(),
    }


def connected_envelope() -> dict:
    """Greeting sent to each new subscriber (carries no data)."""
    return {
        "type": EventType.CONNECTED.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
