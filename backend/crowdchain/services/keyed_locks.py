"""Keyed Locks — per-entity asyncio locks acquired in a global order.

Invariants:
    - hold(*keys) acquires every distinct key's lock, always in sorted order (no deadlock
      between two holders of overlapping key sets)
    - Locks are released in reverse order even when the body raises or is cancelled
    - A key's lock is dropped once nobody holds or awaits it (no unbounded growth)

Design Decisions:
    - asyncio.Lock, not threading: settlement and requests share one event loop
    - In-process only: correct for a single uvicorn worker; multi-worker deployments
      would need row locks (get_for_update already emits FOR UPDATE on PostgreSQL)
"""

from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator
import asyncio


class KeyedLocks:
    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: Counter[str] = Counter()

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncIterator[None]:
        ordered = sorted(set(keys))
        for key in ordered:
            self._refs[key] += 1
        acquired: list[asyncio.Lock] = []
        try:
            for key in ordered:
                lock = self._locks.setdefault(key, asyncio.Lock())
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in ordered:
                self._refs[key] -= 1
                if self._refs[key] <= 0:
                    del self._refs[key]
                    self._locks.pop(key, None)


def project_key(project_id) -> str:
    return f"project:{project_id}"


def user_key(user_id) -> str:
    return f"user:{user_id}"
