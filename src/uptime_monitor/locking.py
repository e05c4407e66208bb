"""
Per-key serialization for coroutines sharing a resource.

The audit log of a check is appended to by the outcome processor and
compacted by the log rotator. Both take the lock of the log id, so a
compress-then-truncate never loses a line appended in between.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class KeyedLock:
    """
    A family of asyncio locks, one per key, created on demand.

    A key's lock is dropped once nobody holds or waits for it, so the
    family does not grow with every id ever seen.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Acquires the lock of ``key`` for the duration of the block."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
