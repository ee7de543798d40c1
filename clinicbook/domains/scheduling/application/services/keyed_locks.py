"""
Keyed Locks

In-process asyncio locks keyed by provider or appointment id.
"""

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class _Entry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class KeyedLocks:
    """
    One asyncio.Lock per key, created on demand and dropped when unused.

    Locks are kept per event loop; different keys never share a lock.

    Example:
        ```python
        locks = KeyedLocks()
        async with locks.hold(provider_id):
            ...
        ```
    """

    def __init__(self):
        self._by_loop: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[str, _Entry]] = (
            weakref.WeakKeyDictionary()
        )

    def _entries(self) -> dict[str, _Entry]:
        loop = asyncio.get_running_loop()
        entries = self._by_loop.get(loop)
        if entries is None:
            entries = {}
            self._by_loop[loop] = entries
        return entries

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for key for the duration of the block."""
        entries = self._entries()
        entry = entries.get(key)
        if entry is None:
            entry = entries[key] = _Entry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                entries.pop(key, None)

    def is_locked(self, key: str) -> bool:
        entry = self._entries().get(key)
        return entry is not None and entry.lock.locked()


# Shared by every BookingLedger / CompletionOrchestrator in the process.
provider_locks = KeyedLocks()
appointment_locks = KeyedLocks()
