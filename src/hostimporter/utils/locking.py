"""
Concurrency utilities.
"""

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator, Hashable
from contextlib import AbstractAsyncContextManager, asynccontextmanager


class KeyedLock:
    """
    Independent asyncio locks per key.

    Rows that reference different host groups resolve them concurrently,
    while two rows that both need the same missing group serialize on
    its name, so only the first one creates it.

    Locks are created on first use and never removed. The key space is
    bounded by the group names of a single import file.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = defaultdict(asyncio.Lock)

    @asynccontextmanager
    async def acquire(self, key: Hashable) -> AsyncIterator[None]:
        """
        Hold the lock for one key.

        Usage:
            async with keyed_lock.acquire("Linux servers"):
                ...

        Args:
            key: Any hashable identifier, typically a group name
        """
        async with self._locks[key]:
            yield

    def __call__(self, key: Hashable) -> AbstractAsyncContextManager[None]:
        """Shortcut for acquire: ``async with keyed_lock(key): ...``"""
        return self.acquire(key)

    def locked(self, key: Hashable) -> bool:
        """Return True if the lock for key is currently held."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()
