"""Per-key write locks shared by every entity service of one registry.

Creates, updates and status writes hold the locks of the entity key and of
every key the entity references; deletes hold the lock of the deleted key across the
handler call, the integrity scan and the storage delete. A dependent can
therefore not appear between a resource's integrity scan and its deletion,
and two writes to the same key are serialized.

Locks are asyncio locks: they serialize tasks on one event loop in one
process. Cross-process exclusion remains the Storage Port's job.
"""

import asyncio
import weakref
from collections.abc import AsyncIterator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager

from stream_registry.core.keys import RegistryKey


class KeyLocks:
    """Lazily created asyncio locks keyed by RegistryKey."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, name: str) -> asyncio.Lock:
        lock = self._locks.get(name)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[name] = lock
        return lock

    def is_locked(self, key: RegistryKey) -> bool:
        lock = self._locks.get(key.lock_name())
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, keys: Iterable[RegistryKey]) -> AsyncIterator[None]:
        """Acquire the locks of all keys, in a global order, for the block's duration."""
        names = sorted({key.lock_name() for key in keys})
        # Strong references keep the weak-valued entries alive while held.
        locks = [self._lock_for(name) for name in names]
        async with AsyncExitStack() as stack:
            for lock in locks:
                await stack.enter_async_context(lock)
            yield
