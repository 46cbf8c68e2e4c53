import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable, Tuple

from laneboard.logs import debug_logger

ListKey = Tuple[str, int]


class ListLockRegistry:
    """
    Per-list mutual exclusion inside one process.

    Row locks (SELECT ... FOR UPDATE) serialize reorders across processes
    on PostgreSQL; SQLite has no row locks, so writers of the same list
    are also serialized here. Keys are ``(container table, container id)``.
    Locks are created on first use and dropped when nobody holds or waits
    for them.
    """

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def holders(self, key: Hashable) -> int:
        """Tasks holding or waiting for the lock of ``key``"""
        return self._users.get(key, 0)

    def _checkout(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _release(self, key: Hashable) -> None:
        self._users[key] -= 1
        if not self._users[key]:
            del self._users[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, *keys: ListKey) -> AsyncIterator[None]:
        """Acquire the locks for all keys in sorted order"""
        ordered = sorted(set(keys))
        locks = [(key, self._checkout(key)) for key in ordered]
        acquired = []
        try:
            for key, lock in locks:
                await lock.acquire()
                acquired.append(lock)
            debug_logger.debug(f"Захвачены блокировки списков: {ordered}")
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key, _ in locks:
                self._release(key)


list_locks = ListLockRegistry()
