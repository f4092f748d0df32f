# ============================================================================
# READER/WRITER LOCK
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Infrastructure - Concurrency control
# PURPOSE: Shared/exclusive access to the in-memory lease table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Reader/Writer Lock

asyncio lock with two access modes:
- Shared (read): any number of holders at once, e.g. list and lookup
- Exclusive (write): a single holder, no concurrent readers, e.g.
  allocate, release, renew and sweeper eviction

Writers are preferred: once a writer is waiting, newly arriving readers
queue behind it, so a steady stream of list calls cannot starve
allocation.

Usage:
    from infrastructure.locking import ReadWriteLock

    lock = ReadWriteLock()

    async with lock.read():
        snapshot = list(table.values())

    async with lock.write():
        table[port] = lease
"""

import asyncio
from contextlib import asynccontextmanager


class ReadWriteLock:
    """Writer-preferring reader/writer lock for a single event loop."""

    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        """Number of tasks currently holding shared access."""
        return self._readers

    @property
    def write_locked(self) -> bool:
        """Check if a task currently holds exclusive access."""
        return self._writer

    async def acquire_read(self) -> None:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and self._writers_waiting == 0
            )
            self._readers += 1

    async def release_read(self) -> None:
        self._readers -= 1
        if self._readers == 0:
            await asyncio.shield(self._wake_waiters())

    async def acquire_write(self) -> None:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0
                )
            except BaseException:
                # Readers parked behind this writer must be woken up
                self._writers_waiting -= 1
                self._cond.notify_all()
                raise
            self._writers_waiting -= 1
            self._writer = True

    async def release_write(self) -> None:
        self._writer = False
        await asyncio.shield(self._wake_waiters())

    async def _wake_waiters(self) -> None:
        # Runs to completion even if the releasing task is cancelled
        async with self._cond:
            self._cond.notify_all()

    @asynccontextmanager
    async def read(self):
        """Hold shared access for the body of the block."""
        await self.acquire_read()
        try:
            yield
        finally:
            await self.release_read()

    @asynccontextmanager
    async def write(self):
        """Hold exclusive access for the body of the block."""
        await self.acquire_write()
        try:
            yield
        finally:
            await self.release_write()


__all__ = ["ReadWriteLock"]
