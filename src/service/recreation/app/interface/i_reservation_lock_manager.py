"""
Reservation Lock Manager Interface

Keyed mutual exclusion: at most one holder per reservation id at a time.
Waiting is cancellable and never busy-spins; the lock has no deadline of its
own, callers bound it with their own timeout.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
import attrs


@attrs.define(frozen=True)
class LockHandle:
    key: str
    token: str


class IReservationLockManager(ABC):
    @abstractmethod
    async def acquire(self, *, key: str) -> LockHandle:
        """Wait until the lock for `key` is free and take it."""
        pass

    @abstractmethod
    async def release(self, *, handle: LockHandle) -> None:
        pass

    @asynccontextmanager
    async def hold(self, *, key: str) -> AsyncIterator[LockHandle]:
        handle = await self.acquire(key=key)
        try:
            yield handle
        finally:
            # a cancelled holder must still give the lock back
            with anyio.CancelScope(shield=True):
                await self.release(handle=handle)
