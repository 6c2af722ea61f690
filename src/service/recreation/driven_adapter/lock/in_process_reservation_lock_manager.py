"""
In-process reservation lock manager.

One anyio.Lock per key, created on first use and dropped once nobody holds or
waits for it, so the table stays as small as the number of reservations being
finalized right now. Waiters are served first come, first served.
"""

from typing import Dict

import anyio
import attrs
import uuid_utils

from src.platform.logging.loguru_io import Logger
from src.service.recreation.app.interface.i_reservation_lock_manager import (
    IReservationLockManager,
    LockHandle,
)


@attrs.define
class _LockEntry:
    lock: anyio.Lock = attrs.field(factory=anyio.Lock)
    users: int = 0  # holder + waiters
    token: str | None = None


class InProcessReservationLockManager(IReservationLockManager):
    def __init__(self) -> None:
        self._entries: Dict[str, _LockEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_if_unused(self, key: str, entry: _LockEntry) -> None:
        if entry.users == 0 and self._entries.get(key) is entry:
            del self._entries[key]

    async def acquire(self, *, key: str) -> LockHandle:
        entry = self._entries.get(key)
        if entry is None:
            entry = _LockEntry()
            self._entries[key] = entry
        entry.users += 1

        try:
            await entry.lock.acquire()
        except BaseException:
            # cancelled while waiting
            entry.users -= 1
            self._evict_if_unused(key, entry)
            raise

        entry.token = str(uuid_utils.uuid7())
        Logger.base.debug(f'🔒 [LOCK] Acquired reservation lock: {key}')
        return LockHandle(key=key, token=entry.token)

    async def release(self, *, handle: LockHandle) -> None:
        entry = self._entries.get(handle.key)
        if entry is None or entry.token != handle.token:
            Logger.base.warning(f'⚠️ [LOCK] Release of a lock not held: {handle.key}')
            return

        entry.token = None
        entry.lock.release()
        entry.users -= 1
        self._evict_if_unused(handle.key, entry)
        Logger.base.debug(f'🔓 [LOCK] Released reservation lock: {handle.key}')
