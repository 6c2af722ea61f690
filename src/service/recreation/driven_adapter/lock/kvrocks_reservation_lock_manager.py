"""
Distributed reservation lock using Kvrocks (Redis)

SET NX PX with a random token; release deletes the key only while the token
still matches. The TTL only guards against a crashed holder and must be longer
than FINALIZE_TIMEOUT_SECONDS.
"""

from typing import Callable

import anyio
from redis.asyncio import Redis as AsyncRedis
import uuid_utils

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.recreation.app.interface.i_reservation_lock_manager import (
    IReservationLockManager,
    LockHandle,
)


RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class KvrocksReservationLockManager(IReservationLockManager):
    def __init__(
        self,
        *,
        ttl_seconds: int = settings.RESERVATION_LOCK_TTL_SECONDS,
        retry_interval: float = settings.RESERVATION_LOCK_RETRY_INTERVAL,
        key_prefix: str = settings.KVROCKS_KEY_PREFIX,
        client_factory: Callable[[], AsyncRedis] = kvrocks_client.get_client,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError('ttl_seconds must be positive')
        self.ttl_ms = ttl_seconds * 1000
        self.retry_interval = retry_interval
        self.key_prefix = key_prefix
        self.client_factory = client_factory

    def _lock_key(self, key: str) -> str:
        return f'{self.key_prefix}lock:reservation:{key}'

    async def acquire(self, *, key: str) -> LockHandle:
        client = self.client_factory()
        lock_key = self._lock_key(key)
        token = str(uuid_utils.uuid7())

        attempts = 0
        while True:
            # NX: only set if not exists, PX: expiry in milliseconds
            if await client.set(lock_key, token, nx=True, px=self.ttl_ms):
                Logger.base.debug(f'🔒 [LOCK] Acquired {lock_key} (attempts={attempts + 1})')
                return LockHandle(key=key, token=token)
            attempts += 1
            await anyio.sleep(self.retry_interval)

    async def release(self, *, handle: LockHandle) -> None:
        client = self.client_factory()
        lock_key = self._lock_key(handle.key)
        try:
            result = await client.eval(RELEASE_SCRIPT, 1, lock_key, handle.token)  # type: ignore
        except Exception as e:
            # the key still expires after the TTL
            Logger.base.error(f'❌ [LOCK] Error releasing lock {lock_key}: {e}')
            return

        if result:
            Logger.base.debug(f'🔓 [LOCK] Released lock: {lock_key}')
        else:
            Logger.base.warning(
                f'⚠️ [LOCK] Failed to release lock: {lock_key} (ownership mismatch or expired)'
            )
