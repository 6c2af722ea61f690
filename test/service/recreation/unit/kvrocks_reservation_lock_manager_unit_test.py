from unittest.mock import AsyncMock

import pytest

from src.service.recreation.app.interface.i_reservation_lock_manager import LockHandle
from src.service.recreation.driven_adapter.lock.kvrocks_reservation_lock_manager import (
    RELEASE_SCRIPT,
    KvrocksReservationLockManager,
)


@pytest.fixture
def mock_redis() -> AsyncMock:
    client = AsyncMock()
    client.set = AsyncMock(return_value=True)
    client.eval = AsyncMock(return_value=1)
    return client


@pytest.fixture
def lock_manager(mock_redis: AsyncMock) -> KvrocksReservationLockManager:
    return KvrocksReservationLockManager(
        ttl_seconds=60,
        retry_interval=0,
        key_prefix='test_',
        client_factory=lambda: mock_redis,
    )


@pytest.mark.unit
class TestKvrocksReservationLockManager:
    @pytest.mark.asyncio
    async def test_acquire_sets_key_with_nx_and_ttl(
        self, lock_manager: KvrocksReservationLockManager, mock_redis: AsyncMock
    ) -> None:
        handle = await lock_manager.acquire(key='r-1')

        mock_redis.set.assert_awaited_once_with(
            'test_lock:reservation:r-1', handle.token, nx=True, px=60_000
        )
        assert handle.key == 'r-1'

    @pytest.mark.asyncio
    async def test_acquire_retries_until_free(
        self, lock_manager: KvrocksReservationLockManager, mock_redis: AsyncMock
    ) -> None:
        mock_redis.set.side_effect = [None, None, True]

        await lock_manager.acquire(key='r-1')

        assert mock_redis.set.await_count == 3

    @pytest.mark.asyncio
    async def test_release_checks_token(
        self, lock_manager: KvrocksReservationLockManager, mock_redis: AsyncMock
    ) -> None:
        await lock_manager.release(handle=LockHandle(key='r-1', token='token-1'))

        mock_redis.eval.assert_awaited_once_with(
            RELEASE_SCRIPT, 1, 'test_lock:reservation:r-1', 'token-1'
        )

    @pytest.mark.asyncio
    async def test_release_errors_are_not_raised(
        self, lock_manager: KvrocksReservationLockManager, mock_redis: AsyncMock
    ) -> None:
        mock_redis.eval.side_effect = ConnectionError('kvrocks down')

        await lock_manager.release(handle=LockHandle(key='r-1', token='token-1'))

    def test_ttl_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            KvrocksReservationLockManager(ttl_seconds=0, client_factory=AsyncMock)
