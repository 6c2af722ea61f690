from pydantic import ValidationError
import pytest

from src.platform.config.core_setting import Settings


@pytest.mark.unit
class TestReservationLockSettings:
    def test_lock_ttl_longer_than_finalize_timeout_is_accepted(self) -> None:
        settings = Settings(RESERVATION_LOCK_TTL_SECONDS=45, FINALIZE_TIMEOUT_SECONDS=30)

        assert settings.RESERVATION_LOCK_TTL_SECONDS == 45

    @pytest.mark.parametrize('ttl', [10, 30])
    def test_lock_ttl_not_exceeding_finalize_timeout_is_rejected(self, ttl: int) -> None:
        with pytest.raises(ValidationError, match='must exceed FINALIZE_TIMEOUT_SECONDS'):
            Settings(RESERVATION_LOCK_TTL_SECONDS=ttl, FINALIZE_TIMEOUT_SECONDS=30)
