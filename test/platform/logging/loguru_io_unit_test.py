import pytest

from src.platform.logging.loguru_io import Logger
from src.platform.logging.loguru_io_config import (
    ExtraField,
    _inject_request_context,
    _parse_http_status_level,
    reservation_id_var,
)


@pytest.mark.unit
class TestReservationScope:
    def test_sets_and_restores_reservation_id(self) -> None:
        assert reservation_id_var.get() == '-'

        with Logger.reservation_scope('0190a1b2-0000-7000-8000-000000000001'):
            assert reservation_id_var.get() == '0190a1b2-0000-7000-8000-000000000001'

        assert reservation_id_var.get() == '-'

    def test_patcher_stamps_reservation_and_trace(self) -> None:
        record: dict = {'extra': {}}

        with Logger.reservation_scope('r-1'):
            _inject_request_context(record)  # type: ignore[arg-type]

        assert record['extra'][ExtraField.RESERVATION_ID] == 'r-1'
        # no active span outside a request
        assert record['extra'][ExtraField.TRACE_ID] == '-'
        assert ExtraField.SERVICE_CONTEXT in record['extra']


@pytest.mark.unit
class TestAccessLogLevel:
    @pytest.mark.parametrize(
        'status,level',
        [(201, 'SUCCESS'), (302, 'WARNING'), (409, 'ERROR'), (503, 'CRITICAL')],
    )
    def test_maps_status_code(self, status: int, level: str) -> None:
        message = f'127.0.0.1 - "POST /api/reservation/x/finalize HTTP/1.1" - {status} - 8ms'

        assert _parse_http_status_level(message) == level

    def test_ignores_non_access_logs(self) -> None:
        assert _parse_http_status_level('Pool size is 10') is None
