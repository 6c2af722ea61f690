from contextvars import ContextVar
from datetime import datetime, timezone
from enum import StrEnum
import logging
import os
from pathlib import Path
import re
import sys
from typing import TYPE_CHECKING

from loguru import logger as loguru_logger
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.logging.service_context import get_service_context


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger
    from loguru import Record


# <repo>/logs, or the directory tests point TEST_LOG_DIR at
LOG_DIR = os.environ.get('TEST_LOG_DIR', str(Path(__file__).resolve().parents[3] / 'logs'))

SENSITIVE_KEYWORDS = {
    'password',
    'national_number',
    'national_code',
    'phone_number',
    'email',
}

chain_start_time_var: ContextVar[float] = ContextVar('chain_start_time_var', default=0)
call_depth_var: ContextVar[int] = ContextVar('call_depth_var', default=0)
reservation_id_var: ContextVar[str] = ContextVar('reservation_id_var', default='-')


class ExtraField(StrEnum):
    SERVICE_CONTEXT = 'service_context'
    CHAIN_START_TIME = 'chain_start_time'
    CALL_TARGET = 'call_target'
    RESERVATION_ID = 'reservation_id'
    TRACE_ID = 'trace_id'


DEFAULT_EXTRA = {
    ExtraField.CHAIN_START_TIME: '',
    ExtraField.CALL_TARGET: '',
}

# granian access log: 127.0.0.1 - "POST /api/reservation/{id}/finalize HTTP/1.1" - 200 - 8ms
_ACCESS_LOG_STATUS = re.compile(r'" - (?P<status>\d{3}) ')


def _parse_http_status_level(message: str) -> str | None:
    if ' HTTP/' not in message or not (match := _ACCESS_LOG_STATUS.search(message)):
        return None

    status_code = int(match.group('status'))
    if status_code >= 500:
        return 'CRITICAL'
    if status_code >= 400:
        return 'ERROR'
    if status_code >= 300:
        return 'WARNING'
    if status_code >= 200:
        return 'SUCCESS'
    return 'INFO'


def _inject_request_context(record: 'Record') -> None:
    """Stamp every record with the reservation being finalized and the active trace id"""
    extra = record['extra']
    extra.setdefault(ExtraField.SERVICE_CONTEXT, get_service_context())
    extra[ExtraField.RESERVATION_ID] = reservation_id_var.get()

    span_context = trace.get_current_span().get_span_context()
    extra[ExtraField.TRACE_ID] = (
        format(span_context.trace_id, '032x')[:16] if span_context.is_valid else '-'
    )


class InterceptHandler(logging.Handler):
    """Routes stdlib logging (granian, sqlalchemy, httpx, kafka) into loguru"""

    _QUIET_DEBUG_LOGGERS = ('asyncio', 'kafka', 'httpcore')

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno <= logging.DEBUG and record.name.startswith(self._QUIET_DEBUG_LOGGERS):
            return

        message = record.getMessage()
        level = _parse_http_status_level(message)
        if level is None:
            try:
                level = loguru_logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        custom_logger.opt(depth=depth, exception=record.exc_info).log(level, message)


io_log_format = ' | '.join(
    (
        f'<c>{{extra[{ExtraField.SERVICE_CONTEXT}]}}</>',
        '<lvl>{level:<8}</>',
        f'<m>{{extra[{ExtraField.TRACE_ID}]}}</>',
        f'<m>{{extra[{ExtraField.RESERVATION_ID}]}}</>',
        f'<c>{{file}}::{{function}}:{{line}}</>=><y>{{extra[{ExtraField.CALL_TARGET}]}}</>',
        '{message}',
        '<lk>{elapsed}</>',
        f'<lk>{{extra[{ExtraField.CHAIN_START_TIME}]:<18}}</>',
    )
)


def _log_file_path() -> str:
    hour = datetime.now(timezone.utc).strftime('%Y-%m-%d_%H')
    prefix = 'test_' if os.environ.get('TEST_LOG_DIR') else ''
    return f'{LOG_DIR}/{prefix}{hour}.log'


def _configure_sinks(*, level: str) -> None:
    loguru_logger.remove()
    loguru_logger.configure(patcher=_inject_request_context)
    loguru_logger.add(sys.stdout, format=io_log_format, level=level, enqueue=True)

    # Production logs go to stdout only
    if settings.DEBUG:
        loguru_logger.add(
            _log_file_path(),
            format=io_log_format,
            rotation='1 hour',
            retention='7 days',
            compression='gz',
            enqueue=True,
            level=level,
        )


_configure_sinks(level='DEBUG' if settings.DEBUG else 'INFO')
custom_logger: 'LoguruLogger' = loguru_logger.bind(**DEFAULT_EXTRA)

logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
