"""
Test Configuration

Environment setup MUST happen before any application import: settings and the
loguru sinks are created at import time.

Architecture:
- Unit tests (test/**/unit/): in-memory fakes, no PostgreSQL/Kvrocks/Kafka
"""

import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    os.environ.setdefault('POSTGRES_DB', 'recreation_reservation_test_db')
    os.environ.setdefault('KVROCKS_KEY_PREFIX', 'test_')
    os.environ.setdefault('RESERVATION_LOCK_BACKEND', 'memory')
    os.environ.setdefault('DB_POOL_SIZE', '2')
    os.environ.setdefault('DB_POOL_MAX_OVERFLOW', '2')


# Call immediately to set env vars before any imports
_early_setup_test_environment()
