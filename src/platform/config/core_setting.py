from pathlib import Path
from typing import List, Literal, Self

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Recreation Reservation Service'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # Database
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'recreation'
    POSTGRES_PORT: int = 5432

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return f'postgresql+asyncpg://{self.POSTGRES_USER}:{password}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'

    # Database pool
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30  # seconds
    DB_POOL_RECYCLE: int = 1800  # seconds
    DB_POOL_PRE_PING: bool = True

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []  # add your frontend URL here

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',')]
        elif isinstance(v, list):
            return v
        return []

    # Kvrocks Configuration (Redis protocol + Kvrocks storage)
    KVROCKS_HOST: str = 'localhost'
    KVROCKS_PORT: int = 6666
    KVROCKS_DB: int = 0
    KVROCKS_PASSWORD: str = ''
    KVROCKS_KEY_PREFIX: str = ''
    REDIS_DECODE_RESPONSES: bool = True

    # Kvrocks Connection Pool Configuration
    KVROCKS_POOL_MAX_CONNECTIONS: int = 50
    KVROCKS_POOL_SOCKET_TIMEOUT: int = 10  # seconds
    KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT: int = 10  # seconds
    KVROCKS_POOL_SOCKET_KEEPALIVE: bool = True
    KVROCKS_POOL_HEALTH_CHECK_INTERVAL: int = 30  # seconds

    # Kafka Configuration
    KAFKA_BOOTSTRAP_SERVERS: str = 'localhost:9092'
    KAFKA_ENABLE_IDEMPOTENCE: bool = True
    KAFKA_ACKS: str = 'all'
    KAFKA_RETRIES: int = 3
    KAFKA_LINGER_MS: int = 10
    KAFKA_COMPRESSION_TYPE: str = 'snappy'
    KAFKA_TOTAL_PARTITIONS: int = 12

    # Reservation finalization policy
    RESERVATION_HOLD_MINUTES: int = 30
    MINIMUM_HOURS_BEFORE_TOUR: int = 24
    FINALIZE_TIMEOUT_SECONDS: float = 30.0
    CURRENCY: str = 'IRR'
    BILL_TYPE: str = 'TourReservation'

    # Reservation lock
    RESERVATION_LOCK_BACKEND: Literal['memory', 'kvrocks'] = 'memory'
    RESERVATION_LOCK_TTL_SECONDS: int = 60
    RESERVATION_LOCK_RETRY_INTERVAL: float = 0.05  # seconds

    @model_validator(mode='after')
    def check_lock_outlives_finalize(self) -> Self:
        # a Kvrocks lock expiring mid-finalize would let a second attempt in
        if self.RESERVATION_LOCK_TTL_SECONDS <= self.FINALIZE_TIMEOUT_SECONDS:
            raise ValueError(
                f'RESERVATION_LOCK_TTL_SECONDS ({self.RESERVATION_LOCK_TTL_SECONDS}) must exceed '
                f'FINALIZE_TIMEOUT_SECONDS ({self.FINALIZE_TIMEOUT_SECONDS})'
            )
        return self

    # External collaborators
    MEMBERSHIP_SERVICE_URL: str = 'http://localhost:8010'
    BILLING_SERVICE_URL: str = 'http://localhost:8020'
    HTTP_CLIENT_TIMEOUT: float = 10.0  # seconds

    # Tracing
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None


settings = Settings()  # type: ignore
