"""
Recreation Reservation Service - FastAPI Application

Serves reservation finalization; publishes integration events to Kafka.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio.to_thread
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import cleanup, container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.orm_db_setting import create_db_and_tables, dispose_engine, get_engine
from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.event_publisher import close_producer
from src.platform.message_queue.kafka_topic_initializer import KafkaTopicInitializer
from src.platform.observability.tracing import TracingConfig
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.recreation.driven_adapter import model  # noqa: F401  registers tables


SERVICE_NAME = 'recreation-reservation-service'


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Recreation Service] Starting up...')

    tracing = TracingConfig(service_name=SERVICE_NAME)
    tracing.setup()
    Logger.base.info('📊 [Recreation Service] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Recreation Service] Dependency injection wired')

    tracing.instrument_sqlalchemy(engine=get_engine())
    await create_db_and_tables()
    Logger.base.info('🗄️  [Recreation Service] Database engine ready + tables ensured')

    uses_kvrocks = settings.RESERVATION_LOCK_BACKEND == 'kvrocks'
    if uses_kvrocks:
        tracing.instrument_redis()
        await kvrocks_client.initialize()
        Logger.base.info('📡 [Recreation Service] Kvrocks initialized for reservation locks')

    topics_ready = await anyio.to_thread.run_sync(KafkaTopicInitializer().ensure_topics_exist)
    if not topics_ready:
        Logger.base.warning('⚠️ [Recreation Service] Kafka topics could not be ensured')

    Logger.base.info('✅ [Recreation Service] Ready to serve requests')

    yield

    Logger.base.info('🛑 [Recreation Service] Shutting down...')

    try:
        await close_producer()
        Logger.base.info('📤 [Recreation Service] Kafka producer closed')
    except Exception as e:
        Logger.base.error(f'❌ [Recreation Service] Failed to close Kafka producer: {e}')

    await cleanup()
    Logger.base.info('🌐 [Recreation Service] HTTP clients closed')

    if uses_kvrocks:
        await kvrocks_client.disconnect()
        Logger.base.info('📡 [Recreation Service] Kvrocks disconnected')

    await dispose_engine()
    tracing.shutdown()
    container.unwire()

    Logger.base.info('👋 [Recreation Service] Shutdown complete')


app = create_app(lifespan=lifespan, service_name=SERVICE_NAME)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
