"""
Integration Event Publisher

Event publishing using confluent-kafka's experimental AsyncIO Producer.
Payloads are orjson-encoded JSON.

Features:
- Global async producer instance for connection reuse
- Idempotent producer with acks=all for reliability
- Message key decides the partition, so events with the same key stay ordered
- Trace context travels in the message headers
"""

from typing import Any, Literal

from confluent_kafka.experimental.aio import AIOProducer
from opentelemetry import trace
import orjson

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import inject_trace_context


# Global async producer instance
_global_producer: AIOProducer | None = None


def _default(value: Any) -> Any:
    # uuid_utils.UUID, Decimal and enums are not native to orjson
    return str(value)


def serialize_event_payload(payload: dict[str, Any]) -> bytes:
    return orjson.dumps(payload, default=_default)


async def _get_global_producer() -> AIOProducer:
    """Get global async producer instance - avoid creating new producer on every publish"""
    global _global_producer
    if _global_producer is None:
        _global_producer = AIOProducer(
            {
                'bootstrap.servers': settings.KAFKA_BOOTSTRAP_SERVERS,
                # === Reliability Settings ===
                'enable.idempotence': settings.KAFKA_ENABLE_IDEMPOTENCE,
                'acks': settings.KAFKA_ACKS,
                'retries': settings.KAFKA_RETRIES,
                # === Batching ===
                'linger.ms': settings.KAFKA_LINGER_MS,
                # === Compression ===
                'compression.type': settings.KAFKA_COMPRESSION_TYPE,
                'max.in.flight.requests.per.connection': 5,
            }
        )
    return _global_producer


async def publish_integration_event(
    *,
    event_type: str,
    payload: dict[str, Any],
    topic: str,
    key: str,
) -> Literal[True]:
    """
    Publish an integration event to a Kafka topic and wait for the delivery report.

    Example:
        await publish_integration_event(
            event_type='ReservationHeldEvent',
            payload=event.to_payload(),
            topic=KafkaTopicBuilder.reservation_held(),
            key=str(event.tour_id),
        )
    """
    tracer = trace.get_tracer(__name__)

    with tracer.start_as_current_span(
        'kafka.publish',
        attributes={
            'messaging.system': 'kafka',
            'messaging.destination': topic,
            'messaging.destination_kind': 'topic',
            'messaging.kafka.message_key': key,
            'event.type': event_type,
        },
    ):
        headers = inject_trace_context(headers={'event_type': event_type})
        value_bytes = serialize_event_payload(payload)

        producer = await _get_global_producer()
        # produce() resolves to a Future completed by the delivery report
        delivery = await producer.produce(
            topic=topic,
            key=key.encode(),
            value=value_bytes,
            headers=list(headers.items()),
        )
        await delivery

        Logger.base.info(f'📤 Published {event_type} to {topic} (key={key})')

        return True


async def close_producer() -> None:
    global _global_producer
    if _global_producer is not None:
        await _global_producer.flush()
        await _global_producer.close()
        _global_producer = None
        Logger.base.info('Closed async producer')
