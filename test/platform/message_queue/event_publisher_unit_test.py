import asyncio
from unittest.mock import AsyncMock, patch

import orjson
import pytest
import uuid_utils

from src.platform.message_queue.event_publisher import (
    publish_integration_event,
    serialize_event_payload,
)
from src.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder


@pytest.fixture
def mock_producer() -> AsyncMock:
    producer = AsyncMock()

    async def produce(**kwargs):
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        future.set_result(None)
        return future

    producer.produce = AsyncMock(side_effect=produce)
    return producer


@pytest.mark.unit
class TestPublishIntegrationEvent:
    @pytest.mark.asyncio
    async def test_publishes_json_with_key_and_event_type_header(
        self, mock_producer: AsyncMock
    ) -> None:
        tour_id = str(uuid_utils.uuid7())

        with patch(
            'src.platform.message_queue.event_publisher._get_global_producer',
            AsyncMock(return_value=mock_producer),
        ):
            result = await publish_integration_event(
                event_type='ReservationHeldEvent',
                payload={'tour_id': tour_id, 'total_amount': 500_000},
                topic=KafkaTopicBuilder.reservation_held(),
                key=tour_id,
            )

        assert result is True
        kwargs = mock_producer.produce.await_args.kwargs
        assert kwargs['topic'] == 'tour-reservation______reservation-held______recreation-service'
        assert kwargs['key'] == tour_id.encode()
        assert orjson.loads(kwargs['value']) == {'tour_id': tour_id, 'total_amount': 500_000}
        assert ('event_type', 'ReservationHeldEvent') in kwargs['headers']

    @pytest.mark.asyncio
    async def test_delivery_failure_is_raised(self, mock_producer: AsyncMock) -> None:
        async def produce(**kwargs):
            future: asyncio.Future = asyncio.get_running_loop().create_future()
            future.set_exception(RuntimeError('delivery failed'))
            return future

        mock_producer.produce.side_effect = produce

        with patch(
            'src.platform.message_queue.event_publisher._get_global_producer',
            AsyncMock(return_value=mock_producer),
        ):
            with pytest.raises(RuntimeError, match='delivery failed'):
                await publish_integration_event(
                    event_type='ReservationHeldEvent',
                    payload={},
                    topic=KafkaTopicBuilder.reservation_held(),
                    key='k',
                )


@pytest.mark.unit
class TestSerializeEventPayload:
    def test_uuid_utils_values_become_strings(self) -> None:
        value = uuid_utils.uuid7()
        assert orjson.loads(serialize_event_payload({'id': value})) == {'id': str(value)}
