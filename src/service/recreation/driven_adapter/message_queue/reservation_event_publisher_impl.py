"""
Reservation Event Publisher Implementation

Publishes reservation integration events to Kafka. The tour id is the message
key, so every event of one tour lands on the same partition in order.
"""

from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.event_publisher import publish_integration_event
from src.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder
from src.service.recreation.app.interface.i_reservation_event_publisher import (
    IReservationEventPublisher,
)
from src.service.recreation.domain.domain_event.reservation_held_event import ReservationHeldEvent


class ReservationEventPublisherImpl(IReservationEventPublisher):
    @Logger.io
    async def publish_reservation_held(self, *, event: ReservationHeldEvent) -> None:
        await publish_integration_event(
            event_type=ReservationHeldEvent.__name__,
            payload=event.to_payload(),
            topic=KafkaTopicBuilder.reservation_held(),
            key=str(event.tour_id),
        )
