"""
Reservation Event Publisher Interface

Use cases depend on this port, not on Kafka.
"""

from abc import ABC, abstractmethod

from src.service.recreation.domain.domain_event.reservation_held_event import ReservationHeldEvent


class IReservationEventPublisher(ABC):
    @abstractmethod
    async def publish_reservation_held(self, *, event: ReservationHeldEvent) -> None:
        """
        Publish ReservationHeldEvent.

        Raises:
            Exception: delivery failures are raised to the caller, which decides
                whether they matter
        """
        pass
