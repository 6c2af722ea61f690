from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from uuid_utils import UUID

from src.service.recreation.domain.entity.tour_reservation_entity import TourReservation


class ITourReservationRepo(ABC):
    """Repository interface for tour reservations; bound to the unit of work's transaction"""

    @abstractmethod
    async def get_by_id(self, *, reservation_id: UUID) -> Optional[TourReservation]:
        """Load a reservation with its participants and price snapshots"""
        pass

    @abstractmethod
    async def get_by_tour_and_national_number(
        self, *, tour_id: UUID, national_number: str
    ) -> List[TourReservation]:
        """Reservations on a tour that list a participant with `national_number`, newest first"""
        pass

    @abstractmethod
    async def get_capacity_utilization(self, *, capacity_id: UUID, as_of: datetime) -> int:
        """Participants in held, paying or confirmed reservations not expired at `as_of`"""
        pass

    @abstractmethod
    async def get_tour_utilization(self, *, tour_id: UUID, as_of: datetime) -> int:
        pass

    @abstractmethod
    async def lock_tour_capacity(self, *, tour_id: UUID) -> None:
        """Serialize capacity decisions for a tour until the transaction ends"""
        pass

    @abstractmethod
    async def update(self, *, reservation: TourReservation) -> None:
        pass
