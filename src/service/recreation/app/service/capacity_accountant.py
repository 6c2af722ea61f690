"""
Capacity Accountant

Decides whether a reservation's participants still fit into the selected
capacity window, or into the whole tour when no window was selected.

    available = max_participants - utilization + existing_for_member

`utilization` counts participants of held, paying and confirmed reservations
that have not expired. `existing_for_member` credits back the member's own
other live reservations (same window for the window case), which are part of
`utilization` already.
"""

from datetime import datetime
from typing import List

from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.recreation.app.dto.capacity_check import CapacityCheck
from src.service.recreation.app.interface.i_tour_reservation_repo import ITourReservationRepo
from src.service.recreation.domain.entity.tour_entity import Tour
from src.service.recreation.domain.entity.tour_reservation_entity import TourReservation
from src.service.recreation.domain.exception.finalization_rejected import FinalizationRejected


class CapacityAccountant:
    def __init__(self, *, reservation_repo: ITourReservationRepo) -> None:
        self.reservation_repo = reservation_repo

    async def utilization_for_capacity(self, *, capacity_id: UUID, as_of: datetime) -> int:
        return await self.reservation_repo.get_capacity_utilization(
            capacity_id=capacity_id, as_of=as_of
        )

    async def utilization_for_tour(self, *, tour_id: UUID, as_of: datetime) -> int:
        return await self.reservation_repo.get_tour_utilization(tour_id=tour_id, as_of=as_of)

    @Logger.io
    async def ensure_capacity(
        self,
        *,
        tour: Tour,
        reservation: TourReservation,
        member_reservations: List[TourReservation],
        as_of: datetime,
    ) -> CapacityCheck:
        """
        Raises:
            FinalizationRejected: PRECONDITION_FAILED for an unusable window,
                CAPACITY_EXCEEDED when the participants do not fit
        """
        requested = len(reservation.participants)
        others = [
            r for r in member_reservations if r.id != reservation.id and r.is_live(as_of)
        ]

        if reservation.capacity_id is not None:
            capacity = tour.find_capacity(reservation.capacity_id)
            if capacity is None:
                raise FinalizationRejected.precondition_failed('Selected capacity was not found')
            if not capacity.is_active:
                raise FinalizationRejected.precondition_failed('Selected capacity is not active')
            if not capacity.is_registration_open(as_of):
                raise FinalizationRejected.precondition_failed(
                    'Registration for the selected capacity is closed'
                )
            if capacity.max_participants < requested:
                raise FinalizationRejected.capacity_exceeded(
                    f'Selected capacity allows at most {capacity.max_participants} participants'
                )

            check = CapacityCheck(
                capacity_id=capacity.id,
                capacity_name=capacity.description,
                max_participants=capacity.max_participants,
                utilization=await self.utilization_for_capacity(
                    capacity_id=capacity.id, as_of=as_of
                ),
                existing_for_member=sum(
                    len(r.participants) for r in others if r.capacity_id == capacity.id
                ),
                requested=requested,
            )
            if check.available < requested:
                raise FinalizationRejected.capacity_exceeded(
                    'Not enough room in the selected capacity. '
                    f'Remaining: {max(check.available, 0)}'
                )
            return check

        check = CapacityCheck(
            capacity_id=None,
            capacity_name=None,
            max_participants=tour.max_participants,
            utilization=await self.utilization_for_tour(tour_id=tour.id, as_of=as_of),
            existing_for_member=sum(len(r.participants) for r in others),
            requested=requested,
        )
        if check.available < requested:
            raise FinalizationRejected.capacity_exceeded(
                f'Not enough room on the tour. Remaining: {max(check.available, 0)}'
            )
        return check
