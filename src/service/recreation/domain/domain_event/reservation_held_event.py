"""
Reservation Held integration event

Published after a draft reservation has been finalized and committed as held.
Consumers (notifications, finance, reporting) get everything they need in the
payload and never have to call back into this service.
"""

from datetime import datetime
from typing import Any, List, Optional

import attrs
from uuid_utils import UUID

from src.service.recreation.domain.entity.tour_entity import Tour, TourCapacity
from src.service.recreation.domain.entity.tour_reservation_entity import TourReservation
from src.service.recreation.domain.enum.reservation_status import ReservationStatus


@attrs.define(frozen=True)
class HeldParticipant:
    first_name: str
    last_name: str
    full_name: str
    national_number: str
    phone_number: str
    email: Optional[str]
    participant_type: str
    is_main_participant: bool
    required_amount: Optional[int]
    age: Optional[int]


@attrs.define(frozen=True)
class HeldPriceSnapshot:
    participant_type: str
    base_price: int
    final_price: int
    participant_count: int
    discount_amount: Optional[int]
    pricing_rule_id: Optional[UUID]
    rule_description: Optional[str]


@attrs.define(frozen=True)
class ReservationHeldEvent:
    reservation_id: UUID
    tracking_code: str
    tour_id: UUID
    tour_title: str
    tour_start: datetime
    tour_end: datetime
    reservation_date: datetime
    expiry_date: datetime
    held_at: datetime
    external_user_id: str
    user_full_name: str
    user_national_code: str
    member_id: Optional[UUID]
    previous_status: ReservationStatus
    status: ReservationStatus
    total_amount: int
    currency: str
    capacity_id: Optional[UUID]
    capacity_name: Optional[str]
    bill_id: UUID
    bill_number: str
    participant_count: int
    member_participant_count: int
    guest_participant_count: int
    participants: List[HeldParticipant]
    price_snapshots: List[HeldPriceSnapshot]
    metadata: dict[str, str] = attrs.field(factory=dict)

    @property
    def aggregate_id(self) -> UUID:
        return self.reservation_id

    @property
    def occurred_at(self) -> datetime:
        return self.held_at

    @classmethod
    def from_held_reservation(
        cls,
        *,
        reservation: TourReservation,
        tour: Tour,
        capacity: Optional[TourCapacity],
        user_full_name: str,
        user_national_code: str,
        bill_number: str,
        currency: str,
    ) -> 'ReservationHeldEvent':
        if (
            reservation.status != ReservationStatus.HELD
            or reservation.expiry_date is None
            or reservation.bill_id is None
        ):
            raise ValueError(
                'ReservationHeldEvent requires a held reservation with bill and expiry'
            )

        tour_day = tour.tour_start.date()
        participants = [
            HeldParticipant(
                first_name=p.first_name,
                last_name=p.last_name,
                full_name=p.full_name,
                national_number=p.national_number,
                phone_number=p.phone_number,
                email=p.email,
                participant_type=str(p.participant_type),
                is_main_participant=p.is_main_participant,
                required_amount=p.required_amount,
                age=p.age_at(tour_day),
            )
            for p in reservation.participants
        ]
        snapshots = [
            HeldPriceSnapshot(
                participant_type=str(s.participant_type),
                base_price=s.base_price,
                final_price=s.final_price,
                participant_count=s.participant_count,
                discount_amount=s.discount_amount,
                pricing_rule_id=s.pricing_rule_id,
                rule_description=s.rule_description,
            )
            for s in reservation.price_snapshots
        ]
        return cls(
            reservation_id=reservation.id,
            tracking_code=reservation.tracking_code,
            tour_id=tour.id,
            tour_title=tour.title,
            tour_start=tour.tour_start,
            tour_end=tour.tour_end,
            reservation_date=reservation.reservation_date,
            expiry_date=reservation.expiry_date,
            held_at=reservation.updated_at or reservation.reservation_date,
            external_user_id=reservation.external_user_id,
            user_full_name=user_full_name,
            user_national_code=user_national_code,
            member_id=reservation.member_id,
            previous_status=ReservationStatus.DRAFT,
            status=reservation.status,
            total_amount=reservation.total_amount or 0,
            currency=currency,
            capacity_id=capacity.id if capacity else None,
            capacity_name=capacity.description if capacity else None,
            bill_id=reservation.bill_id,
            bill_number=bill_number,
            participant_count=len(reservation.participants),
            member_participant_count=reservation.member_participant_count,
            guest_participant_count=reservation.guest_participant_count,
            participants=participants,
            price_snapshots=snapshots,
            metadata={
                'source': 'reservation_finalization',
                'tracking_code': reservation.tracking_code,
            },
        )

    def to_payload(self) -> dict[str, Any]:
        return attrs.asdict(self, recurse=True)
