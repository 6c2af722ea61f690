from datetime import date, datetime, timedelta
import re
from typing import List, Optional

import attrs
from uuid_utils import UUID

from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.service.recreation.domain import reservation_state_machine
from src.service.recreation.domain.entity.price_snapshot_entity import PriceSnapshot
from src.service.recreation.domain.enum.participant_type import ParticipantType
from src.service.recreation.domain.enum.reservation_status import ReservationStatus


DEFAULT_HOLD_MINUTES = 30

_NATIONAL_NUMBER_PATTERN = re.compile(r'^\d{10}$')


@attrs.define
class Participant:
    id: UUID
    first_name: str
    last_name: str
    national_number: str
    phone_number: str
    participant_type: ParticipantType
    email: Optional[str] = None
    birth_date: Optional[date] = None
    is_main_participant: bool = False
    required_amount: Optional[int] = None
    paid_amount: Optional[int] = None
    payment_date: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'.strip()

    def age_at(self, on: date) -> Optional[int]:
        if self.birth_date is None:
            return None
        had_birthday = (on.month, on.day) >= (self.birth_date.month, self.birth_date.day)
        return on.year - self.birth_date.year - (0 if had_birthday else 1)

    def identity_errors(self) -> list[str]:
        errors = []
        if not self.first_name.strip() or not self.last_name.strip():
            errors.append('first and last name are required')
        if not _NATIONAL_NUMBER_PATTERN.match(self.national_number):
            errors.append('national number must be 10 digits')
        if not self.phone_number.strip():
            errors.append('phone number is required')
        return errors


@attrs.define
class TourReservation:
    id: UUID
    tour_id: UUID
    tracking_code: str
    external_user_id: str
    reservation_date: datetime
    status: ReservationStatus = ReservationStatus.DRAFT
    capacity_id: Optional[UUID] = None
    member_id: Optional[UUID] = None
    expiry_date: Optional[datetime] = None
    bill_id: Optional[UUID] = None
    total_amount: Optional[int] = None
    participants: List[Participant] = attrs.field(factory=list)
    price_snapshots: List[PriceSnapshot] = attrs.field(factory=list)
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def member_participant_count(self) -> int:
        return sum(1 for p in self.participants if p.participant_type == ParticipantType.MEMBER)

    @property
    def guest_participant_count(self) -> int:
        return sum(1 for p in self.participants if p.participant_type == ParticipantType.GUEST)

    @property
    def main_participant(self) -> Optional[Participant]:
        return next((p for p in self.participants if p.is_main_participant), None)

    def is_expired(self, now: datetime) -> bool:
        return self.expiry_date is not None and self.expiry_date <= now

    def is_live(self, now: datetime) -> bool:
        """Whether this reservation currently consumes tour capacity"""
        return reservation_state_machine.is_active(self.status) and not self.is_expired(now)

    def can_finalize(self, now: datetime) -> tuple[bool, Optional[str]]:
        if self.status != ReservationStatus.DRAFT:
            return False, f'Reservation is not finalizable in status {self.status}'
        if self.is_expired(now):
            return False, 'Reservation is not finalizable: it has expired'
        return True, None

    def conflicts_with_new_reservation(self, now: datetime) -> bool:
        return self.is_live(now)

    def participants_by_type(self) -> dict[ParticipantType, List[Participant]]:
        groups: dict[ParticipantType, List[Participant]] = {}
        for participant in self.participants:
            groups.setdefault(participant.participant_type, []).append(participant)
        return groups

    @Logger.io
    def apply_pricing(
        self, *, snapshots: List[PriceSnapshot], amounts: dict[UUID, int]
    ) -> 'TourReservation':
        """
        Attach the group snapshots and per-participant amounts.

        The total is derived from the snapshots only, so it can never drift from
        what gets billed.
        """
        if self.status != ReservationStatus.DRAFT:
            raise DomainError('Pricing can only be applied to a draft reservation')
        participants = [
            attrs.evolve(p, required_amount=amounts[p.id]) if p.id in amounts else p
            for p in self.participants
        ]
        return attrs.evolve(
            self,
            participants=participants,
            price_snapshots=list(snapshots),
            total_amount=sum(s.line_total for s in snapshots),
        )

    @Logger.io
    def hold(
        self, *, bill_id: UUID, now: datetime, hold_minutes: int = DEFAULT_HOLD_MINUTES
    ) -> 'TourReservation':
        reservation_state_machine.validate_transition(self.status, ReservationStatus.HELD)
        if hold_minutes <= 0:
            raise DomainError('Hold duration must be positive')
        return attrs.evolve(
            self,
            status=ReservationStatus.HELD,
            bill_id=bill_id,
            expiry_date=now + timedelta(minutes=hold_minutes),
            updated_at=now,
        )
