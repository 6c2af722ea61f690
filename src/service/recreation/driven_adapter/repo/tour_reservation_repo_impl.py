"""
Tour Reservation Repository Implementation

Runs on the unit of work's session; nothing here commits.
"""

from datetime import datetime
import uuid
from typing import List, Optional

from sqlalchemy import func, or_, select, text
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.recreation.app.interface.i_tour_reservation_repo import ITourReservationRepo
from src.service.recreation.domain.entity.price_snapshot_entity import PriceSnapshot
from src.service.recreation.domain.entity.tour_reservation_entity import (
    Participant,
    TourReservation,
)
from src.service.recreation.domain.enum.participant_type import ParticipantType
from src.service.recreation.domain.enum.reservation_status import ReservationStatus
from src.service.recreation.domain.reservation_state_machine import ACTIVE_STATUSES
from src.service.recreation.driven_adapter.model.tour_reservation_model import (
    ReservationParticipantModel,
    ReservationPriceSnapshotModel,
    TourReservationModel,
)


def _uuid(value) -> Optional[UUID]:
    # SQLAlchemy returns stdlib uuid.UUID; entities carry uuid_utils.UUID
    return UUID(str(value)) if value is not None else None


def _pg_uuid(value) -> Optional[uuid.UUID]:
    return uuid.UUID(str(value)) if value is not None else None


class TourReservationRepoImpl(ITourReservationRepo):
    def __init__(self, *, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_participant(db_participant: ReservationParticipantModel) -> Participant:
        return Participant(
            id=UUID(str(db_participant.id)),
            first_name=db_participant.first_name,
            last_name=db_participant.last_name,
            national_number=db_participant.national_number,
            phone_number=db_participant.phone_number,
            participant_type=ParticipantType(db_participant.participant_type),
            email=db_participant.email,
            birth_date=db_participant.birth_date,
            is_main_participant=db_participant.is_main_participant,
            required_amount=db_participant.required_amount,
            paid_amount=db_participant.paid_amount,
            payment_date=db_participant.payment_date,
        )

    @staticmethod
    def _to_snapshot(db_snapshot: ReservationPriceSnapshotModel) -> PriceSnapshot:
        return PriceSnapshot(
            id=UUID(str(db_snapshot.id)),
            reservation_id=UUID(str(db_snapshot.reservation_id)),
            participant_type=ParticipantType(db_snapshot.participant_type),
            base_price=db_snapshot.base_price,
            final_price=db_snapshot.final_price,
            participant_count=db_snapshot.participant_count,
            pricing_rule_id=_uuid(db_snapshot.pricing_rule_id),
            snapshot_date=db_snapshot.snapshot_date,
            discount_amount=db_snapshot.discount_amount,
            discount_code=db_snapshot.discount_code,
            rule_description=db_snapshot.rule_description,
            applied_capabilities=db_snapshot.applied_capabilities or (),
            applied_features=db_snapshot.applied_features or (),
        )

    @classmethod
    def _to_entity(cls, db_reservation: TourReservationModel) -> TourReservation:
        return TourReservation(
            id=UUID(str(db_reservation.id)),
            tour_id=UUID(str(db_reservation.tour_id)),
            tracking_code=db_reservation.tracking_code,
            external_user_id=db_reservation.external_user_id,
            reservation_date=db_reservation.reservation_date,
            status=ReservationStatus(db_reservation.status),
            capacity_id=_uuid(db_reservation.capacity_id),
            member_id=_uuid(db_reservation.member_id),
            expiry_date=db_reservation.expiry_date,
            bill_id=_uuid(db_reservation.bill_id),
            total_amount=db_reservation.total_amount,
            participants=[cls._to_participant(p) for p in db_reservation.participants],
            price_snapshots=[cls._to_snapshot(s) for s in db_reservation.price_snapshots],
            notes=db_reservation.notes,
            updated_at=db_reservation.updated_at,
        )

    @staticmethod
    def _live_filter(as_of: datetime):
        return (
            TourReservationModel.status.in_([s.value for s in ACTIVE_STATUSES]),
            or_(
                TourReservationModel.expiry_date.is_(None),
                TourReservationModel.expiry_date > as_of,
            ),
        )

    @Logger.io
    async def get_by_id(self, *, reservation_id: UUID) -> Optional[TourReservation]:
        result = await self.session.execute(
            select(TourReservationModel).where(
                TourReservationModel.id == _pg_uuid(reservation_id)
            )
        )
        db_reservation = result.scalar_one_or_none()
        if not db_reservation:
            return None
        return self._to_entity(db_reservation)

    @Logger.io
    async def get_by_tour_and_national_number(
        self, *, tour_id: UUID, national_number: str
    ) -> List[TourReservation]:
        reservation_ids = (
            select(ReservationParticipantModel.reservation_id)
            .where(ReservationParticipantModel.national_number == national_number)
            .scalar_subquery()
        )
        result = await self.session.execute(
            select(TourReservationModel)
            .where(
                TourReservationModel.tour_id == _pg_uuid(tour_id),
                TourReservationModel.id.in_(reservation_ids),
            )
            .order_by(TourReservationModel.reservation_date.desc())
        )
        return [self._to_entity(r) for r in result.scalars().all()]

    @Logger.io
    async def get_capacity_utilization(self, *, capacity_id: UUID, as_of: datetime) -> int:
        result = await self.session.execute(
            select(func.count(ReservationParticipantModel.id))
            .join(
                TourReservationModel,
                TourReservationModel.id == ReservationParticipantModel.reservation_id,
            )
            .where(
                TourReservationModel.capacity_id == _pg_uuid(capacity_id),
                *self._live_filter(as_of),
            )
        )
        return result.scalar_one() or 0

    @Logger.io
    async def get_tour_utilization(self, *, tour_id: UUID, as_of: datetime) -> int:
        result = await self.session.execute(
            select(func.count(ReservationParticipantModel.id))
            .join(
                TourReservationModel,
                TourReservationModel.id == ReservationParticipantModel.reservation_id,
            )
            .where(
                TourReservationModel.tour_id == _pg_uuid(tour_id),
                *self._live_filter(as_of),
            )
        )
        return result.scalar_one() or 0

    @Logger.io
    async def lock_tour_capacity(self, *, tour_id: UUID) -> None:
        """
        Transaction-scoped advisory lock keyed by the tour.

        Released by PostgreSQL on commit or rollback, so capacity reads and the
        held write happen under one lock.
        """
        await self.session.execute(
            text('SELECT pg_advisory_xact_lock(hashtext(:key))'),
            {'key': f'tour-capacity:{tour_id}'},
        )

    @Logger.io
    async def update(self, *, reservation: TourReservation) -> None:
        result = await self.session.execute(
            select(TourReservationModel).where(
                TourReservationModel.id == _pg_uuid(reservation.id)
            )
        )
        db_reservation = result.scalar_one_or_none()
        if not db_reservation:
            raise ValueError(f'Reservation with id {reservation.id} not found')

        db_reservation.status = reservation.status.value
        db_reservation.expiry_date = reservation.expiry_date
        db_reservation.bill_id = _pg_uuid(reservation.bill_id)
        db_reservation.total_amount = reservation.total_amount
        db_reservation.member_id = _pg_uuid(reservation.member_id)
        db_reservation.notes = reservation.notes

        amounts = {str(p.id): p.required_amount for p in reservation.participants}
        for db_participant in db_reservation.participants:
            key = str(db_participant.id)
            if key in amounts:
                db_participant.required_amount = amounts[key]

        existing = {str(s.id) for s in db_reservation.price_snapshots}
        for snapshot in reservation.price_snapshots:
            if str(snapshot.id) in existing:
                continue
            db_reservation.price_snapshots.append(
                ReservationPriceSnapshotModel(
                    id=_pg_uuid(snapshot.id),
                    reservation_id=_pg_uuid(reservation.id),
                    participant_type=snapshot.participant_type.value,
                    base_price=snapshot.base_price,
                    final_price=snapshot.final_price,
                    participant_count=snapshot.participant_count,
                    pricing_rule_id=_pg_uuid(snapshot.pricing_rule_id),
                    snapshot_date=snapshot.snapshot_date,
                    discount_amount=snapshot.discount_amount,
                    discount_code=snapshot.discount_code,
                    rule_description=snapshot.rule_description,
                    applied_capabilities=list(snapshot.applied_capabilities),
                    applied_features=list(snapshot.applied_features),
                )
            )

        await self.session.flush()
        Logger.base.info(
            f'🎫 [RESERVATION] Updated {reservation.tracking_code} -> {reservation.status}'
        )
