from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import ARRAY, BigInteger, Boolean, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base


class TourReservationModel(Base):
    __tablename__ = 'tour_reservation'

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)  # UUID7
    tour_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey('tour.id'), nullable=False, index=True
    )
    capacity_id: Mapped[Optional[UUID]] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey('tour_capacity.id'), nullable=True, index=True
    )
    tracking_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    external_user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    member_id: Mapped[Optional[UUID]] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default='draft', nullable=False)
    reservation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expiry_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    bill_id: Mapped[Optional[UUID]] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    total_amount: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    participants: Mapped[List['ReservationParticipantModel']] = relationship(
        'ReservationParticipantModel',
        lazy='selectin',
        cascade='all, delete-orphan',
        order_by='ReservationParticipantModel.is_main_participant.desc()',
    )
    price_snapshots: Mapped[List['ReservationPriceSnapshotModel']] = relationship(
        'ReservationPriceSnapshotModel', lazy='selectin', cascade='all, delete-orphan'
    )


class ReservationParticipantModel(Base):
    __tablename__ = 'reservation_participant'

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    reservation_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey('tour_reservation.id'), nullable=False, index=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    national_number: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    participant_type: Mapped[str] = mapped_column(String(10), nullable=False)
    is_main_participant: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    required_amount: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    paid_amount: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class ReservationPriceSnapshotModel(Base):
    __tablename__ = 'reservation_price_snapshot'

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    reservation_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey('tour_reservation.id'), nullable=False, index=True
    )
    participant_type: Mapped[str] = mapped_column(String(10), nullable=False)
    base_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    final_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    participant_count: Mapped[int] = mapped_column(Integer, nullable=False)
    pricing_rule_id: Mapped[Optional[UUID]] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    snapshot_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    discount_amount: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    discount_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    rule_description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    applied_capabilities: Mapped[Optional[list]] = mapped_column(ARRAY(String), nullable=True)
    applied_features: Mapped[Optional[list]] = mapped_column(ARRAY(String), nullable=True)
