from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import ARRAY, BigInteger, Boolean, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.platform.database.orm_db_setting import Base


class TourModel(Base):
    __tablename__ = 'tour'

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)  # UUID7
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    tour_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    tour_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default='draft', nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    required_capabilities: Mapped[Optional[list]] = mapped_column(ARRAY(String), nullable=True)
    required_features: Mapped[Optional[list]] = mapped_column(ARRAY(String), nullable=True)
    allowed_agencies: Mapped[Optional[list]] = mapped_column(ARRAY(String), nullable=True)
    max_guests_per_reservation: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    min_age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    capacities: Mapped[List['TourCapacityModel']] = relationship(
        'TourCapacityModel', lazy='selectin', order_by='TourCapacityModel.registration_start'
    )
    pricing: Mapped[List['TourPricingModel']] = relationship('TourPricingModel', lazy='selectin')


class TourCapacityModel(Base):
    __tablename__ = 'tour_capacity'

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    tour_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey('tour.id'), nullable=False, index=True
    )
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    registration_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    registration_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class TourPricingModel(Base):
    __tablename__ = 'tour_pricing'

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    tour_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), ForeignKey('tour.id'), nullable=False, index=True
    )
    participant_type: Mapped[str] = mapped_column(String(10), nullable=False)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)  # rials
    discount_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    valid_from: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    valid_to: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    min_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    required_capabilities: Mapped[Optional[list]] = mapped_column(ARRAY(String), nullable=True)
    required_features: Mapped[Optional[list]] = mapped_column(ARRAY(String), nullable=True)
