from decimal import Decimal
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.recreation.app.interface.i_tour_query_repo import ITourQueryRepo
from src.service.recreation.domain.entity.tour_entity import Tour, TourCapacity, TourPricing
from src.service.recreation.domain.enum.participant_type import ParticipantType
from src.service.recreation.domain.enum.tour_status import TourStatus
from src.service.recreation.driven_adapter.model.tour_model import (
    TourCapacityModel,
    TourModel,
    TourPricingModel,
)


class TourQueryRepoImpl(ITourQueryRepo):
    def __init__(self, *, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_capacity(db_capacity: TourCapacityModel) -> TourCapacity:
        return TourCapacity(
            id=UUID(str(db_capacity.id)),
            tour_id=UUID(str(db_capacity.tour_id)),
            max_participants=db_capacity.max_participants,
            registration_start=db_capacity.registration_start,
            registration_end=db_capacity.registration_end,
            is_active=db_capacity.is_active,
            description=db_capacity.description,
        )

    @staticmethod
    def _to_pricing(db_pricing: TourPricingModel) -> TourPricing:
        return TourPricing(
            id=UUID(str(db_pricing.id)),
            tour_id=UUID(str(db_pricing.tour_id)),
            participant_type=ParticipantType(db_pricing.participant_type),
            price=db_pricing.price,
            discount_percentage=(
                Decimal(db_pricing.discount_percentage)
                if db_pricing.discount_percentage is not None
                else None
            ),
            description=db_pricing.description,
            valid_from=db_pricing.valid_from,
            valid_to=db_pricing.valid_to,
            is_active=db_pricing.is_active,
            min_quantity=db_pricing.min_quantity,
            max_quantity=db_pricing.max_quantity,
            is_default=db_pricing.is_default,
            required_capabilities=db_pricing.required_capabilities or (),
            required_features=db_pricing.required_features or (),
        )

    @classmethod
    def _to_entity(cls, db_tour: TourModel) -> Tour:
        return Tour(
            id=UUID(str(db_tour.id)),
            title=db_tour.title,
            tour_start=db_tour.tour_start,
            tour_end=db_tour.tour_end,
            status=TourStatus(db_tour.status),
            is_active=db_tour.is_active,
            capacities=[cls._to_capacity(c) for c in db_tour.capacities],
            pricing=[cls._to_pricing(p) for p in db_tour.pricing],
            required_capabilities=list(db_tour.required_capabilities or []),
            required_features=list(db_tour.required_features or []),
            allowed_agencies=list(db_tour.allowed_agencies or []),
            max_guests_per_reservation=db_tour.max_guests_per_reservation,
            min_age=db_tour.min_age,
            max_age=db_tour.max_age,
            description=db_tour.description,
        )

    @Logger.io
    async def get_by_id(self, *, tour_id: UUID) -> Optional[Tour]:
        result = await self.session.execute(
            select(TourModel).where(TourModel.id == uuid.UUID(str(tour_id)))
        )
        db_tour = result.scalar_one_or_none()
        if not db_tour:
            return None
        return self._to_entity(db_tour)
