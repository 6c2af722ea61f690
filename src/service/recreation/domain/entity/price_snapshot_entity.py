from datetime import datetime
from typing import Optional

import attrs
from uuid_utils import UUID
import uuid_utils

from src.service.recreation.domain.entity.tour_entity import TourPricing
from src.service.recreation.domain.enum.participant_type import ParticipantType


@attrs.define(frozen=True)
class PriceSnapshot:
    """Price applied to one participant-type group at finalization time; never changes afterwards"""

    id: UUID
    reservation_id: UUID
    participant_type: ParticipantType
    base_price: int
    final_price: int
    participant_count: int
    pricing_rule_id: Optional[UUID]
    snapshot_date: datetime
    discount_amount: Optional[int] = None
    discount_code: Optional[str] = None
    rule_description: Optional[str] = None
    applied_capabilities: tuple[str, ...] = attrs.field(factory=tuple, converter=tuple)
    applied_features: tuple[str, ...] = attrs.field(factory=tuple, converter=tuple)

    @property
    def line_total(self) -> int:
        return self.final_price * self.participant_count

    @classmethod
    def from_pricing(
        cls,
        *,
        reservation_id: UUID,
        participant_type: ParticipantType,
        participant_count: int,
        pricing: TourPricing,
        snapshot_date: datetime,
        applied_capabilities: tuple[str, ...] = (),
        applied_features: tuple[str, ...] = (),
    ) -> 'PriceSnapshot':
        return cls(
            id=uuid_utils.uuid7(),
            reservation_id=reservation_id,
            participant_type=participant_type,
            base_price=pricing.price,
            final_price=pricing.effective_price,
            participant_count=participant_count,
            pricing_rule_id=pricing.id,
            snapshot_date=snapshot_date,
            discount_amount=pricing.discount_amount or None,
            rule_description=pricing.description,
            applied_capabilities=applied_capabilities,
            applied_features=applied_features,
        )
