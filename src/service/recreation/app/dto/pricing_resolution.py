from typing import Tuple

import attrs

from src.service.recreation.domain.entity.tour_entity import TourPricing
from src.service.recreation.domain.enum.participant_type import ParticipantType


@attrs.define(frozen=True)
class PricingResolution:
    """
    Outcome of pricing one participant-type group.

    is_default_fallback is True when no rule scoped to the member's
    capabilities/features applied and a general rule was used instead.
    """

    effective_price: int
    pricing_rule: TourPricing
    resolved_participant_type: ParticipantType
    is_default_fallback: bool
    applied_capabilities: Tuple[str, ...] = ()
    applied_features: Tuple[str, ...] = ()
