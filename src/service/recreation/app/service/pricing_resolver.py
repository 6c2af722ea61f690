from datetime import datetime
from typing import Optional, Sequence

from src.platform.logging.loguru_io import Logger
from src.service.recreation.app.dto.pricing_resolution import PricingResolution
from src.service.recreation.app.interface.i_member_service import IMemberService
from src.service.recreation.domain.entity.tour_entity import Tour, TourPricing
from src.service.recreation.domain.enum.participant_type import ParticipantType
from src.service.recreation.domain.exception.finalization_rejected import FinalizationRejected


class PricingResolver:
    """
    Resolves the price a participant pays on a tour.

    Priority:
    1. active member: the most specific member rule scoped to the member's
       capabilities/features
    2. active member: the default (unscoped) member rule
    3. everyone else, and members of tours without a member rule: the guest rule
    """

    def __init__(self, *, member_service: IMemberService) -> None:
        self.member_service = member_service

    @Logger.io
    async def resolve(
        self,
        *,
        tour: Tour,
        national_number: str,
        as_of: datetime,
        participant_count: int = 1,
        member_capabilities: Optional[Sequence[str]] = None,
        member_features: Optional[Sequence[str]] = None,
    ) -> PricingResolution:
        """
        Raises:
            FinalizationRejected: PRICING_UNRESOLVED when no rule applies
        """
        detail = await self.member_service.get_member_detail_by_national_code(
            national_code=national_number
        )
        is_active_member = detail is not None and await self.member_service.has_active_membership(
            national_code=national_number
        )

        if detail is not None and is_active_member:
            capabilities = tuple(
                member_capabilities if member_capabilities is not None else detail.capabilities
            )
            features = tuple(member_features if member_features is not None else detail.features)
            member_rule = tour.get_pricing(
                participant_type=ParticipantType.MEMBER,
                on=as_of,
                quantity=participant_count,
                member_capabilities=capabilities,
                member_features=features,
            )
            if member_rule is not None:
                return PricingResolution(
                    effective_price=member_rule.effective_price,
                    pricing_rule=member_rule,
                    resolved_participant_type=ParticipantType.MEMBER,
                    is_default_fallback=not member_rule.has_requirements,
                    applied_capabilities=tuple(
                        c for c in capabilities if c in member_rule.required_capabilities
                    ),
                    applied_features=tuple(
                        f for f in features if f in member_rule.required_features
                    ),
                )
            Logger.base.info(
                f'💸 [PRICING] Tour {tour.id} has no member rule, falling back to guest pricing'
            )

        guest_rule = self._guest_rule(tour=tour, as_of=as_of, participant_count=participant_count)
        return PricingResolution(
            effective_price=guest_rule.effective_price,
            pricing_rule=guest_rule,
            resolved_participant_type=ParticipantType.GUEST,
            is_default_fallback=is_active_member,
        )

    @staticmethod
    def _guest_rule(*, tour: Tour, as_of: datetime, participant_count: int) -> TourPricing:
        rule = tour.get_pricing(
            participant_type=ParticipantType.GUEST, on=as_of, quantity=participant_count
        )
        if rule is None:
            raise FinalizationRejected.pricing_unresolved(
                f'No applicable pricing rule on tour "{tour.title}"'
            )
        return rule
