from typing import Iterable, Optional

import attrs

from src.platform.logging.loguru_io import Logger
from src.service.recreation.app.interface.i_member_service import IMemberService
from src.service.recreation.domain.entity.tour_reservation_entity import Participant
from src.service.recreation.domain.enum.participant_type import ParticipantType
from src.service.recreation.domain.exception.finalization_rejected import FinalizationRejected


@attrs.define(frozen=True)
class FraudCheckResult:
    is_ok: bool
    reason: Optional[str] = None


class FraudRevalidator:
    """
    Re-derives each participant's membership from the membership service.

    A member claim needs an existing member with an active membership; a guest
    claim is refused when the national number belongs to an active member.
    """

    def __init__(self, *, member_service: IMemberService) -> None:
        self.member_service = member_service

    async def verify(self, *, participant: Participant) -> FraudCheckResult:
        national_number = participant.national_number
        detail = await self.member_service.get_member_detail_by_national_code(
            national_code=national_number
        )

        if participant.participant_type == ParticipantType.MEMBER:
            if detail is None:
                return FraudCheckResult(
                    is_ok=False,
                    reason=f'Participant {national_number} claims membership but is not a member',
                )
            if not await self.member_service.has_active_membership(national_code=national_number):
                return FraudCheckResult(
                    is_ok=False,
                    reason=f'Participant {national_number} has no active membership',
                )
            return FraudCheckResult(is_ok=True)

        if detail is not None and await self.member_service.has_active_membership(
            national_code=national_number
        ):
            return FraudCheckResult(
                is_ok=False,
                reason=(
                    f'Participant {national_number} is an active member '
                    'and cannot join as a guest'
                ),
            )
        return FraudCheckResult(is_ok=True)

    @Logger.io
    async def verify_all(self, *, participants: Iterable[Participant]) -> None:
        for participant in participants:
            result = await self.verify(participant=participant)
            if not result.is_ok:
                Logger.base.warning(
                    f'🚫 [FRAUD] {participant.participant_type} claim rejected: {result.reason}'
                )
                raise FinalizationRejected.fraud_mismatch(result.reason or 'Participant mismatch')
