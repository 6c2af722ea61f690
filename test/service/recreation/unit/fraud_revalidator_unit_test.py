from typing import Callable

import pytest

from src.service.recreation.app.service.fraud_revalidator import FraudRevalidator
from src.service.recreation.domain.entity.tour_reservation_entity import Participant
from src.service.recreation.domain.enum.finalize_failure_kind import FinalizeFailureKind
from src.service.recreation.domain.enum.participant_type import ParticipantType
from src.service.recreation.domain.exception.finalization_rejected import FinalizationRejected


@pytest.fixture
def revalidator(member_service) -> FraudRevalidator:
    return FraudRevalidator(member_service=member_service)


@pytest.mark.unit
class TestFraudRevalidator:
    @pytest.mark.asyncio
    async def test_active_member_claim_is_accepted(
        self, revalidator: FraudRevalidator, main_member_participant: Participant
    ) -> None:
        result = await revalidator.verify(participant=main_member_participant)
        assert result.is_ok

    @pytest.mark.asyncio
    async def test_member_claim_of_non_member(
        self, revalidator: FraudRevalidator, make_participant: Callable[..., Participant]
    ) -> None:
        result = await revalidator.verify(
            participant=make_participant(national_number='0044444444')
        )

        assert not result.is_ok
        assert 'not a member' in (result.reason or '')

    @pytest.mark.asyncio
    async def test_member_claim_with_lapsed_membership(
        self,
        revalidator: FraudRevalidator,
        member_service,
        make_participant: Callable[..., Participant],
    ) -> None:
        member_service.register(national_code='0044444444', active=False)

        result = await revalidator.verify(
            participant=make_participant(national_number='0044444444')
        )

        assert not result.is_ok
        assert 'no active membership' in (result.reason or '')

    @pytest.mark.asyncio
    async def test_guest_claim_of_non_member_is_accepted(
        self, revalidator: FraudRevalidator, make_participant: Callable[..., Participant]
    ) -> None:
        guest = make_participant(participant_type=ParticipantType.GUEST)
        assert (await revalidator.verify(participant=guest)).is_ok

    @pytest.mark.asyncio
    async def test_guest_claim_of_lapsed_member_is_accepted(
        self,
        revalidator: FraudRevalidator,
        member_service,
        make_participant: Callable[..., Participant],
    ) -> None:
        member_service.register(national_code='0066666666', active=False)
        guest = make_participant(
            participant_type=ParticipantType.GUEST, national_number='0066666666'
        )

        assert (await revalidator.verify(participant=guest)).is_ok

    @pytest.mark.asyncio
    async def test_verify_all_stops_at_first_mismatch(
        self,
        revalidator: FraudRevalidator,
        member_service,
        main_member_participant: Participant,
        make_participant: Callable[..., Participant],
    ) -> None:
        guest_member = make_participant(
            participant_type=ParticipantType.GUEST,
            national_number=main_member_participant.national_number,
        )

        with pytest.raises(FinalizationRejected) as exc_info:
            await revalidator.verify_all(participants=[main_member_participant, guest_member])

        assert exc_info.value.kind == FinalizeFailureKind.FRAUD_MISMATCH
        assert 'cannot join as a guest' in exc_info.value.message
