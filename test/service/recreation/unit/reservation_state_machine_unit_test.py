import pytest

from src.platform.exception.exceptions import DomainError
from src.service.recreation.domain import reservation_state_machine
from src.service.recreation.domain.enum.reservation_status import ReservationStatus


@pytest.mark.unit
class TestReservationStateMachine:
    @pytest.mark.parametrize(
        'current,target',
        [
            (ReservationStatus.DRAFT, ReservationStatus.HELD),
            (ReservationStatus.DRAFT, ReservationStatus.CANCELLED),
            (ReservationStatus.HELD, ReservationStatus.PAYING),
            (ReservationStatus.HELD, ReservationStatus.EXPIRED),
            (ReservationStatus.PAYING, ReservationStatus.PAYMENT_FAILED),
            (ReservationStatus.PAYMENT_FAILED, ReservationStatus.PAYING),
            (ReservationStatus.EXPIRED, ReservationStatus.HELD),
            (ReservationStatus.CONFIRMED, ReservationStatus.REFUNDING),
            (ReservationStatus.REFUNDING, ReservationStatus.REFUNDED),
        ],
    )
    def test_allowed_transitions(
        self, current: ReservationStatus, target: ReservationStatus
    ) -> None:
        assert reservation_state_machine.can_transition(current, target)
        reservation_state_machine.validate_transition(current, target)

    @pytest.mark.parametrize(
        'current,target',
        [
            (ReservationStatus.HELD, ReservationStatus.HELD),
            (ReservationStatus.DRAFT, ReservationStatus.CONFIRMED),
            (ReservationStatus.CANCELLED, ReservationStatus.HELD),
            (ReservationStatus.REFUNDED, ReservationStatus.DRAFT),
        ],
    )
    def test_rejected_transitions(
        self, current: ReservationStatus, target: ReservationStatus
    ) -> None:
        assert not reservation_state_machine.can_transition(current, target)
        with pytest.raises(DomainError, match='Invalid reservation status transition'):
            reservation_state_machine.validate_transition(current, target)

    def test_terminal_statuses(self) -> None:
        terminal = {s for s in ReservationStatus if reservation_state_machine.is_terminal(s)}
        assert terminal == {
            ReservationStatus.CANCELLED,
            ReservationStatus.SYSTEM_CANCELLED,
            ReservationStatus.REFUNDED,
        }

    def test_only_held_paying_confirmed_consume_capacity(self) -> None:
        active = {s for s in ReservationStatus if reservation_state_machine.is_active(s)}
        assert active == {
            ReservationStatus.HELD,
            ReservationStatus.PAYING,
            ReservationStatus.CONFIRMED,
        }
