from datetime import date, datetime, timedelta
from typing import Callable

import pytest
import uuid_utils

from src.platform.exception.exceptions import DomainError
from src.service.recreation.domain.entity.price_snapshot_entity import PriceSnapshot
from src.service.recreation.domain.entity.tour_entity import TourPricing
from src.service.recreation.domain.entity.tour_reservation_entity import (
    Participant,
    TourReservation,
)
from src.service.recreation.domain.enum.participant_type import ParticipantType
from src.service.recreation.domain.enum.reservation_status import ReservationStatus


@pytest.mark.unit
class TestParticipant:
    def test_age_before_and_after_birthday(
        self, make_participant: Callable[..., Participant]
    ) -> None:
        participant = make_participant(birth_date=date(2000, 6, 15))

        assert participant.age_at(date(2025, 6, 14)) == 24
        assert participant.age_at(date(2025, 6, 15)) == 25
        assert make_participant().age_at(date(2025, 1, 1)) is None

    def test_identity_errors(self, make_participant: Callable[..., Participant]) -> None:
        assert make_participant().identity_errors() == []

        broken = make_participant(first_name=' ', national_number='123')
        assert broken.identity_errors() == [
            'first and last name are required',
            'national number must be 10 digits',
        ]


@pytest.mark.unit
class TestTourReservationFinalizability:
    def test_draft_is_finalizable(
        self,
        make_reservation: Callable[..., TourReservation],
        main_member_participant: Participant,
        now: datetime,
    ) -> None:
        reservation = make_reservation(participants=[main_member_participant])
        assert reservation.can_finalize(now) == (True, None)

    def test_held_is_not_finalizable(
        self,
        make_reservation: Callable[..., TourReservation],
        main_member_participant: Participant,
        now: datetime,
    ) -> None:
        reservation = make_reservation(
            participants=[main_member_participant], status=ReservationStatus.HELD
        )

        finalizable, reason = reservation.can_finalize(now)

        assert not finalizable
        assert reason == 'Reservation is not finalizable in status held'

    def test_expired_draft_is_not_finalizable(
        self,
        make_reservation: Callable[..., TourReservation],
        main_member_participant: Participant,
        now: datetime,
    ) -> None:
        reservation = make_reservation(
            participants=[main_member_participant], expiry_date=now - timedelta(seconds=1)
        )

        finalizable, reason = reservation.can_finalize(now)

        assert not finalizable
        assert 'expired' in (reason or '')

    def test_liveness_follows_status_and_expiry(
        self,
        make_reservation: Callable[..., TourReservation],
        main_member_participant: Participant,
        now: datetime,
    ) -> None:
        held = make_reservation(
            participants=[main_member_participant],
            status=ReservationStatus.HELD,
            expiry_date=now + timedelta(minutes=1),
        )

        assert held.is_live(now)
        assert not held.is_live(now + timedelta(minutes=1))
        assert not make_reservation(participants=[main_member_participant]).is_live(now)


@pytest.mark.unit
class TestTourReservationTransitions:
    def test_apply_pricing_derives_total_from_snapshots(
        self,
        make_reservation: Callable[..., TourReservation],
        make_participant: Callable[..., Participant],
        main_member_participant: Participant,
        member_pricing: TourPricing,
        guest_pricing: TourPricing,
        now: datetime,
    ) -> None:
        guest = make_participant(participant_type=ParticipantType.GUEST)
        reservation = make_reservation(participants=[main_member_participant, guest])
        snapshots = [
            PriceSnapshot.from_pricing(
                reservation_id=reservation.id,
                participant_type=ParticipantType.MEMBER,
                participant_count=1,
                pricing=member_pricing,
                snapshot_date=now,
            ),
            PriceSnapshot.from_pricing(
                reservation_id=reservation.id,
                participant_type=ParticipantType.GUEST,
                participant_count=1,
                pricing=guest_pricing,
                snapshot_date=now,
            ),
        ]

        priced = reservation.apply_pricing(
            snapshots=snapshots,
            amounts={main_member_participant.id: 500_000, guest.id: 700_000},
        )

        assert priced.total_amount == 1_200_000
        assert [p.required_amount for p in priced.participants] == [500_000, 700_000]
        assert reservation.total_amount is None

    def test_apply_pricing_requires_draft(
        self,
        make_reservation: Callable[..., TourReservation],
        main_member_participant: Participant,
    ) -> None:
        reservation = make_reservation(
            participants=[main_member_participant], status=ReservationStatus.HELD
        )

        with pytest.raises(DomainError):
            reservation.apply_pricing(snapshots=[], amounts={})

    def test_hold_sets_bill_and_expiry(
        self,
        make_reservation: Callable[..., TourReservation],
        main_member_participant: Participant,
        now: datetime,
    ) -> None:
        reservation = make_reservation(participants=[main_member_participant])
        bill_id = uuid_utils.uuid7()

        held = reservation.hold(bill_id=bill_id, now=now, hold_minutes=30)

        assert held.status == ReservationStatus.HELD
        assert held.bill_id == bill_id
        assert held.expiry_date == now + timedelta(minutes=30)
        assert reservation.status == ReservationStatus.DRAFT

    def test_hold_twice_is_rejected(
        self,
        make_reservation: Callable[..., TourReservation],
        main_member_participant: Participant,
        now: datetime,
    ) -> None:
        held = make_reservation(participants=[main_member_participant]).hold(
            bill_id=uuid_utils.uuid7(), now=now
        )

        with pytest.raises(DomainError, match='held -> held'):
            held.hold(bill_id=uuid_utils.uuid7(), now=now)

    def test_non_positive_hold_is_rejected(
        self,
        make_reservation: Callable[..., TourReservation],
        main_member_participant: Participant,
        now: datetime,
    ) -> None:
        reservation = make_reservation(participants=[main_member_participant])

        with pytest.raises(DomainError, match='positive'):
            reservation.hold(bill_id=uuid_utils.uuid7(), now=now, hold_minutes=0)
