"""
Unit tests for Tour and TourPricing

Pricing rule selection:
- scoped rules the member satisfies win, most requirements first
- default unscoped rule next, then any unscoped rule
- inactive, out-of-window and out-of-quantity rules never apply
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import uuid_utils

from src.service.recreation.domain.entity.tour_entity import Tour, TourCapacity, TourPricing
from src.service.recreation.domain.enum.participant_type import ParticipantType
from src.service.recreation.domain.enum.tour_status import TourStatus


def _rule(tour: Tour, price: int, **kwargs) -> TourPricing:
    kwargs.setdefault('participant_type', ParticipantType.MEMBER)
    return TourPricing(id=uuid_utils.uuid7(), tour_id=tour.id, price=price, **kwargs)


@pytest.mark.unit
class TestTourPricingSelection:
    def test_scoped_rule_beats_default(self, tour: Tour, now: datetime) -> None:
        scoped = _rule(tour, 400_000, required_capabilities={'student'})
        tour.pricing.append(scoped)

        chosen = tour.get_pricing(
            participant_type=ParticipantType.MEMBER, on=now, member_capabilities=['student']
        )

        assert chosen == scoped

    def test_most_specific_scoped_rule_wins(self, tour: Tour, now: datetime) -> None:
        broad = _rule(tour, 450_000, required_capabilities={'student'})
        narrow = _rule(
            tour, 350_000, required_capabilities={'student'}, required_features={'veteran'}
        )
        tour.pricing.extend([broad, narrow])

        chosen = tour.get_pricing(
            participant_type=ParticipantType.MEMBER,
            on=now,
            member_capabilities=['student'],
            member_features=['veteran'],
        )

        assert chosen == narrow

    def test_unsatisfied_scoped_rule_falls_back_to_default(
        self, tour: Tour, member_pricing: TourPricing, now: datetime
    ) -> None:
        tour.pricing.append(_rule(tour, 100_000, required_capabilities={'staff'}))

        chosen = tour.get_pricing(
            participant_type=ParticipantType.MEMBER, on=now, member_capabilities=['student']
        )

        assert chosen == member_pricing

    def test_first_unscoped_rule_when_no_default(self, tour: Tour, now: datetime) -> None:
        first = _rule(tour, 300_000)
        second = _rule(tour, 200_000)
        tour.pricing = [first, second]

        assert tour.get_pricing(participant_type=ParticipantType.MEMBER, on=now) == first

    def test_out_of_window_and_inactive_rules_are_skipped(
        self, tour: Tour, now: datetime
    ) -> None:
        tour.pricing = [
            _rule(tour, 100_000, is_active=False, is_default=True),
            _rule(tour, 200_000, valid_to=now - timedelta(days=1), is_default=True),
            _rule(tour, 300_000, valid_from=now + timedelta(days=1), is_default=True),
        ]

        assert tour.get_pricing(participant_type=ParticipantType.MEMBER, on=now) is None

    def test_quantity_bounds(self, tour: Tour, now: datetime) -> None:
        group_rule = _rule(tour, 250_000, min_quantity=3)
        tour.pricing = [group_rule]

        assert tour.get_pricing(participant_type=ParticipantType.MEMBER, on=now) is None
        assert (
            tour.get_pricing(participant_type=ParticipantType.MEMBER, on=now, quantity=3)
            == group_rule
        )

    def test_discount_is_truncated(self, tour: Tour) -> None:
        rule = _rule(tour, 333_333, discount_percentage=Decimal('10.5'))

        assert rule.discount_amount == 34_999
        assert rule.effective_price == 333_333 - 34_999

    def test_discount_out_of_range_is_rejected(self, tour: Tour) -> None:
        with pytest.raises(ValueError, match='between 0 and 100'):
            _rule(tour, 100_000, discount_percentage=Decimal('120'))


@pytest.mark.unit
class TestTourRegistration:
    def test_open_when_published_with_open_window(self, tour: Tour, now: datetime) -> None:
        assert tour.is_registration_open(now)

    def test_closed_for_draft_tour(self, tour: Tour, now: datetime) -> None:
        tour.status = TourStatus.DRAFT
        assert not tour.is_registration_open(now)

    def test_closed_after_every_window(self, tour: Tour, now: datetime) -> None:
        assert not tour.is_registration_open(now + timedelta(days=6))

    def test_max_participants_counts_active_windows_only(
        self, tour: Tour, capacity: TourCapacity, now: datetime
    ) -> None:
        tour.capacities.append(
            TourCapacity(
                id=uuid_utils.uuid7(),
                tour_id=tour.id,
                max_participants=50,
                registration_start=now,
                registration_end=now + timedelta(days=1),
                is_active=False,
            )
        )

        assert tour.max_participants == capacity.max_participants

    def test_guest_limit(self, tour: Tour) -> None:
        assert tour.can_create_reservation_with_guests(3)
        assert not tour.can_create_reservation_with_guests(4)
        tour.max_guests_per_reservation = None
        assert tour.can_create_reservation_with_guests(100)

    def test_age_restriction(self, tour: Tour) -> None:
        tour.min_age = 12
        tour.max_age = 65

        assert tour.age_restriction_error(12) is None
        assert tour.age_restriction_error(65) is None
        assert tour.age_restriction_error(None) is None
        assert 'at least 12' in (tour.age_restriction_error(11) or '')
        assert 'at most 65' in (tour.age_restriction_error(66) or '')
