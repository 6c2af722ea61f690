from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

import attrs
from uuid_utils import UUID

from src.service.recreation.domain.enum.participant_type import ParticipantType
from src.service.recreation.domain.enum.tour_status import TourStatus


def _validate_discount(
    instance: 'TourPricing', attribute: attrs.Attribute, value: Optional[Decimal]
) -> None:
    if value is not None and not (Decimal(0) <= value <= Decimal(100)):
        raise ValueError('discount_percentage must be between 0 and 100')


@attrs.define(frozen=True)
class TourCapacity:
    id: UUID
    tour_id: UUID
    max_participants: int
    registration_start: datetime
    registration_end: datetime
    is_active: bool = True
    description: Optional[str] = None

    def is_registration_open(self, now: datetime) -> bool:
        return self.is_active and self.registration_start <= now <= self.registration_end


@attrs.define(frozen=True)
class TourPricing:
    """A price rule for one participant type, optionally scoped to member capabilities/features"""

    id: UUID
    tour_id: UUID
    participant_type: ParticipantType
    price: int
    discount_percentage: Optional[Decimal] = attrs.field(default=None, validator=_validate_discount)
    description: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    is_active: bool = True
    min_quantity: Optional[int] = None
    max_quantity: Optional[int] = None
    is_default: bool = False
    required_capabilities: frozenset[str] = attrs.field(factory=frozenset, converter=frozenset)
    required_features: frozenset[str] = attrs.field(factory=frozenset, converter=frozenset)

    @property
    def has_requirements(self) -> bool:
        return bool(self.required_capabilities or self.required_features)

    @property
    def specificity(self) -> int:
        return len(self.required_capabilities) + len(self.required_features)

    @property
    def discount_amount(self) -> int:
        if not self.discount_percentage:
            return 0
        # truncated toward zero, same as the billing side
        return int(self.price * self.discount_percentage / 100)

    @property
    def effective_price(self) -> int:
        return self.price - self.discount_amount

    def is_valid_for(self, *, on: datetime, quantity: int) -> bool:
        if not self.is_active:
            return False
        if self.valid_from is not None and on < self.valid_from:
            return False
        if self.valid_to is not None and on > self.valid_to:
            return False
        if self.min_quantity is not None and quantity < self.min_quantity:
            return False
        if self.max_quantity is not None and quantity > self.max_quantity:
            return False
        return True

    def matches(self, *, capabilities: Iterable[str], features: Iterable[str]) -> bool:
        """Every capability and feature the rule requires must be held by the member"""
        return self.required_capabilities <= set(capabilities) and self.required_features <= set(
            features
        )


@attrs.define
class Tour:
    id: UUID
    title: str
    tour_start: datetime
    tour_end: datetime
    status: TourStatus = TourStatus.DRAFT
    is_active: bool = True
    capacities: List[TourCapacity] = attrs.field(factory=list)
    pricing: List[TourPricing] = attrs.field(factory=list)
    required_capabilities: List[str] = attrs.field(factory=list)
    required_features: List[str] = attrs.field(factory=list)
    allowed_agencies: List[str] = attrs.field(factory=list)
    max_guests_per_reservation: Optional[int] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    description: Optional[str] = None

    @property
    def max_participants(self) -> int:
        return sum(c.max_participants for c in self.capacities if c.is_active)

    def is_registration_open(self, now: datetime) -> bool:
        return (
            self.status == TourStatus.PUBLISHED
            and self.is_active
            and any(c.is_registration_open(now) for c in self.capacities)
        )

    def hours_until_start(self, now: datetime) -> float:
        return (self.tour_start - now).total_seconds() / 3600

    def find_capacity(self, capacity_id: UUID) -> Optional[TourCapacity]:
        return next((c for c in self.capacities if c.id == capacity_id), None)

    def can_create_reservation_with_guests(self, guest_count: int) -> bool:
        if self.max_guests_per_reservation is None:
            return True
        return guest_count <= self.max_guests_per_reservation

    def age_restriction_error(self, age: Optional[int]) -> Optional[str]:
        """Participants without a birth date are not checked"""
        if age is None:
            return None
        if self.min_age is not None and age < self.min_age:
            return f'must be at least {self.min_age} years old at tour start'
        if self.max_age is not None and age > self.max_age:
            return f'must be at most {self.max_age} years old at tour start'
        return None

    def get_pricing(
        self,
        *,
        participant_type: ParticipantType,
        on: datetime,
        quantity: int = 1,
        member_capabilities: Iterable[str] = (),
        member_features: Iterable[str] = (),
    ) -> Optional[TourPricing]:
        """
        Pick the pricing rule for a participant type.

        Priority:
        1. rules whose requirements the member satisfies, most requirements first,
           default flag breaking ties
        2. the default rule without requirements
        3. any rule without requirements
        """
        candidates = [
            p
            for p in self.pricing
            if p.participant_type == participant_type and p.is_valid_for(on=on, quantity=quantity)
        ]
        if not candidates:
            return None

        capabilities = set(member_capabilities)
        features = set(member_features)
        scoped = [
            p
            for p in candidates
            if p.has_requirements and p.matches(capabilities=capabilities, features=features)
        ]
        if scoped:
            # stable sort keeps declaration order among equal rules
            return sorted(scoped, key=lambda p: (p.specificity, p.is_default), reverse=True)[0]

        unscoped = [p for p in candidates if not p.has_requirements]
        default = next((p for p in unscoped if p.is_default), None)
        if default is not None:
            return default
        return unscoped[0] if unscoped else None
