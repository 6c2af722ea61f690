"""
Reservation lifecycle

    draft ──► held ──► paying ──► confirmed ──► refunding ──► refunded
      │        │         │            │
      └► cancelled ◄─────┴────────────┘
               held ──► expired ──► held (renewal)
               paying ──► payment_failed ──► paying (retry)

Only held, paying and confirmed reservations consume tour capacity.
"""

from src.platform.exception.exceptions import DomainError
from src.service.recreation.domain.enum.reservation_status import ReservationStatus


_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.DRAFT: frozenset({ReservationStatus.HELD, ReservationStatus.CANCELLED}),
    ReservationStatus.HELD: frozenset(
        {
            ReservationStatus.PAYING,
            ReservationStatus.CONFIRMED,
            ReservationStatus.CANCELLED,
            ReservationStatus.EXPIRED,
            ReservationStatus.SYSTEM_CANCELLED,
        }
    ),
    ReservationStatus.PAYING: frozenset(
        {
            ReservationStatus.CONFIRMED,
            ReservationStatus.PAYMENT_FAILED,
            ReservationStatus.CANCELLED,
            ReservationStatus.SYSTEM_CANCELLED,
        }
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {
            ReservationStatus.CANCELLED,
            ReservationStatus.SYSTEM_CANCELLED,
            ReservationStatus.REFUNDING,
        }
    ),
    ReservationStatus.PAYMENT_FAILED: frozenset(
        {ReservationStatus.PAYING, ReservationStatus.CANCELLED, ReservationStatus.EXPIRED}
    ),
    ReservationStatus.REFUNDING: frozenset({ReservationStatus.REFUNDED}),
    ReservationStatus.EXPIRED: frozenset({ReservationStatus.HELD, ReservationStatus.CANCELLED}),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.SYSTEM_CANCELLED: frozenset(),
    ReservationStatus.REFUNDED: frozenset(),
}

ACTIVE_STATUSES: frozenset[ReservationStatus] = frozenset(
    {ReservationStatus.HELD, ReservationStatus.PAYING, ReservationStatus.CONFIRMED}
)


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in _TRANSITIONS[current]


def validate_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    if not can_transition(current, target):
        raise DomainError(f'Invalid reservation status transition: {current} -> {target}')


def allowed_transitions(current: ReservationStatus) -> frozenset[ReservationStatus]:
    return _TRANSITIONS[current]


def is_terminal(status: ReservationStatus) -> bool:
    return not _TRANSITIONS[status]


def is_active(status: ReservationStatus) -> bool:
    return status in ACTIVE_STATUSES
