from enum import StrEnum


class ReservationStatus(StrEnum):
    DRAFT = 'draft'
    HELD = 'held'
    PAYING = 'paying'
    CONFIRMED = 'confirmed'
    PAYMENT_FAILED = 'payment_failed'
    CANCELLED = 'cancelled'
    EXPIRED = 'expired'
    SYSTEM_CANCELLED = 'system_cancelled'
    REFUNDING = 'refunding'
    REFUNDED = 'refunded'
