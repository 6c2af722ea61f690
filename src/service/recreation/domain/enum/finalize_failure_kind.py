from enum import StrEnum


class FinalizeFailureKind(StrEnum):
    NOT_FOUND = 'not_found'
    PRECONDITION_FAILED = 'precondition_failed'
    FRAUD_MISMATCH = 'fraud_mismatch'
    CAPACITY_EXCEEDED = 'capacity_exceeded'
    CONFLICTING_RESERVATION = 'conflicting_reservation'
    PRICING_UNRESOLVED = 'pricing_unresolved'
    BILLING_FAILED = 'billing_failed'
    UNEXPECTED = 'unexpected'

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES: dict[FinalizeFailureKind, int] = {
    FinalizeFailureKind.NOT_FOUND: 404,
    FinalizeFailureKind.PRECONDITION_FAILED: 409,
    FinalizeFailureKind.FRAUD_MISMATCH: 422,
    FinalizeFailureKind.CAPACITY_EXCEEDED: 409,
    FinalizeFailureKind.CONFLICTING_RESERVATION: 409,
    FinalizeFailureKind.PRICING_UNRESOLVED: 422,
    FinalizeFailureKind.BILLING_FAILED: 502,
    FinalizeFailureKind.UNEXPECTED: 500,
}
