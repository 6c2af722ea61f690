from src.platform.exception.exceptions import CustomBaseError
from src.service.recreation.domain.enum.finalize_failure_kind import FinalizeFailureKind


class FinalizationRejected(CustomBaseError):
    """A business rule stopped the finalization; the reservation stays in draft"""

    def __init__(self, kind: FinalizeFailureKind, message: str) -> None:
        self.kind = kind
        super().__init__(message, kind.status_code)

    @classmethod
    def not_found(cls, message: str) -> 'FinalizationRejected':
        return cls(FinalizeFailureKind.NOT_FOUND, message)

    @classmethod
    def precondition_failed(cls, message: str) -> 'FinalizationRejected':
        return cls(FinalizeFailureKind.PRECONDITION_FAILED, message)

    @classmethod
    def fraud_mismatch(cls, message: str) -> 'FinalizationRejected':
        return cls(FinalizeFailureKind.FRAUD_MISMATCH, message)

    @classmethod
    def capacity_exceeded(cls, message: str) -> 'FinalizationRejected':
        return cls(FinalizeFailureKind.CAPACITY_EXCEEDED, message)

    @classmethod
    def conflicting_reservation(cls, message: str) -> 'FinalizationRejected':
        return cls(FinalizeFailureKind.CONFLICTING_RESERVATION, message)

    @classmethod
    def pricing_unresolved(cls, message: str) -> 'FinalizationRejected':
        return cls(FinalizeFailureKind.PRICING_UNRESOLVED, message)

    @classmethod
    def billing_failed(cls, message: str) -> 'FinalizationRejected':
        return cls(FinalizeFailureKind.BILLING_FAILED, message)
