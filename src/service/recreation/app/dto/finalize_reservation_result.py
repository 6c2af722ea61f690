from datetime import datetime
from typing import Optional

import attrs
from uuid_utils import UUID

from src.service.recreation.domain.enum.finalize_failure_kind import FinalizeFailureKind
from src.service.recreation.domain.enum.reservation_status import ReservationStatus


@attrs.define(frozen=True)
class FinalizeReservationResponse:
    reservation_id: UUID
    tracking_code: str
    status: ReservationStatus
    bill_id: UUID
    bill_number: str
    total_amount: int
    expiry_date: datetime
    participant_count: int
    tour_title: str


@attrs.define(frozen=True)
class FinalizeReservationResult:
    """Either a response, or the failure kind and a human-readable message"""

    is_success: bool
    response: Optional[FinalizeReservationResponse] = None
    failure_kind: Optional[FinalizeFailureKind] = None
    message: Optional[str] = None

    @classmethod
    def succeeded(cls, response: FinalizeReservationResponse) -> 'FinalizeReservationResult':
        return cls(is_success=True, response=response)

    @classmethod
    def failed(cls, kind: FinalizeFailureKind, message: str) -> 'FinalizeReservationResult':
        return cls(is_success=False, failure_kind=kind, message=message)
