"""Application layer DTOs"""

from src.service.recreation.app.dto.bill_dto import (
    BillCreationRequest,
    BillCreationResult,
    BillItemRequest,
)
from src.service.recreation.app.dto.capacity_check import CapacityCheck
from src.service.recreation.app.dto.finalize_reservation_result import (
    FinalizeReservationResponse,
    FinalizeReservationResult,
)
from src.service.recreation.app.dto.member_dto import EligibilityResult, MemberDetail, MemberSummary
from src.service.recreation.app.dto.pricing_resolution import PricingResolution

__all__ = [
    'BillCreationRequest',
    'BillCreationResult',
    'BillItemRequest',
    'CapacityCheck',
    'EligibilityResult',
    'FinalizeReservationResponse',
    'FinalizeReservationResult',
    'MemberDetail',
    'MemberSummary',
    'PricingResolution',
]
