from datetime import datetime

from pydantic import BaseModel

from src.platform.types import UtilsUUID7
from src.service.recreation.app.dto.finalize_reservation_result import (
    FinalizeReservationResponse as FinalizeReservationResponseDto,
)


class FinalizeReservationResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'reservation_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'tracking_code': 'TR-20260412-7F3A',
                'status': 'held',
                'bill_id': '01936d90-0a11-7b2e-8c44-0f1e2d3c4b5a',
                'bill_number': 'B-140504-00042',
                'total_amount': 4500000,
                'expiry_date': '2026-04-12T10:30:00Z',
                'participant_count': 3,
                'tour_title': 'Alborz Hiking Weekend',
            }
        },
    }

    reservation_id: UtilsUUID7
    tracking_code: str
    status: str
    bill_id: UtilsUUID7
    bill_number: str
    total_amount: int
    expiry_date: datetime
    participant_count: int
    tour_title: str

    @classmethod
    def from_dto(cls, dto: FinalizeReservationResponseDto) -> 'FinalizeReservationResponse':
        return cls(
            reservation_id=dto.reservation_id,  # pyright: ignore[reportArgumentType]
            tracking_code=dto.tracking_code,
            status=dto.status.value,
            bill_id=dto.bill_id,  # pyright: ignore[reportArgumentType]
            bill_number=dto.bill_number,
            total_amount=dto.total_amount,
            expiry_date=dto.expiry_date,
            participant_count=dto.participant_count,
            tour_title=dto.tour_title,
        )


class FinalizeReservationErrorResponse(BaseModel):
    detail: str
    kind: str
