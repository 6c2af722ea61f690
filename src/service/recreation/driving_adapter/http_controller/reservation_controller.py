from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
from src.service.recreation.app.command.finalize_reservation_use_case import (
    FinalizeReservationUseCase,
)
from src.service.recreation.domain.enum.finalize_failure_kind import FinalizeFailureKind
from src.service.recreation.driving_adapter.http_controller.auth.current_actor import (
    get_current_external_user_id,
)
from src.service.recreation.driving_adapter.http_controller.schema.reservation_schema import (
    FinalizeReservationErrorResponse,
    FinalizeReservationResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post(
    '/{reservation_id}/finalize',
    status_code=status.HTTP_200_OK,
    response_model=FinalizeReservationResponse,
    responses={
        code: {'model': FinalizeReservationErrorResponse}
        for code in (404, 409, 422, 500, 502)
    },
)
@Logger.io
async def finalize_reservation(
    reservation_id: UtilsUUID7,
    external_user_id: str = Depends(get_current_external_user_id),
    use_case: FinalizeReservationUseCase = Depends(FinalizeReservationUseCase.depends),
) -> FinalizeReservationResponse | JSONResponse:
    with tracer.start_as_current_span('controller.finalize_reservation') as span:
        span.set_attribute('reservation.id', str(reservation_id))

        result = await use_case.finalize(
            reservation_id=reservation_id, external_user_id=external_user_id
        )

        if not result.is_success or result.response is None:
            failure_kind = result.failure_kind or FinalizeFailureKind.UNEXPECTED
            span.set_attribute('finalize.failure_kind', str(failure_kind))
            return JSONResponse(
                status_code=failure_kind.status_code,
                content={'detail': result.message, 'kind': str(failure_kind)},
            )

        return FinalizeReservationResponse.from_dto(result.response)
