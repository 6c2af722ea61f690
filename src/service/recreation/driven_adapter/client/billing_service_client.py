"""
Billing Service Client

httpx adapter for the finance bounded context. Bill creation is retried safely
by the billing side thanks to the Idempotency-Key header.
"""

import time
from typing import Any

import httpx
import orjson
from uuid_utils import UUID

from src.platform.exception.exceptions import ExternalServiceError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import metrics
from src.service.recreation.app.dto.bill_dto import BillCreationRequest, BillCreationResult
from src.service.recreation.app.interface.i_bill_service import IBillService


SERVICE_NAME = 'billing'


def _bill_payload(request: BillCreationRequest) -> dict[str, Any]:
    return {
        'title': request.title,
        'reference_id': request.reference_id,
        'reference_tracking_code': request.reference_tracking_code,
        'bill_type': request.bill_type,
        'external_user_id': request.external_user_id,
        'user_national_number': request.user_national_number,
        'user_full_name': request.user_full_name,
        'description': request.description,
        'due_date': request.due_date,
        'total_amount': request.total_amount,
        'items': [
            {
                'title': item.title,
                'description': item.description,
                'unit_price': item.unit_price,
                'quantity': item.quantity,
                'discount_percentage': (
                    str(item.discount_percentage) if item.discount_percentage is not None else None
                ),
            }
            for item in request.items
        ],
        'metadata': request.metadata,
    }


def _error_detail(response: httpx.Response) -> str:
    try:
        body = orjson.loads(response.content)
    except orjson.JSONDecodeError:
        return response.text or f'status {response.status_code}'
    if isinstance(body, dict):
        return str(body.get('detail') or body.get('message') or body)
    return str(body)


class BillingServiceClient(IBillService):
    def __init__(self, *, http_client: httpx.AsyncClient) -> None:
        self.http_client = http_client

    def _record(self, *, operation: str, outcome: str, start: float) -> None:
        metrics.record_external_request(
            service=SERVICE_NAME,
            operation=operation,
            outcome=outcome,
            duration=time.perf_counter() - start,
        )

    @Logger.io
    async def create_and_issue_bill(self, *, request: BillCreationRequest) -> BillCreationResult:
        start = time.perf_counter()
        try:
            response = await self.http_client.post(
                '/api/bills',
                content=orjson.dumps(_bill_payload(request)),
                headers={
                    'Content-Type': 'application/json',
                    'Idempotency-Key': request.idempotency_key,
                },
            )
        except httpx.HTTPError as e:
            self._record(operation='create_and_issue_bill', outcome='error', start=start)
            return BillCreationResult.failed(f'Billing service unreachable: {e}')

        if response.is_error:
            self._record(operation='create_and_issue_bill', outcome='error', start=start)
            return BillCreationResult.failed(
                f'Billing service refused the bill: {_error_detail(response)}'
            )

        try:
            data = orjson.loads(response.content)
            bill_id, bill_number = UUID(data['bill_id']), str(data['bill_number'])
        except (ValueError, KeyError, TypeError) as e:
            # the bill may exist; a retry with the same idempotency key returns it
            self._record(operation='create_and_issue_bill', outcome='error', start=start)
            Logger.base.error(
                f'🧾 [BILLING] Unreadable bill reply for {request.reference_tracking_code}: '
                f'{type(e).__name__}: {e}'
            )
            return BillCreationResult.failed('Billing service returned an unreadable bill')

        self._record(operation='create_and_issue_bill', outcome='ok', start=start)
        return BillCreationResult.issued(bill_id=bill_id, bill_number=bill_number)

    @Logger.io
    async def cancel_bill(self, *, bill_id: UUID, reason: str) -> None:
        start = time.perf_counter()
        try:
            response = await self.http_client.post(
                f'/api/bills/{bill_id}/cancel',
                content=orjson.dumps({'reason': reason}),
                headers={
                    'Content-Type': 'application/json',
                    'Idempotency-Key': f'cancel-{bill_id}',
                },
            )
        except httpx.HTTPError as e:
            self._record(operation='cancel_bill', outcome='error', start=start)
            raise ExternalServiceError(f'Billing service unreachable while cancelling: {e}')

        if response.is_error:
            self._record(operation='cancel_bill', outcome='error', start=start)
            raise ExternalServiceError(
                f'Billing service could not cancel bill {bill_id}: {_error_detail(response)}'
            )
        self._record(operation='cancel_bill', outcome='ok', start=start)
