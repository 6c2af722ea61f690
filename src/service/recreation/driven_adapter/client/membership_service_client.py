"""
Membership Service Client

httpx adapter for the membership bounded context. Every call goes to the
service; answers are never cached because membership can change between two
finalization attempts.
"""

import time
from typing import Any, Optional, Sequence

import httpx
import orjson
from uuid_utils import UUID

from src.platform.exception.exceptions import ExternalServiceError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import metrics
from src.service.recreation.app.dto.member_dto import EligibilityResult, MemberDetail, MemberSummary
from src.service.recreation.app.interface.i_member_service import IMemberService


SERVICE_NAME = 'membership'


class MembershipServiceClient(IMemberService):
    def __init__(self, *, http_client: httpx.AsyncClient) -> None:
        self.http_client = http_client

    async def _request(
        self, *, operation: str, method: str, path: str, json_body: Optional[dict] = None
    ) -> Optional[Any]:
        """
        Returns:
            decoded JSON body, or None when the service answers 404

        Raises:
            ExternalServiceError: transport errors and any other non-2xx reply
        """
        start = time.perf_counter()
        outcome = 'error'
        try:
            response = await self.http_client.request(
                method,
                path,
                content=orjson.dumps(json_body) if json_body is not None else None,
                headers={'Content-Type': 'application/json'} if json_body is not None else None,
            )
            if response.status_code == 404:
                outcome = 'not_found'
                return None
            if response.is_error:
                raise ExternalServiceError(
                    f'Membership service {operation} failed with status {response.status_code}'
                )
            outcome = 'ok'
            return orjson.loads(response.content)
        except httpx.HTTPError as e:
            raise ExternalServiceError(f'Membership service unreachable during {operation}: {e}')
        finally:
            metrics.record_external_request(
                service=SERVICE_NAME,
                operation=operation,
                outcome=outcome,
                duration=time.perf_counter() - start,
            )

    @Logger.io
    async def get_member_by_external_id(self, *, external_user_id: str) -> Optional[MemberSummary]:
        data = await self._request(
            operation='get_member_by_external_id',
            method='GET',
            path=f'/api/members/by-external-id/{external_user_id}',
        )
        if data is None:
            return None
        return MemberSummary(
            id=UUID(data['id']),
            external_user_id=data['external_user_id'],
            national_code=data['national_code'],
            first_name=data.get('first_name', ''),
            last_name=data.get('last_name', ''),
        )

    @Logger.io
    async def get_member_detail_by_national_code(
        self, *, national_code: str
    ) -> Optional[MemberDetail]:
        data = await self._request(
            operation='get_member_detail',
            method='GET',
            path=f'/api/members/{national_code}',
        )
        if data is None:
            return None
        return MemberDetail(
            id=UUID(data['id']),
            national_code=data['national_code'],
            full_name=data.get('full_name', ''),
            capabilities=list(data.get('capabilities') or []),
            features=list(data.get('features') or []),
            agencies=list(data.get('agencies') or []),
            membership_number=data.get('membership_number'),
        )

    @Logger.io
    async def has_active_membership(self, *, national_code: str) -> bool:
        data = await self._request(
            operation='has_active_membership',
            method='GET',
            path=f'/api/members/{national_code}/membership/active',
        )
        return bool(data and data.get('is_active'))

    @Logger.io
    async def validate_member_eligibility(
        self,
        *,
        national_code: str,
        required_capabilities: Sequence[str],
        required_features: Sequence[str],
        allowed_agencies: Sequence[str],
    ) -> EligibilityResult:
        data = await self._request(
            operation='validate_member_eligibility',
            method='POST',
            path=f'/api/members/{national_code}/eligibility',
            json_body={
                'required_capabilities': list(required_capabilities),
                'required_features': list(required_features),
                'allowed_agencies': list(allowed_agencies),
            },
        )
        if data is None:
            return EligibilityResult(is_eligible=False, errors=['Member was not found'])
        return EligibilityResult(
            is_eligible=bool(data.get('is_eligible')), errors=list(data.get('errors') or [])
        )
