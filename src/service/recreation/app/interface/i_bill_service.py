from abc import ABC, abstractmethod

from uuid_utils import UUID

from src.service.recreation.app.dto.bill_dto import BillCreationRequest, BillCreationResult


class IBillService(ABC):
    """Port to the finance bounded context"""

    @abstractmethod
    async def create_and_issue_bill(self, *, request: BillCreationRequest) -> BillCreationResult:
        """
        Create a bill and issue it for payment.

        Business refusals come back as `BillCreationResult(is_success=False)`;
        the request's idempotency key makes retries safe.
        """
        pass

    @abstractmethod
    async def cancel_bill(self, *, bill_id: UUID, reason: str) -> None:
        """Compensate an issued bill whose reservation was not committed"""
        pass
