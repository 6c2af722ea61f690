"""Billing service DTOs."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

import attrs
from uuid_utils import UUID


@attrs.define(frozen=True)
class BillItemRequest:
    title: str
    description: str
    unit_price: int
    quantity: int
    discount_percentage: Optional[Decimal] = None

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@attrs.define(frozen=True)
class BillCreationRequest:
    title: str
    reference_id: str
    reference_tracking_code: str
    bill_type: str
    external_user_id: str
    user_national_number: str
    user_full_name: str
    description: str
    due_date: datetime
    items: List[BillItemRequest]
    idempotency_key: str
    metadata: dict[str, str] = attrs.field(factory=dict)

    @property
    def total_amount(self) -> int:
        return sum(item.line_total for item in self.items)


@attrs.define(frozen=True)
class BillCreationResult:
    is_success: bool
    bill_id: Optional[UUID] = None
    bill_number: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def issued(cls, *, bill_id: UUID, bill_number: str) -> 'BillCreationResult':
        return cls(is_success=True, bill_id=bill_id, bill_number=bill_number)

    @classmethod
    def failed(cls, message: str) -> 'BillCreationResult':
        return cls(is_success=False, message=message)
