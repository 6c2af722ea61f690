"""Membership service DTOs."""

from typing import List, Optional

import attrs
from uuid_utils import UUID


@attrs.define(frozen=True)
class MemberSummary:
    """The member behind an external (identity provider) user id"""

    id: UUID
    external_user_id: str
    national_code: str
    first_name: str
    last_name: str

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'.strip()


@attrs.define(frozen=True)
class MemberDetail:
    id: UUID
    national_code: str
    full_name: str
    capabilities: List[str] = attrs.field(factory=list)
    features: List[str] = attrs.field(factory=list)
    agencies: List[str] = attrs.field(factory=list)
    membership_number: Optional[str] = None


@attrs.define(frozen=True)
class EligibilityResult:
    is_eligible: bool
    errors: List[str] = attrs.field(factory=list)
