"""
Member Service Interface

Port to the membership bounded context. Answers are always read live; nothing
here is cached between finalization attempts.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from src.service.recreation.app.dto.member_dto import EligibilityResult, MemberDetail, MemberSummary


class IMemberService(ABC):
    @abstractmethod
    async def get_member_by_external_id(self, *, external_user_id: str) -> Optional[MemberSummary]:
        pass

    @abstractmethod
    async def get_member_detail_by_national_code(
        self, *, national_code: str
    ) -> Optional[MemberDetail]:
        pass

    @abstractmethod
    async def has_active_membership(self, *, national_code: str) -> bool:
        pass

    @abstractmethod
    async def validate_member_eligibility(
        self,
        *,
        national_code: str,
        required_capabilities: Sequence[str],
        required_features: Sequence[str],
        allowed_agencies: Sequence[str],
    ) -> EligibilityResult:
        """
        Check a member against a tour's capability, feature and agency restrictions.

        Returns:
            EligibilityResult with every failed rule listed in `errors`
        """
        pass
