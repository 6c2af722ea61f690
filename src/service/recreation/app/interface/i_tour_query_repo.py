from abc import ABC, abstractmethod
from typing import Optional

from uuid_utils import UUID

from src.service.recreation.domain.entity.tour_entity import Tour


class ITourQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, tour_id: UUID) -> Optional[Tour]:
        """Load a tour with its capacity windows and pricing rules"""
        pass
