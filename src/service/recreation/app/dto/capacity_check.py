from typing import Optional

import attrs
from uuid_utils import UUID


@attrs.define(frozen=True)
class CapacityCheck:
    """Snapshot of the numbers behind an accepted capacity decision"""

    capacity_id: Optional[UUID]
    capacity_name: Optional[str]
    max_participants: int
    utilization: int
    existing_for_member: int
    requested: int

    @property
    def available(self) -> int:
        return self.max_participants - self.utilization + self.existing_for_member
