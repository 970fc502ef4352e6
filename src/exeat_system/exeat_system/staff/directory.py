from __future__ import annotations

from typing import Protocol

from ..core.enums import ApproverRole


class StaffDirectory(Protocol):
    def roles_for(self, staff_id: int) -> frozenset[ApproverRole]:
        raise NotImplementedError
