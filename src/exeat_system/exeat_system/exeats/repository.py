from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ExeatStatus
from .model import Approval, ExeatRequest, NewApproval, NewExeatRequest


class ExeatRepository(Protocol):
    def create(self, new: NewExeatRequest) -> int:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[ExeatRequest]:
        raise NotImplementedError

    def get_for_update(self, request_id: int) -> Optional[ExeatRequest]:
        """Read the row and hold a write lock on it until the transaction ends."""

        raise NotImplementedError

    def has_active_request(self, student_id: int) -> bool:
        raise NotImplementedError

    def update_status(self, request_id: int, *, status: ExeatStatus, expected_version: int) -> bool:
        """Write the new status if the row is still at `expected_version`; bumps the version."""

        raise NotImplementedError

    def mark_expired(self, request_id: int, *, expired_at: datetime, expected_version: int) -> bool:
        """Force completed + is_expired if the row is still at `expected_version`."""

        raise NotImplementedError

    def add_approval(self, approval: NewApproval) -> int:
        raise NotImplementedError

    def list_approvals(self, request_id: int) -> Sequence[Approval]:
        raise NotImplementedError

    def list_for_student(self, student_id: int, *, limit: int = 200) -> Sequence[ExeatRequest]:
        raise NotImplementedError

    def list_expiry_candidates(self, *, today: date) -> Sequence[ExeatRequest]:
        """Non-expired requests past their return date that have not left campus or finished."""

        raise NotImplementedError

    def list_overdue_candidates(self, *, today: date) -> Sequence[ExeatRequest]:
        """Non-expired off-campus requests past their return date."""

        raise NotImplementedError
