from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import NewDebt, StudentExeatDebt


class DebtRepository(Protocol):
    def create(self, new: NewDebt) -> int:
        raise NotImplementedError

    def get(self, debt_id: int) -> Optional[StudentExeatDebt]:
        raise NotImplementedError

    def get_for_request(self, exeat_request_id: int) -> Optional[StudentExeatDebt]:
        raise NotImplementedError

    def raise_unpaid_amount(self, debt_id: int, *, amount: Decimal, overdue_hours: int) -> bool:
        """Update amount/overdue_hours of an unpaid debt; False if it is no longer unpaid."""

        raise NotImplementedError

    def mark_paid(
        self,
        debt_id: int,
        *,
        payment_reference: str,
        payment_proof: Optional[str],
        processing_charge: Decimal,
        total_amount_with_charge: Decimal,
        paid_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def mark_cleared(self, debt_id: int, *, cleared_by: int, cleared_at: datetime, notes: Optional[str]) -> bool:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[StudentExeatDebt]:
        raise NotImplementedError
