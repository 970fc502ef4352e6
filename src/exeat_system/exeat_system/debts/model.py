from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import PaymentStatus


@dataclass(frozen=True)
class StudentExeatDebt:
    """Penalty for an overdue return, one per exeat request."""

    debt_id: int
    student_id: int
    exeat_request_id: int
    amount: Decimal
    overdue_hours: int
    payment_status: PaymentStatus
    processing_charge: Optional[Decimal] = None
    total_amount_with_charge: Optional[Decimal] = None
    payment_reference: Optional[str] = None
    payment_proof: Optional[str] = None
    payment_date: Optional[datetime] = None
    cleared_by: Optional[int] = None
    cleared_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.payment_status != PaymentStatus.CLEARED


@dataclass(frozen=True)
class NewDebt:
    student_id: int
    exeat_request_id: int
    amount: Decimal
    overdue_hours: int
    created_at: datetime
