"""Idempotent debt ledger update, run inside the caller's unit of work.

The amount written is the calculator's `potential_debt`, so a dry run and
the real charge cannot disagree.

Policy, one debt per exeat request:
- no overdue day            -> nothing written
- no debt yet              -> create an unpaid debt
- unpaid debt exists       -> raise amount/overdue_hours to the new figure, never lower
- paid or cleared exists   -> left as is
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..core.enums import PaymentStatus
from ..exeats.model import ExeatRequest
from ..overdue.calculator.base import OverdueAssessment
from .model import NewDebt
from .repository import DebtRepository

logger = logging.getLogger(__name__)


class LedgerOutcome(str, Enum):
    NOT_DUE = "not_due"
    CREATED = "created"
    RAISED = "raised"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class LedgerResult:
    outcome: LedgerOutcome
    debt_id: Optional[int] = None
    amount: Decimal = Decimal(0)


def record_overdue_debt(
    debts: DebtRepository,
    request: ExeatRequest,
    assessment: OverdueAssessment,
    *,
    now: datetime,
) -> LedgerResult:
    days_overdue = assessment.days_overdue
    overdue_hours = assessment.overdue_hours
    if days_overdue <= 0:
        return LedgerResult(LedgerOutcome.NOT_DUE)

    amount = Decimal(assessment.potential_debt)
    existing = debts.get_for_request(request.request_id)

    if existing is None:
        debt_id = debts.create(
            NewDebt(
                student_id=request.student_id,
                exeat_request_id=request.request_id,
                amount=amount,
                overdue_hours=overdue_hours,
                created_at=now,
            )
        )
        logger.info(
            "Created overdue debt #%s for exeat #%s (student #%s): %s days, amount %s",
            debt_id,
            request.request_id,
            request.student_id,
            days_overdue,
            amount,
        )
        return LedgerResult(LedgerOutcome.CREATED, debt_id, amount)

    if existing.payment_status == PaymentStatus.UNPAID and amount > existing.amount:
        if debts.raise_unpaid_amount(existing.debt_id, amount=amount, overdue_hours=overdue_hours):
            logger.info(
                "Raised unpaid debt #%s for exeat #%s from %s to %s",
                existing.debt_id,
                request.request_id,
                existing.amount,
                amount,
            )
            return LedgerResult(LedgerOutcome.RAISED, existing.debt_id, amount)

    return LedgerResult(LedgerOutcome.UNCHANGED, existing.debt_id, existing.amount)
