from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

from ..common.datetime_utils import Clock
from ..common.validators import optional_text, require_non_empty
from ..core.enums import ApproverRole, NotificationType, PaymentStatus, RecipientType
from ..core.exceptions import AuthorizationError, DebtNotFound, StaleState, ValidationError
from ..database.unit_of_work import UnitOfWorkFactory
from ..notifications.dispatcher import SafeNotifier
from ..staff.policy import AuthorizationPolicy
from .model import StudentExeatDebt

logger = logging.getLogger(__name__)


class DebtService:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        policy: AuthorizationPolicy,
        notifier: SafeNotifier,
        clock: Clock,
    ):
        self._uow_factory = uow_factory
        self._policy = policy
        self._notifier = notifier
        self._clock = clock

    @staticmethod
    def _parse_amount(value) -> Decimal:
        try:
            amount = Decimal(str(value if value not in (None, "") else 0))
        except InvalidOperation:
            raise ValidationError("Invalid processing charge")
        if amount < 0:
            raise ValidationError("Processing charge cannot be negative")
        return amount

    def get(self, debt_id: int) -> StudentExeatDebt:
        with self._uow_factory() as uow:
            debt = uow.debts.get(int(debt_id))
        if not debt:
            raise DebtNotFound(f"Debt #{debt_id} not found")
        return debt

    def list_for_student(self, *, student_id: int) -> Sequence[StudentExeatDebt]:
        with self._uow_factory() as uow:
            return list(uow.debts.list_for_student(int(student_id)))

    def mark_paid(
        self,
        *,
        debt_id: int,
        student_id: int,
        payment_reference: str,
        processing_charge=0,
        payment_proof: Optional[str] = None,
    ) -> StudentExeatDebt:
        reference = require_non_empty(payment_reference, "Payment reference")
        charge = self._parse_amount(processing_charge)
        now = self._clock.now()

        with self._uow_factory() as uow:
            debt = uow.debts.get(int(debt_id))
            if not debt:
                raise DebtNotFound(f"Debt #{debt_id} not found")
            if debt.student_id != int(student_id):
                raise AuthorizationError("You can only pay your own debts")
            if debt.payment_status != PaymentStatus.UNPAID:
                raise ValidationError("Debt is already paid or cleared")

            ok = uow.debts.mark_paid(
                debt.debt_id,
                payment_reference=reference,
                payment_proof=optional_text(payment_proof),
                processing_charge=charge,
                total_amount_with_charge=debt.amount + charge,
                paid_at=now,
            )
            if not ok:
                raise StaleState(f"Debt #{debt_id} changed while recording payment")
            updated = uow.debts.get(debt.debt_id)

        logger.info("Debt #%s marked paid (reference=%s)", debt_id, reference)
        return updated

    def clear(self, *, debt_id: int, staff_id: int, notes: str = "") -> StudentExeatDebt:
        if not self._policy.holds(staff_id, ApproverRole.ADMIN, ApproverRole.DEAN):
            raise AuthorizationError("Only deans or admins can clear student debts")
        now = self._clock.now()

        with self._uow_factory() as uow:
            debt = uow.debts.get(int(debt_id))
            if not debt:
                raise DebtNotFound(f"Debt #{debt_id} not found")
            if debt.payment_status != PaymentStatus.PAID:
                raise ValidationError("Cannot clear a debt that is not marked as paid")

            if not uow.debts.mark_cleared(debt.debt_id, cleared_by=int(staff_id), cleared_at=now, notes=optional_text(notes)):
                raise StaleState(f"Debt #{debt_id} changed while clearing")
            updated = uow.debts.get(debt.debt_id)

        logger.info("Debt #%s cleared by staff #%s", debt_id, staff_id)
        self._notifier.send(
            RecipientType.STUDENT,
            updated.student_id,
            NotificationType.DEBT_CLEARED,
            {"exeat_id": updated.exeat_request_id, "debt_id": updated.debt_id},
        )
        return updated
