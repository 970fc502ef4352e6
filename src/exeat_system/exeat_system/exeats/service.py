from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import Clock, iter_dates
from ..common.validators import optional_text, require_date_order, require_ids, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT, FAST_TRACK_SIGN_IN, FAST_TRACK_SIGN_OUT
from ..core.enums import (
    ApproverRole,
    Decision,
    ExeatStatus,
    NotificationType,
    RecipientType,
)
from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    InvalidStageTransition,
    RequestNotFound,
    StaleState,
    ValidationError,
)
from ..database.unit_of_work import UnitOfWorkFactory
from ..debts.ledger import LedgerOutcome, LedgerResult, record_overdue_debt
from ..notifications.dispatcher import SafeNotifier
from ..overdue.calculator.base import DebtCalculator
from ..staff.policy import AuthorizationPolicy
from .model import Actor, Approval, ExeatRequest, NewApproval, NewExeatRequest
from .workflow import CANCELLABLE, WorkflowOptions, next_approval_role, resolve_transition

logger = logging.getLogger(__name__)

_FAST_TRACK_STAGES = {
    FAST_TRACK_SIGN_OUT: ExeatStatus.SECURITY_SIGNOUT,
    FAST_TRACK_SIGN_IN: ExeatStatus.SECURITY_SIGNIN,
}


@dataclass(frozen=True)
class TransitionResult:
    request: ExeatRequest
    from_status: ExeatStatus
    to_status: ExeatStatus
    approval_id: Optional[int] = None
    debt: Optional[LedgerResult] = None


@dataclass
class BulkResult:
    succeeded: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)


class ExeatWorkflowService:
    """Lifecycle of an exeat request: submission, approvals, gate events.

    Every mutation runs in one unit of work (row lock + version guard);
    notifications go out only after the transaction has committed.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        policy: AuthorizationPolicy,
        notifier: SafeNotifier,
        clock: Clock,
        calculator: DebtCalculator,
        *,
        options: Optional[WorkflowOptions] = None,
    ):
        self._uow_factory = uow_factory
        self._policy = policy
        self._notifier = notifier
        self._clock = clock
        self._calculator = calculator
        self._options = options or WorkflowOptions()

    # ---- queries ----

    def get(self, request_id: int) -> ExeatRequest:
        with self._uow_factory() as uow:
            req = uow.exeats.get(int(request_id))
        if not req:
            raise RequestNotFound(f"Exeat request #{request_id} not found")
        return req

    def list_for_student(self, *, student_id: int, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[ExeatRequest]:
        with self._uow_factory() as uow:
            return list(uow.exeats.list_for_student(int(student_id), limit=int(limit)))

    def list_approvals(self, request_id: int) -> Sequence[Approval]:
        with self._uow_factory() as uow:
            if not uow.exeats.get(int(request_id)):
                raise RequestNotFound(f"Exeat request #{request_id} not found")
            return list(uow.exeats.list_approvals(int(request_id)))

    # ---- student actions ----

    def submit(
        self,
        *,
        student_id: int,
        category: str,
        reason: str,
        destination: str,
        departure_date: date,
        return_date: date,
        is_medical: bool = False,
        matric_no: Optional[str] = None,
        preferred_mode_of_contact: Optional[str] = None,
        parent_surname: Optional[str] = None,
        parent_othernames: Optional[str] = None,
        parent_phone_no: Optional[str] = None,
        parent_email: Optional[str] = None,
        student_accommodation: Optional[str] = None,
    ) -> ExeatRequest:
        category = require_non_empty(category, "Category")
        reason = require_non_empty(reason, "Reason")
        destination = require_non_empty(destination, "Destination")
        require_date_order(departure_date, return_date, start_name="Departure date", end_name="Return date")
        if return_date < self._clock.now().date():
            raise ValidationError("Return date cannot be in the past")

        new = NewExeatRequest(
            student_id=int(student_id),
            category=category,
            reason=reason,
            destination=destination,
            departure_date=departure_date,
            return_date=return_date,
            is_medical=bool(is_medical),
            matric_no=optional_text(matric_no),
            preferred_mode_of_contact=optional_text(preferred_mode_of_contact),
            parent_surname=optional_text(parent_surname),
            parent_othernames=optional_text(parent_othernames),
            parent_phone_no=optional_text(parent_phone_no),
            parent_email=optional_text(parent_email),
            student_accommodation=optional_text(student_accommodation),
        )

        with self._uow_factory() as uow:
            outstanding = [d for d in uow.debts.list_for_student(new.student_id) if d.is_open]
            if outstanding:
                total = sum((d.amount for d in outstanding))
                raise ValidationError(
                    f"Outstanding exeat debts ({len(outstanding)}, total {total}) must be cleared before a new request"
                )
            if uow.exeats.has_active_request(new.student_id):
                raise ValidationError("You already have an active exeat request")

            request_id = uow.exeats.create(new)
            req = uow.exeats.get(request_id)

        logger.info("Exeat #%s submitted by student #%s (%s)", req.request_id, req.student_id, req.category)
        self._notify_approval_required(req, req.status)
        return req

    def cancel(self, *, request_id: int, student_id: int) -> ExeatRequest:
        with self._uow_factory() as uow:
            req = self._load_for_update(uow, request_id)
            if req.student_id != int(student_id):
                raise AuthorizationError("You can only cancel your own exeat requests")
            if req.status not in CANCELLABLE:
                raise InvalidStageTransition(f"Exeat #{request_id} cannot be cancelled in stage '{req.status.value}'")
            if not uow.exeats.update_status(req.request_id, status=ExeatStatus.CANCELLED, expected_version=req.version):
                raise StaleState(f"Exeat #{request_id} changed while cancelling")
            updated = uow.exeats.get(req.request_id)

        logger.info("Exeat #%s cancelled by student #%s", request_id, student_id)
        self._notifier.send(
            RecipientType.STUDENT,
            updated.student_id,
            NotificationType.STAGE_CHANGE,
            self._payload(updated, from_status=req.status),
        )
        return updated

    def appeal(self, *, request_id: int, student_id: int, reason: str) -> ExeatRequest:
        reason = require_non_empty(reason, "Appeal reason")
        with self._uow_factory() as uow:
            req = self._load_for_update(uow, request_id)
            if req.student_id != int(student_id):
                raise AuthorizationError("You can only appeal your own exeat requests")
            if req.status != ExeatStatus.REJECTED:
                raise InvalidStageTransition("Only rejected exeat requests can be appealed")
            if uow.exeats.has_active_request(req.student_id):
                raise ValidationError("You already have an active exeat request")
            if not uow.exeats.update_status(req.request_id, status=ExeatStatus.APPEAL, expected_version=req.version):
                raise StaleState(f"Exeat #{request_id} changed while appealing")
            updated = uow.exeats.get(req.request_id)

        logger.info("Exeat #%s appealed by student #%s", request_id, student_id)
        self._notify_approval_required(updated, ExeatStatus.APPEAL, extra={"appeal_reason": reason})
        return updated

    # ---- staff actions ----

    def apply_approval(
        self,
        *,
        request_id: int,
        actor: Actor,
        decision: Decision,
        comment: Optional[str] = None,
        method: Optional[str] = None,
        expected_status: Optional[ExeatStatus] = None,
    ) -> TransitionResult:
        self._policy.ensure_can_act(actor)
        return self._transition(
            request_id=request_id,
            actor=actor,
            decision=decision,
            comment=comment,
            method=method,
            expected_status=expected_status,
        )

    def fast_track(self, *, request_id: int, staff_id: int, action: str) -> TransitionResult:
        """Gate shortcut for security: sign a student out or back in."""
        required = _FAST_TRACK_STAGES.get((action or "").strip().lower())
        if required is None:
            raise ValidationError(f"Unknown fast-track action: {action!r}")

        actor = Actor(staff_id=int(staff_id), role=ApproverRole.SECURITY)
        self._policy.ensure_can_act(actor)
        return self._transition(
            request_id=request_id,
            actor=actor,
            decision=Decision.APPROVE,
            comment=None,
            method="fast_track",
            required_status=required,
        )

    def bulk_apply(
        self,
        *,
        request_ids: Iterable[int],
        actor: Actor,
        decision: Decision,
        comment: Optional[str] = None,
    ) -> BulkResult:
        """Apply one decision to many requests; a failing item does not stop the rest."""
        self._policy.ensure_can_act(actor)
        ids = require_ids(request_ids, "request_ids")
        result = BulkResult()
        for request_id in ids:
            try:
                self._transition(
                    request_id=request_id,
                    actor=actor,
                    decision=decision,
                    comment=comment,
                    method="bulk",
                )
            except DomainError as e:
                logger.warning("Bulk %s skipped exeat #%s: %s", decision.value, request_id, e)
                result.failed[request_id] = str(e)
            else:
                result.succeeded.append(request_id)
        return result

    # ---- internals ----

    @staticmethod
    def _load_for_update(uow, request_id: int) -> ExeatRequest:
        req = uow.exeats.get_for_update(int(request_id))
        if not req:
            raise RequestNotFound(f"Exeat request #{request_id} not found")
        return req

    def _transition(
        self,
        *,
        request_id: int,
        actor: Actor,
        decision: Decision,
        comment: Optional[str],
        method: Optional[str],
        expected_status: Optional[ExeatStatus] = None,
        required_status: Optional[ExeatStatus] = None,
    ) -> TransitionResult:
        now = self._clock.now()
        debt: Optional[LedgerResult] = None

        with self._uow_factory() as uow:
            req = self._load_for_update(uow, request_id)
            if expected_status is not None and req.status != expected_status:
                raise StaleState(
                    f"Exeat #{request_id} is in '{req.status.value}', expected '{expected_status.value}'"
                )
            if required_status is not None and req.status != required_status:
                raise InvalidStageTransition(
                    f"Exeat #{request_id} is in '{req.status.value}', not '{required_status.value}'"
                )

            target = resolve_transition(req, actor.role, decision, self._options)

            if not uow.exeats.update_status(req.request_id, status=target, expected_version=req.version):
                raise StaleState(f"Exeat #{request_id} was modified concurrently")

            approval_id = uow.exeats.add_approval(
                NewApproval(
                    exeat_request_id=req.request_id,
                    staff_id=actor.staff_id,
                    role=actor.role,
                    decision=decision,
                    method=optional_text(method),
                    comment=optional_text(comment),
                    from_status=req.status,
                    to_status=target,
                    created_at=now,
                )
            )

            # Late return is settled when security signs the student back in.
            if req.status == ExeatStatus.SECURITY_SIGNIN and decision == Decision.APPROVE:
                assessment = self._calculator.assess(req.return_date, now)
                debt = record_overdue_debt(uow.debts, req, assessment, now=now)

            updated = uow.exeats.get(req.request_id)

        logger.info(
            "Exeat #%s: %s -> %s by %s #%s (%s)",
            req.request_id,
            req.status.value,
            target.value,
            actor.role.value,
            actor.staff_id,
            decision.value,
        )
        result = TransitionResult(
            request=updated,
            from_status=req.status,
            to_status=target,
            approval_id=approval_id,
            debt=debt,
        )
        self._notify_transition(result, decision)
        return result

    @staticmethod
    def _payload(req: ExeatRequest, *, from_status: Optional[ExeatStatus] = None, **extra) -> dict:
        payload = {
            "exeat_id": req.request_id,
            "student_id": req.student_id,
            "matric_no": req.matric_no,
            "status": req.status.value,
            "departure_date": req.departure_date.isoformat(),
            "return_date": req.return_date.isoformat(),
        }
        if from_status is not None:
            payload["from_status"] = from_status.value
        payload.update(extra)
        return payload

    @staticmethod
    def _parent_contact(req: ExeatRequest) -> Optional[str]:
        return req.parent_email or req.parent_phone_no

    def _notify_approval_required(self, req: ExeatRequest, status: ExeatStatus, extra: Optional[dict] = None) -> None:
        role = next_approval_role(req, status)
        if role is None:
            return
        if role == ApproverRole.PARENT:
            self._notifier.send(
                RecipientType.PARENT,
                self._parent_contact(req),
                NotificationType.PARENT_CONSENT_REQUEST,
                self._payload(req, preferred_mode_of_contact=req.preferred_mode_of_contact, **(extra or {})),
            )
            return
        self._notifier.send(
            RecipientType.STAFF_ROLE,
            role.value,
            NotificationType.APPROVAL_REQUIRED,
            self._payload(req, **(extra or {})),
        )

    def _notify_transition(self, result: TransitionResult, decision: Decision) -> None:
        req = result.request

        if decision == Decision.REJECT:
            self._notifier.send(
                RecipientType.STUDENT,
                req.student_id,
                NotificationType.REJECTION,
                self._payload(req, from_status=result.from_status),
            )
            return

        self._notifier.send(
            RecipientType.STUDENT,
            req.student_id,
            NotificationType.STAGE_CHANGE,
            self._payload(req, from_status=result.from_status),
        )
        self._notify_approval_required(req, result.to_status)

        if result.from_status == ExeatStatus.DEAN_REVIEW:
            self._notify_weekday_absence(req)

        gate_event = None
        if result.from_status == ExeatStatus.SECURITY_SIGNOUT:
            gate_event = "signed_out"
        elif result.from_status == ExeatStatus.SECURITY_SIGNIN:
            gate_event = "signed_in"
        if gate_event:
            self._notifier.send(
                RecipientType.PARENT,
                self._parent_contact(req),
                NotificationType.GATE_EVENT,
                self._payload(req, event=gate_event, at=self._clock.now().isoformat()),
            )

        if result.debt and result.debt.outcome in (LedgerOutcome.CREATED, LedgerOutcome.RAISED):
            self._notifier.send(
                RecipientType.STUDENT,
                req.student_id,
                NotificationType.DEBT_CREATED,
                self._payload(req, debt_id=result.debt.debt_id, amount=str(result.debt.amount)),
            )

    def _notify_weekday_absence(self, req: ExeatRequest) -> None:
        weekdays = [d for d in iter_dates(req.departure_date, req.return_date) if d.weekday() < 5]
        if not weekdays:
            return
        self._notifier.send(
            RecipientType.ACADEMIC_ADMIN,
            None,
            NotificationType.WEEKDAY_ABSENCE,
            self._payload(req, weekdays=[d.isoformat() for d in weekdays]),
        )
