"""Scheduled sweeps over late exeat requests.

Expiry sweep: requests whose return date has passed while the student never
left campus are closed as completed/expired. No debt is charged.

Overdue-monitor sweep: requests of students still off campus past the
return date are closed as completed/expired and the late-return debt is
recorded in the same transaction. A request waiting on the hostel sign-in
is closed without charging: the student is back, and the security sign-in
already recorded the debt at the real return time.

Both sweeps read candidates in one pass, then re-read and re-check each
candidate under a row lock in its own transaction, so running them twice
(or alongside a gate sign-in) never double-charges.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import Clock
from ..core.enums import ExeatStatus, NotificationType, RecipientType
from ..database.unit_of_work import UnitOfWorkFactory
from ..debts.ledger import LedgerOutcome, record_overdue_debt
from ..exeats.model import ExeatRequest
from ..notifications.dispatcher import SafeNotifier
from .calculator.base import DebtCalculator

logger = logging.getLogger(__name__)

_NOT_EXPIRABLE = frozenset(
    {
        ExeatStatus.SECURITY_SIGNIN,
        ExeatStatus.HOSTEL_SIGNIN,
        ExeatStatus.COMPLETED,
        ExeatStatus.REJECTED,
        ExeatStatus.CANCELLED,
    }
)


def is_overdue(request: ExeatRequest, now: datetime) -> bool:
    """True when the request should be closed by the expiry sweep."""
    return request.return_date < now.date() and not request.is_expired and request.status not in _NOT_EXPIRABLE


def is_overdue_off_campus(request: ExeatRequest, now: datetime) -> bool:
    return request.return_date < now.date() and not request.is_expired and request.status.is_off_campus


@dataclass(frozen=True)
class SweepItem:
    request_id: int
    student_id: int
    outcome: str
    days_overdue: int = 0
    debt_id: Optional[int] = None
    amount: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SweepSummary:
    sweep: str
    dry_run: bool
    candidates: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    items: list[SweepItem] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "sweep": self.sweep,
            "dry_run": self.dry_run,
            "candidates": self.candidates,
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "items": [asdict(item) for item in self.items],
        }


class OverdueSweepService:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        calculator: DebtCalculator,
        notifier: SafeNotifier,
        clock: Clock,
    ):
        self._uow_factory = uow_factory
        self._calculator = calculator
        self._notifier = notifier
        self._clock = clock

    def run_expiry_sweep(self, *, dry_run: bool = False) -> SweepSummary:
        now = self._clock.now()
        summary = SweepSummary(sweep="expiry", dry_run=dry_run)

        with self._uow_factory() as uow:
            candidates = list(uow.exeats.list_expiry_candidates(today=now.date()))
        summary.candidates = len(candidates)
        logger.info("Expiry sweep: %s candidate(s) at %s", len(candidates), now.isoformat())

        for candidate in candidates:
            if dry_run:
                summary.items.append(SweepItem(candidate.request_id, candidate.student_id, "would_expire"))
                continue
            try:
                item = self._expire_one(candidate.request_id, now)
            except Exception as e:
                logger.exception(
                    "Expiry sweep failed for exeat #%s (student #%s)", candidate.request_id, candidate.student_id
                )
                summary.failed += 1
                summary.items.append(SweepItem(candidate.request_id, candidate.student_id, "failed", error=str(e)))
                continue

            if item.outcome == "expired":
                summary.processed += 1
            else:
                summary.skipped += 1
            summary.items.append(item)

        logger.info(
            "Expiry sweep done: processed=%s skipped=%s failed=%s",
            summary.processed,
            summary.skipped,
            summary.failed,
        )
        return summary

    def _expire_one(self, request_id: int, now: datetime) -> SweepItem:
        with self._uow_factory() as uow:
            req = uow.exeats.get_for_update(request_id)
            if req is None or not is_overdue(req, now):
                return SweepItem(request_id, req.student_id if req else 0, "skipped")
            if not uow.exeats.mark_expired(req.request_id, expired_at=now, expected_version=req.version):
                return SweepItem(req.request_id, req.student_id, "skipped")

        logger.info("Exeat #%s (student #%s) expired from '%s'", req.request_id, req.student_id, req.status.value)
        self._notifier.send(
            RecipientType.STUDENT,
            req.student_id,
            NotificationType.EXEAT_EXPIRED,
            {"exeat_id": req.request_id, "from_status": req.status.value, "return_date": req.return_date.isoformat()},
        )
        return SweepItem(req.request_id, req.student_id, "expired")

    def run_overdue_monitor_sweep(self, *, dry_run: bool = False) -> SweepSummary:
        now = self._clock.now()
        summary = SweepSummary(sweep="overdue_monitor", dry_run=dry_run)

        with self._uow_factory() as uow:
            candidates = list(uow.exeats.list_overdue_candidates(today=now.date()))
        summary.candidates = len(candidates)
        logger.info("Overdue monitor: %s candidate(s) at %s", len(candidates), now.isoformat())

        for candidate in candidates:
            if dry_run and candidate.status == ExeatStatus.HOSTEL_SIGNIN:
                summary.items.append(SweepItem(candidate.request_id, candidate.student_id, "would_close"))
                continue
            if dry_run:
                assessment = self._calculator.assess(candidate.return_date, now)
                summary.items.append(
                    SweepItem(
                        candidate.request_id,
                        candidate.student_id,
                        "would_charge",
                        days_overdue=assessment.days_overdue,
                        amount=str(assessment.potential_debt),
                    )
                )
                continue
            try:
                item = self._settle_one(candidate.request_id, now)
            except Exception as e:
                logger.exception(
                    "Overdue monitor failed for exeat #%s (student #%s)", candidate.request_id, candidate.student_id
                )
                summary.failed += 1
                summary.items.append(SweepItem(candidate.request_id, candidate.student_id, "failed", error=str(e)))
                continue

            if item.outcome == "skipped":
                summary.skipped += 1
            else:
                summary.processed += 1
            summary.items.append(item)

        logger.info(
            "Overdue monitor done: processed=%s skipped=%s failed=%s",
            summary.processed,
            summary.skipped,
            summary.failed,
        )
        return summary

    def _settle_one(self, request_id: int, now: datetime) -> SweepItem:
        with self._uow_factory() as uow:
            req = uow.exeats.get_for_update(request_id)
            if req is None or not is_overdue_off_campus(req, now):
                return SweepItem(request_id, req.student_id if req else 0, "skipped")

            assessment = self._calculator.assess(req.return_date, now)
            if not uow.exeats.mark_expired(req.request_id, expired_at=now, expected_version=req.version):
                return SweepItem(req.request_id, req.student_id, "skipped")

            # Security already signed the student in and settled the debt then.
            if req.status == ExeatStatus.HOSTEL_SIGNIN:
                existing = uow.debts.get_for_request(req.request_id)
                debt = None
            else:
                debt = record_overdue_debt(uow.debts, req, assessment, now=now)

        if debt is None:
            logger.info(
                "Exeat #%s (student #%s) closed while awaiting hostel sign-in; debt left as recorded at the gate",
                req.request_id,
                req.student_id,
            )
            return SweepItem(
                req.request_id,
                req.student_id,
                "closed",
                debt_id=existing.debt_id if existing else None,
                amount=str(existing.amount) if existing else None,
            )

        logger.info(
            "Exeat #%s (student #%s) closed as overdue: %s day(s), debt %s",
            req.request_id,
            req.student_id,
            assessment.days_overdue,
            debt.outcome.value,
        )
        if debt.outcome in (LedgerOutcome.CREATED, LedgerOutcome.RAISED):
            self._notifier.send(
                RecipientType.STUDENT,
                req.student_id,
                NotificationType.DEBT_CREATED,
                {"exeat_id": req.request_id, "debt_id": debt.debt_id, "amount": str(debt.amount)},
            )
        return SweepItem(
            req.request_id,
            req.student_id,
            "charged",
            days_overdue=assessment.days_overdue,
            debt_id=debt.debt_id,
            amount=str(debt.amount),
        )
