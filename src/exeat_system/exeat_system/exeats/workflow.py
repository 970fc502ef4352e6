"""Exeat state machine: the transition table and route adjustments.

The table maps (from_status, role, decision) to the default target status.
Route adjustments then skip stages that do not apply to a request
(daily/holiday categories, hostel stages switched off). Everything here is
pure; persistence and side effects live in `service.py`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from ..core.constants import DAILY_CATEGORIES, HOLIDAY_CATEGORIES
from ..core.enums import ApproverRole, Decision, ExeatStatus
from ..core.exceptions import InvalidStageTransition
from .model import ExeatRequest

S = ExeatStatus
R = ApproverRole
D = Decision

TRANSITIONS: Mapping[tuple[ExeatStatus, ApproverRole, Decision], ExeatStatus] = {
    (S.PENDING, R.CMD, D.APPROVE): S.CMD_REVIEW,
    (S.PENDING, R.CMD, D.REJECT): S.REJECTED,
    (S.PENDING, R.SECRETARY, D.APPROVE): S.SECRETARY_REVIEW,
    (S.PENDING, R.SECRETARY, D.REJECT): S.REJECTED,
    (S.CMD_REVIEW, R.CMD, D.APPROVE): S.SECRETARY_REVIEW,
    (S.CMD_REVIEW, R.CMD, D.REJECT): S.REJECTED,
    (S.SECRETARY_REVIEW, R.SECRETARY, D.APPROVE): S.PARENT_CONSENT,
    (S.SECRETARY_REVIEW, R.SECRETARY, D.REJECT): S.REJECTED,
    (S.PARENT_CONSENT, R.PARENT, D.APPROVE): S.DEAN_REVIEW,
    (S.PARENT_CONSENT, R.PARENT, D.REJECT): S.REJECTED,
    (S.PARENT_CONSENT, R.SECRETARY, D.APPROVE): S.DEAN_REVIEW,
    (S.PARENT_CONSENT, R.SECRETARY, D.REJECT): S.REJECTED,
    (S.DEAN_REVIEW, R.DEAN, D.APPROVE): S.HOSTEL_SIGNOUT,
    (S.DEAN_REVIEW, R.DEAN, D.REJECT): S.REJECTED,
    (S.HOSTEL_SIGNOUT, R.HOSTEL_ADMIN, D.APPROVE): S.SECURITY_SIGNOUT,
    (S.HOSTEL_SIGNOUT, R.HOSTEL_ADMIN, D.REJECT): S.REJECTED,
    (S.SECURITY_SIGNOUT, R.SECURITY, D.APPROVE): S.SECURITY_SIGNIN,
    (S.SECURITY_SIGNOUT, R.SECURITY, D.REJECT): S.REJECTED,
    # Once the student is off campus the only way forward is signing back in.
    (S.SECURITY_SIGNIN, R.SECURITY, D.APPROVE): S.HOSTEL_SIGNIN,
    (S.HOSTEL_SIGNIN, R.HOSTEL_ADMIN, D.APPROVE): S.COMPLETED,
    (S.APPEAL, R.DEAN, D.APPROVE): S.SECRETARY_REVIEW,
    (S.APPEAL, R.DEAN, D.REJECT): S.REJECTED,
}

# Medical requests enter through the CMD, everything else through the secretary.
GUARDS: Mapping[tuple[ExeatStatus, ApproverRole], Callable[[ExeatRequest], bool]] = {
    (S.PENDING, R.CMD): lambda req: req.is_medical,
    (S.PENDING, R.SECRETARY): lambda req: not req.is_medical,
}

# Statuses a student may still cancel from (not yet signed out at the gate).
CANCELLABLE = frozenset(
    {
        S.PENDING,
        S.CMD_REVIEW,
        S.SECRETARY_REVIEW,
        S.PARENT_CONSENT,
        S.DEAN_REVIEW,
        S.HOSTEL_SIGNOUT,
        S.SECURITY_SIGNOUT,
        S.APPEAL,
    }
)


@dataclass(frozen=True)
class WorkflowOptions:
    hostel_stages_enabled: bool = True


def roles_for_stage(status: ExeatStatus) -> frozenset[ApproverRole]:
    return frozenset(role for (from_status, role, _) in TRANSITIONS if from_status == status)


def resolve_transition(
    request: ExeatRequest,
    role: ApproverRole,
    decision: Decision,
    options: Optional[WorkflowOptions] = None,
) -> ExeatStatus:
    """Return the status `request` moves to, or raise InvalidStageTransition."""
    options = options or WorkflowOptions()
    current = request.status

    target = TRANSITIONS.get((current, role, decision))
    if target is None:
        raise InvalidStageTransition(
            f"Role '{role.value}' cannot {decision.value} an exeat in stage '{current.value}'"
        )

    guard = GUARDS.get((current, role))
    if guard is not None and not guard(request):
        raise InvalidStageTransition(
            f"Role '{role.value}' cannot take exeat #{request.request_id} out of '{current.value}'"
        )

    if decision == Decision.REJECT:
        return target
    return _adjust_route(request, current, target, options)


def _adjust_route(
    request: ExeatRequest,
    current: ExeatStatus,
    target: ExeatStatus,
    options: WorkflowOptions,
) -> ExeatStatus:
    category = request.category_key

    if current == S.PARENT_CONSENT and category in DAILY_CATEGORIES:
        target = S.HOSTEL_SIGNOUT
    if current == S.DEAN_REVIEW and category in HOLIDAY_CATEGORIES:
        target = S.SECURITY_SIGNOUT

    if not options.hostel_stages_enabled:
        if target == S.HOSTEL_SIGNOUT:
            target = S.SECURITY_SIGNOUT
        elif target == S.HOSTEL_SIGNIN:
            target = S.COMPLETED
    return target


def next_approval_role(request: ExeatRequest, status: ExeatStatus) -> Optional[ApproverRole]:
    """Role whose approval the request waits for once it sits in `status`."""
    if status == S.PENDING:
        return R.CMD if request.is_medical else R.SECRETARY
    if status == S.PARENT_CONSENT:
        return R.PARENT
    roles = roles_for_stage(status)
    if len(roles) == 1:
        return next(iter(roles))
    return None
