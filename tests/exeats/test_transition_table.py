from dataclasses import replace
from datetime import date
from itertools import product

import pytest

from src.exeat_system.exeat_system.core.enums import ApproverRole, Decision, ExeatStatus
from src.exeat_system.exeat_system.core.exceptions import InvalidStageTransition, ValidationError
from src.exeat_system.exeat_system.exeats.model import ExeatRequest
from src.exeat_system.exeat_system.exeats.workflow import (
    GUARDS,
    TRANSITIONS,
    WorkflowOptions,
    next_approval_role,
    resolve_transition,
    roles_for_stage,
)

S = ExeatStatus
R = ApproverRole
D = Decision


def make(status=S.PENDING, *, category="weekend", is_medical=False):
    return ExeatRequest(
        request_id=1,
        student_id=100,
        category=category,
        reason="r",
        destination="d",
        departure_date=date(2024, 1, 5),
        return_date=date(2024, 1, 7),
        status=status,
        is_medical=is_medical,
    )


def walk(request, steps, options=None):
    seen = [request.status]
    for role in steps:
        request = replace(request, status=resolve_transition(request, role, D.APPROVE, options))
        seen.append(request.status)
    return seen


@pytest.mark.parametrize("status,role,decision", list(product(S, R, D)))
def test_every_pair_outside_the_table_is_refused(status, role, decision):
    if (status, role, decision) in TRANSITIONS:
        pytest.skip("allowed pair")
    req = make(status)
    with pytest.raises(InvalidStageTransition):
        resolve_transition(req, role, decision)


def test_standard_route():
    steps = [R.SECRETARY, R.SECRETARY, R.PARENT, R.DEAN, R.HOSTEL_ADMIN, R.SECURITY, R.SECURITY, R.HOSTEL_ADMIN]
    assert walk(make(), steps) == [
        S.PENDING,
        S.SECRETARY_REVIEW,
        S.PARENT_CONSENT,
        S.DEAN_REVIEW,
        S.HOSTEL_SIGNOUT,
        S.SECURITY_SIGNOUT,
        S.SECURITY_SIGNIN,
        S.HOSTEL_SIGNIN,
        S.COMPLETED,
    ]


def test_medical_route_starts_with_cmd():
    seen = walk(make(is_medical=True), [R.CMD, R.CMD, R.SECRETARY])
    assert seen == [S.PENDING, S.CMD_REVIEW, S.SECRETARY_REVIEW, S.PARENT_CONSENT]


def test_medical_request_cannot_bypass_cmd():
    with pytest.raises(InvalidStageTransition):
        resolve_transition(make(is_medical=True), R.SECRETARY, D.APPROVE)


def test_cmd_cannot_take_non_medical_request():
    with pytest.raises(InvalidStageTransition):
        resolve_transition(make(), R.CMD, D.REJECT)


@pytest.mark.parametrize("category", ["daily", "Daily_Medical "])
def test_daily_categories_skip_dean(category):
    req = make(S.PARENT_CONSENT, category=category)
    assert resolve_transition(req, R.PARENT, D.APPROVE) == S.HOSTEL_SIGNOUT


def test_holiday_skips_hostel_signout():
    req = make(S.DEAN_REVIEW, category="holiday")
    assert resolve_transition(req, R.DEAN, D.APPROVE) == S.SECURITY_SIGNOUT


def test_hostel_stages_can_be_switched_off():
    options = WorkflowOptions(hostel_stages_enabled=False)
    assert resolve_transition(make(S.DEAN_REVIEW), R.DEAN, D.APPROVE, options) == S.SECURITY_SIGNOUT
    assert resolve_transition(make(S.SECURITY_SIGNIN), R.SECURITY, D.APPROVE, options) == S.COMPLETED


def test_secretary_may_consent_on_behalf_of_parent():
    assert resolve_transition(make(S.PARENT_CONSENT), R.SECRETARY, D.APPROVE) == S.DEAN_REVIEW


def test_reject_ignores_route_adjustments():
    req = make(S.PARENT_CONSENT, category="daily")
    assert resolve_transition(req, R.PARENT, D.REJECT) == S.REJECTED


def test_students_off_campus_cannot_be_rejected():
    with pytest.raises(InvalidStageTransition):
        resolve_transition(make(S.SECURITY_SIGNIN), R.SECURITY, D.REJECT)


def test_appeal_goes_back_to_secretary():
    assert resolve_transition(make(S.APPEAL), R.DEAN, D.APPROVE) == S.SECRETARY_REVIEW


def test_terminal_statuses_have_no_roles():
    for status in (S.COMPLETED, S.REJECTED, S.CANCELLED):
        assert roles_for_stage(status) == frozenset()


def test_next_approval_role():
    assert next_approval_role(make(is_medical=True), S.PENDING) == R.CMD
    assert next_approval_role(make(), S.PENDING) == R.SECRETARY
    assert next_approval_role(make(), S.PARENT_CONSENT) == R.PARENT
    assert next_approval_role(make(), S.DEAN_REVIEW) == R.DEAN
    assert next_approval_role(make(), S.COMPLETED) is None


def test_guards_only_cover_pending():
    assert {status for status, _ in GUARDS} == {S.PENDING}


def test_expired_request_must_be_completed():
    with pytest.raises(ValidationError):
        replace(make(), is_expired=True)
