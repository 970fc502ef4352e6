import logging

import pytest

from src.exeat_system.exeat_system.core.enums import ApproverRole, NotificationType, RecipientType
from src.exeat_system.exeat_system.core.exceptions import AuthorizationError, DeliveryFailure
from src.exeat_system.exeat_system.exeats.model import Actor
from src.exeat_system.exeat_system.notifications.dispatcher import LoggingNotificationDispatcher, SafeNotifier
from src.exeat_system.exeat_system.staff.policy import AuthorizationPolicy


class Directory:
    def roles_for(self, staff_id):
        return frozenset({ApproverRole.DEAN}) if staff_id == 12 else frozenset()


@pytest.fixture
def policy():
    return AuthorizationPolicy(Directory(), privileged_staff_ids=["596", 2])


def test_staff_holding_role(policy):
    policy.ensure_can_act(Actor(12, ApproverRole.DEAN))
    assert policy.holds(12, ApproverRole.ADMIN, ApproverRole.DEAN)


def test_staff_without_role(policy):
    with pytest.raises(AuthorizationError):
        policy.ensure_can_act(Actor(12, ApproverRole.SECURITY))


def test_staff_role_needs_identity(policy):
    with pytest.raises(AuthorizationError):
        policy.ensure_can_act(Actor(None, ApproverRole.DEAN))


def test_parent_needs_no_staff_identity(policy):
    policy.ensure_can_act(Actor(None, ApproverRole.PARENT))


def test_privileged_ids_come_from_configuration(policy):
    assert policy.is_privileged(596)
    assert policy.is_privileged(2)
    assert not policy.is_privileged(None)
    policy.ensure_can_act(Actor(596, ApproverRole.SECURITY))


class Exploding:
    def notify(self, *args):
        raise DeliveryFailure("smtp down")


def test_safe_notifier_swallows_and_logs(caplog):
    notifier = SafeNotifier(Exploding())

    with caplog.at_level(logging.ERROR):
        sent = notifier.send(RecipientType.STUDENT, 1, NotificationType.STAGE_CHANGE, {"exeat_id": 42})

    assert sent is False
    assert "exeat_id=42" in caplog.text


def test_logging_dispatcher(caplog):
    notifier = SafeNotifier(LoggingNotificationDispatcher())

    with caplog.at_level(logging.INFO):
        assert notifier.send(RecipientType.STAFF_ROLE, "dean", NotificationType.APPROVAL_REQUIRED, {"exeat_id": 7})

    assert "approval_required -> staff_role:dean" in caplog.text
