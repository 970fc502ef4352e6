from __future__ import annotations

import dataclasses
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from src.exeat_system.exeat_system.common.datetime_utils import FixedClock
from src.exeat_system.exeat_system.container import build_services
from src.exeat_system.exeat_system.core.enums import ApproverRole, ExeatStatus, PaymentStatus
from src.exeat_system.exeat_system.core.exceptions import DeliveryFailure
from src.exeat_system.exeat_system.debts.model import StudentExeatDebt
from src.exeat_system.exeat_system.exeats.model import Approval, ExeatRequest

LAGOS = ZoneInfo("Africa/Lagos")

CMD, SECRETARY, DEAN, HOSTEL, SECURITY, ADMIN = 10, 11, 12, 13, 14, 15
PRIVILEGED = 596

STAFF_ROLES = {
    CMD: {ApproverRole.CMD},
    SECRETARY: {ApproverRole.SECRETARY},
    DEAN: {ApproverRole.DEAN},
    HOSTEL: {ApproverRole.HOSTEL_ADMIN},
    SECURITY: {ApproverRole.SECURITY},
    ADMIN: {ApproverRole.ADMIN},
}


def lagos(*args) -> datetime:
    return datetime(*args, tzinfo=LAGOS)


class InMemoryStore:
    def __init__(self):
        self.requests: dict[int, ExeatRequest] = {}
        self.approvals: list[Approval] = []
        self.debts: dict[int, StudentExeatDebt] = {}
        self.next_id = 1
        self.commits = 0
        self.rollbacks = 0
        # request ids whose locked read blows up (simulated DB error)
        self.broken: set[int] = set()

    def new_id(self) -> int:
        nid = self.next_id
        self.next_id += 1
        return nid

    def add_request(self, **overrides) -> ExeatRequest:
        values = dict(
            request_id=self.new_id(),
            student_id=100,
            category="weekend",
            reason="Family visit",
            destination="Abuja",
            departure_date=date(2024, 1, 5),
            return_date=date(2024, 1, 7),
            status=ExeatStatus.PENDING,
            parent_email="parent@example.com",
        )
        values.update(overrides)
        req = ExeatRequest(**values)
        self.requests[req.request_id] = req
        return req

    def add_debt(self, **overrides) -> StudentExeatDebt:
        values = dict(
            debt_id=self.new_id(),
            student_id=100,
            exeat_request_id=0,
            amount=Decimal("10000"),
            overdue_hours=1,
            payment_status=PaymentStatus.UNPAID,
        )
        values.update(overrides)
        debt = StudentExeatDebt(**values)
        self.debts[debt.debt_id] = debt
        return debt

    def debts_for(self, request_id: int) -> list[StudentExeatDebt]:
        return [d for d in self.debts.values() if d.exeat_request_id == request_id]


class Journal:
    """Undo log of one unit of work; ids handed out are not reused, as with AUTO_INCREMENT."""

    _MISSING = object()

    def __init__(self):
        self._undo = []

    def put(self, mapping: dict, key, value) -> None:
        previous = mapping.get(key, self._MISSING)
        mapping[key] = value
        self._undo.append((mapping, key, previous))

    def append(self, items: list, value) -> None:
        items.append(value)
        self._undo.append((items, None, value))

    def rollback(self) -> None:
        for target, key, previous in reversed(self._undo):
            if isinstance(target, list):
                target.remove(previous)
            elif previous is self._MISSING:
                del target[key]
            else:
                target[key] = previous
        self._undo.clear()


class InMemoryExeatRepo:
    def __init__(self, store: InMemoryStore, journal: Journal):
        self._s = store
        self._j = journal

    def create(self, new) -> int:
        rid = self._s.new_id()
        self._j.put(self._s.requests, rid, ExeatRequest(request_id=rid, status=ExeatStatus.PENDING, **dataclasses.asdict(new)))
        return rid

    def get(self, request_id):
        return self._s.requests.get(int(request_id))

    def get_for_update(self, request_id):
        if int(request_id) in self._s.broken:
            raise RuntimeError("lock wait timeout")
        return self.get(request_id)

    def has_active_request(self, student_id) -> bool:
        return any(
            r.student_id == student_id and not r.is_expired and not r.status.is_terminal
            for r in self._s.requests.values()
        )

    def update_status(self, request_id, *, status, expected_version) -> bool:
        cur = self._s.requests.get(int(request_id))
        if cur is None or cur.version != expected_version:
            return False
        self._j.put(self._s.requests, cur.request_id, dataclasses.replace(cur, status=status, version=cur.version + 1))
        return True

    def mark_expired(self, request_id, *, expired_at, expected_version) -> bool:
        cur = self._s.requests.get(int(request_id))
        if cur is None or cur.version != expected_version or cur.is_expired:
            return False
        self._j.put(
            self._s.requests,
            cur.request_id,
            dataclasses.replace(
                cur,
                status=ExeatStatus.COMPLETED,
                is_expired=True,
                expired_at=expired_at,
                version=cur.version + 1,
            ),
        )
        return True

    def add_approval(self, approval) -> int:
        aid = self._s.new_id()
        self._j.append(self._s.approvals, Approval(approval_id=aid, **dataclasses.asdict(approval)))
        return aid

    def list_approvals(self, request_id):
        return [a for a in self._s.approvals if a.exeat_request_id == int(request_id)]

    def list_for_student(self, student_id, *, limit=200):
        return [r for r in self._s.requests.values() if r.student_id == int(student_id)][:limit]

    def list_expiry_candidates(self, *, today):
        closed = {ExeatStatus.SECURITY_SIGNIN, ExeatStatus.HOSTEL_SIGNIN}
        return [
            r
            for r in self._s.requests.values()
            if r.return_date < today and not r.is_expired and not r.status.is_terminal and r.status not in closed
        ]

    def list_overdue_candidates(self, *, today):
        return [
            r
            for r in self._s.requests.values()
            if r.return_date < today and not r.is_expired and r.status.is_off_campus
        ]


class InMemoryDebtRepo:
    def __init__(self, store: InMemoryStore, journal: Journal):
        self._s = store
        self._j = journal

    def create(self, new) -> int:
        if self._s.debts_for(new.exeat_request_id):
            raise RuntimeError("Duplicate entry for key 'uq_debt_request'")
        debt_id = self._s.new_id()
        self._j.put(
            self._s.debts,
            debt_id,
            StudentExeatDebt(debt_id=debt_id, payment_status=PaymentStatus.UNPAID, **dataclasses.asdict(new)),
        )
        return debt_id

    def get(self, debt_id):
        return self._s.debts.get(int(debt_id))

    def get_for_request(self, exeat_request_id):
        found = self._s.debts_for(int(exeat_request_id))
        return found[0] if found else None

    def _update(self, debt_id, required: PaymentStatus, **changes) -> bool:
        cur = self._s.debts.get(int(debt_id))
        if cur is None or cur.payment_status != required:
            return False
        self._j.put(self._s.debts, cur.debt_id, dataclasses.replace(cur, **changes))
        return True

    def raise_unpaid_amount(self, debt_id, *, amount, overdue_hours) -> bool:
        return self._update(debt_id, PaymentStatus.UNPAID, amount=amount, overdue_hours=overdue_hours)

    def mark_paid(self, debt_id, *, payment_reference, payment_proof, processing_charge, total_amount_with_charge, paid_at):
        return self._update(
            debt_id,
            PaymentStatus.UNPAID,
            payment_status=PaymentStatus.PAID,
            payment_reference=payment_reference,
            payment_proof=payment_proof,
            processing_charge=processing_charge,
            total_amount_with_charge=total_amount_with_charge,
            payment_date=paid_at,
        )

    def mark_cleared(self, debt_id, *, cleared_by, cleared_at, notes) -> bool:
        return self._update(
            debt_id,
            PaymentStatus.PAID,
            payment_status=PaymentStatus.CLEARED,
            cleared_by=cleared_by,
            cleared_at=cleared_at,
            notes=notes,
        )

    def list_for_student(self, student_id):
        return [d for d in self._s.debts.values() if d.student_id == int(student_id)]


class InMemoryUnitOfWork:
    def __init__(self, store: InMemoryStore):
        self._store = store
        self._journal = Journal()
        self.exeats = InMemoryExeatRepo(store, self._journal)
        self.debts = InMemoryDebtRepo(store, self._journal)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            self._store.commits += 1
        else:
            self._journal.rollback()
            self._store.rollbacks += 1
        return False


class FakeDirectory:
    def __init__(self, roles: dict[int, set[ApproverRole]]):
        self._roles = roles

    def roles_for(self, staff_id):
        return frozenset(self._roles.get(int(staff_id), set()))


class RecordingDispatcher:
    def __init__(self):
        self.sent = []
        self.fail = False

    def notify(self, recipient_type, recipient_id, notification_type, payload):
        if self.fail:
            raise DeliveryFailure("channel down")
        self.sent.append((recipient_type, recipient_id, notification_type, dict(payload)))

    def of_type(self, notification_type):
        return [n for n in self.sent if n[2] == notification_type]


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return FixedClock(lagos(2024, 1, 5, 10, 0, 0))


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def uow_factory(store):
    return lambda: InMemoryUnitOfWork(store)


@pytest.fixture
def make_container(uow_factory, clock, dispatcher):
    def _make(**overrides):
        kwargs = dict(
            uow_factory=uow_factory,
            directory=FakeDirectory(STAFF_ROLES),
            dispatcher=dispatcher,
            clock=clock,
            base_debt_unit=10_000,
            privileged_staff_ids=(PRIVILEGED,),
        )
        kwargs.update(overrides)
        return build_services(**kwargs)

    return _make


@pytest.fixture
def container(make_container):
    return make_container()


@pytest.fixture
def staff():
    return SimpleNamespace(
        cmd=CMD,
        secretary=SECRETARY,
        dean=DEAN,
        hostel=HOSTEL,
        security=SECURITY,
        admin=ADMIN,
        privileged=PRIVILEGED,
    )
