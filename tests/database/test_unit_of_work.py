import pytest

from src.exeat_system.exeat_system.core.enums import ExeatStatus
from src.exeat_system.exeat_system.database.unit_of_work import MySQLUnitOfWork


class FakeCursor:
    def __init__(self):
        self.executed = []
        self.rowcount = 1
        self.closed = False

    def execute(self, sql, params=None):
        self.executed.append((" ".join(sql.split()), params))

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self):
        self.cursor_obj = FakeCursor()
        self.events = []

    def start_transaction(self, **kwargs):
        self.events.append(("begin", kwargs.get("isolation_level")))

    def cursor(self, dictionary=False):
        return self.cursor_obj

    def commit(self):
        self.events.append("commit")

    def rollback(self):
        self.events.append("rollback")

    def close(self):
        self.events.append("close")


class FakeConnFactory:
    def __init__(self):
        self.conn = FakeConnection()

    def connect(self):
        return self.conn


def test_commits_on_clean_exit():
    factory = FakeConnFactory()

    with MySQLUnitOfWork(factory) as uow:
        assert uow.exeats.update_status(7, status=ExeatStatus.DEAN_REVIEW, expected_version=3)

    assert factory.conn.events == [("begin", "READ COMMITTED"), "commit", "close"]
    sql, params = factory.conn.cursor_obj.executed[0]
    assert "WHERE id=%s AND version=%s" in sql
    assert params == ("dean_review", 7, 3)


def test_rolls_back_and_reraises():
    factory = FakeConnFactory()

    with pytest.raises(RuntimeError):
        with MySQLUnitOfWork(factory):
            raise RuntimeError("boom")

    assert factory.conn.events == [("begin", "READ COMMITTED"), "rollback", "close"]
    assert factory.conn.cursor_obj.closed


def test_version_conflict_reported_as_false():
    factory = FakeConnFactory()
    factory.conn.cursor_obj.rowcount = 0

    with MySQLUnitOfWork(factory) as uow:
        assert uow.exeats.update_status(7, status=ExeatStatus.DEAN_REVIEW, expected_version=3) is False


def test_debt_raise_is_guarded_by_unpaid_status():
    factory = FakeConnFactory()

    with MySQLUnitOfWork(factory) as uow:
        uow.debts.raise_unpaid_amount(5, amount=20000, overdue_hours=30)

    sql, params = factory.conn.cursor_obj.executed[0]
    assert "WHERE id=%s AND payment_status=%s" in sql
    assert params[-1] == "unpaid"
