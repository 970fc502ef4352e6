"""Unit of work: one MySQL transaction shared by the exeat and debt repositories.

Usage:
    with uow_factory() as uow:
        req = uow.exeats.get_for_update(request_id)
        uow.exeats.update_status(...)
        uow.debts.create(...)
    # committed on clean exit, rolled back if the block raises
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from ..debts.mysql_debt_repository import MySQLDebtRepository
from ..debts.repository import DebtRepository
from ..exeats.mysql_exeat_repository import MySQLExeatRepository
from ..exeats.repository import ExeatRepository
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


class UnitOfWork(Protocol):
    exeats: ExeatRepository
    debts: DebtRepository

    def __enter__(self) -> "UnitOfWork":
        raise NotImplementedError

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        raise NotImplementedError


UnitOfWorkFactory = Callable[[], UnitOfWork]


class MySQLUnitOfWork:
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory
        self._conn = None
        self._cur = None
        self.exeats: Optional[ExeatRepository] = None
        self.debts: Optional[DebtRepository] = None

    def __enter__(self) -> "MySQLUnitOfWork":
        if self._conn is not None:
            raise RuntimeError("UnitOfWork context already entered")

        self._conn = self._conn_factory.connect()
        self._conn.start_transaction(isolation_level="READ COMMITTED")
        self._cur = self._conn.cursor(dictionary=True)
        self.exeats = MySQLExeatRepository(self._cur)
        self.debts = MySQLDebtRepository(self._cur)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        try:
            if exc_type is None:
                self._conn.commit()
            else:
                self._conn.rollback()
                logger.warning("Transaction rolled back due to %s", exc_type.__name__)
        finally:
            self._cur.close()
            self._conn.close()
            self._conn = None
            self._cur = None
            self.exeats = None
            self.debts = None
        return False


def mysql_uow_factory(conn_factory: DatabaseConnection) -> UnitOfWorkFactory:
    return lambda: MySQLUnitOfWork(conn_factory)
