from __future__ import annotations

import logging

from ..core.enums import ApproverRole
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .directory import StaffDirectory

logger = logging.getLogger(__name__)


class MySQLStaffDirectory(StaffDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def roles_for(self, staff_id: int) -> frozenset[ApproverRole]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role FROM staff_roles WHERE staff_id=%s", (int(staff_id),))
            rows = fetchall(cur)

        roles = set()
        for r in rows:
            try:
                roles.add(ApproverRole(r["role"]))
            except ValueError:
                logger.warning("Ignoring unknown role %r for staff #%s", r["role"], staff_id)
        return frozenset(roles)
