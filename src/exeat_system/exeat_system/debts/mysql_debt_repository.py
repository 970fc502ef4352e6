from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import PaymentStatus
from ..database.mysql_base import as_decimal, fetchall, fetchone, naive
from .model import NewDebt, StudentExeatDebt
from .repository import DebtRepository

_COLUMNS = """
    id, student_id, exeat_request_id, amount, processing_charge,
    total_amount_with_charge, overdue_hours, payment_status,
    payment_reference, payment_proof, payment_date, cleared_by,
    cleared_at, notes, created_at
"""


class MySQLDebtRepository(DebtRepository):
    def __init__(self, cur):
        self._cur = cur

    @staticmethod
    def _to_debt(r: dict) -> StudentExeatDebt:
        return StudentExeatDebt(
            debt_id=int(r["id"]),
            student_id=int(r["student_id"]),
            exeat_request_id=int(r["exeat_request_id"]),
            amount=as_decimal(r["amount"]),
            processing_charge=as_decimal(r.get("processing_charge")),
            total_amount_with_charge=as_decimal(r.get("total_amount_with_charge")),
            overdue_hours=int(r.get("overdue_hours") or 0),
            payment_status=PaymentStatus(r["payment_status"]),
            payment_reference=r.get("payment_reference"),
            payment_proof=r.get("payment_proof"),
            payment_date=r.get("payment_date"),
            cleared_by=r.get("cleared_by"),
            cleared_at=r.get("cleared_at"),
            notes=r.get("notes"),
            created_at=r.get("created_at"),
        )

    def create(self, new: NewDebt) -> int:
        self._cur.execute(
            """
            INSERT INTO student_exeat_debts(
                student_id, exeat_request_id, amount, overdue_hours, payment_status, created_at
            )
            VALUES(%s,%s,%s,%s,%s,%s)
            """,
            (
                int(new.student_id),
                int(new.exeat_request_id),
                new.amount,
                int(new.overdue_hours),
                PaymentStatus.UNPAID.value,
                naive(new.created_at),
            ),
        )
        return int(self._cur.lastrowid)

    def get(self, debt_id: int) -> Optional[StudentExeatDebt]:
        self._cur.execute(f"SELECT {_COLUMNS} FROM student_exeat_debts WHERE id=%s FOR UPDATE", (int(debt_id),))
        r = fetchone(self._cur)
        return self._to_debt(r) if r else None

    def get_for_request(self, exeat_request_id: int) -> Optional[StudentExeatDebt]:
        self._cur.execute(
            f"SELECT {_COLUMNS} FROM student_exeat_debts WHERE exeat_request_id=%s FOR UPDATE",
            (int(exeat_request_id),),
        )
        r = fetchone(self._cur)
        return self._to_debt(r) if r else None

    def raise_unpaid_amount(self, debt_id: int, *, amount: Decimal, overdue_hours: int) -> bool:
        self._cur.execute(
            """
            UPDATE student_exeat_debts
            SET amount=%s, overdue_hours=%s, updated_at=NOW()
            WHERE id=%s AND payment_status=%s
            """,
            (amount, int(overdue_hours), int(debt_id), PaymentStatus.UNPAID.value),
        )
        return self._cur.rowcount == 1

    def mark_paid(
        self,
        debt_id: int,
        *,
        payment_reference: str,
        payment_proof: Optional[str],
        processing_charge: Decimal,
        total_amount_with_charge: Decimal,
        paid_at: datetime,
    ) -> bool:
        self._cur.execute(
            """
            UPDATE student_exeat_debts
            SET payment_status=%s, payment_reference=%s, payment_proof=%s,
                processing_charge=%s, total_amount_with_charge=%s, payment_date=%s, updated_at=NOW()
            WHERE id=%s AND payment_status=%s
            """,
            (
                PaymentStatus.PAID.value,
                payment_reference,
                payment_proof,
                processing_charge,
                total_amount_with_charge,
                naive(paid_at),
                int(debt_id),
                PaymentStatus.UNPAID.value,
            ),
        )
        return self._cur.rowcount == 1

    def mark_cleared(self, debt_id: int, *, cleared_by: int, cleared_at: datetime, notes: Optional[str]) -> bool:
        self._cur.execute(
            """
            UPDATE student_exeat_debts
            SET payment_status=%s, cleared_by=%s, cleared_at=%s, notes=%s, updated_at=NOW()
            WHERE id=%s AND payment_status=%s
            """,
            (
                PaymentStatus.CLEARED.value,
                int(cleared_by),
                naive(cleared_at),
                notes,
                int(debt_id),
                PaymentStatus.PAID.value,
            ),
        )
        return self._cur.rowcount == 1

    def list_for_student(self, student_id: int) -> Sequence[StudentExeatDebt]:
        self._cur.execute(
            f"SELECT {_COLUMNS} FROM student_exeat_debts WHERE student_id=%s ORDER BY created_at DESC",
            (int(student_id),),
        )
        return [self._to_debt(r) for r in fetchall(self._cur)]
