from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import ApproverRole, Decision, ExeatStatus
from ..database.mysql_base import as_date, fetchall, fetchone, naive
from .model import Approval, ExeatRequest, NewApproval, NewExeatRequest
from .repository import ExeatRepository

_COLUMNS = """
    id, student_id, matric_no, category, reason, destination,
    departure_date, return_date, preferred_mode_of_contact,
    parent_surname, parent_othernames, parent_phone_no, parent_email,
    student_accommodation, status, is_medical, is_expired, expired_at,
    version, created_at, updated_at
"""

# Off campus (left to the overdue monitor) or already closed.
_NOT_EXPIRABLE = (
    ExeatStatus.SECURITY_SIGNIN,
    ExeatStatus.HOSTEL_SIGNIN,
    ExeatStatus.COMPLETED,
    ExeatStatus.REJECTED,
    ExeatStatus.CANCELLED,
)
_OFF_CAMPUS = (ExeatStatus.SECURITY_SIGNIN, ExeatStatus.HOSTEL_SIGNIN)
_INACTIVE = (ExeatStatus.COMPLETED, ExeatStatus.REJECTED, ExeatStatus.CANCELLED)


def _placeholders(values) -> str:
    return ",".join(["%s"] * len(values))


class MySQLExeatRepository(ExeatRepository):
    """Works on a cursor owned by a unit of work; never commits by itself."""

    def __init__(self, cur):
        self._cur = cur

    @staticmethod
    def _to_request(r: dict) -> ExeatRequest:
        return ExeatRequest(
            request_id=int(r["id"]),
            student_id=int(r["student_id"]),
            matric_no=r.get("matric_no"),
            category=r.get("category") or "",
            reason=r["reason"],
            destination=r["destination"],
            departure_date=as_date(r["departure_date"]),
            return_date=as_date(r["return_date"]),
            preferred_mode_of_contact=r.get("preferred_mode_of_contact"),
            parent_surname=r.get("parent_surname"),
            parent_othernames=r.get("parent_othernames"),
            parent_phone_no=r.get("parent_phone_no"),
            parent_email=r.get("parent_email"),
            student_accommodation=r.get("student_accommodation"),
            status=ExeatStatus(r["status"]),
            is_medical=bool(r["is_medical"]),
            is_expired=bool(r["is_expired"]),
            expired_at=r.get("expired_at"),
            version=int(r["version"]),
            created_at=r.get("created_at"),
            updated_at=r.get("updated_at"),
        )

    def create(self, new: NewExeatRequest) -> int:
        self._cur.execute(
            """
            INSERT INTO exeat_requests(
                student_id, matric_no, category, reason, destination,
                departure_date, return_date, preferred_mode_of_contact,
                parent_surname, parent_othernames, parent_phone_no, parent_email,
                student_accommodation, status, is_medical
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                int(new.student_id),
                new.matric_no,
                new.category,
                new.reason,
                new.destination,
                new.departure_date,
                new.return_date,
                new.preferred_mode_of_contact,
                new.parent_surname,
                new.parent_othernames,
                new.parent_phone_no,
                new.parent_email,
                new.student_accommodation,
                ExeatStatus.PENDING.value,
                int(bool(new.is_medical)),
            ),
        )
        return int(self._cur.lastrowid)

    def get(self, request_id: int) -> Optional[ExeatRequest]:
        self._cur.execute(f"SELECT {_COLUMNS} FROM exeat_requests WHERE id=%s", (int(request_id),))
        r = fetchone(self._cur)
        return self._to_request(r) if r else None

    def get_for_update(self, request_id: int) -> Optional[ExeatRequest]:
        self._cur.execute(f"SELECT {_COLUMNS} FROM exeat_requests WHERE id=%s FOR UPDATE", (int(request_id),))
        r = fetchone(self._cur)
        return self._to_request(r) if r else None

    def has_active_request(self, student_id: int) -> bool:
        self._cur.execute(
            f"""
            SELECT COUNT(*) AS n FROM exeat_requests
            WHERE student_id=%s AND is_expired=0 AND status NOT IN ({_placeholders(_INACTIVE)})
            """,
            (int(student_id), *[s.value for s in _INACTIVE]),
        )
        r = fetchone(self._cur)
        return bool(r and int(r["n"]) > 0)

    def update_status(self, request_id: int, *, status: ExeatStatus, expected_version: int) -> bool:
        self._cur.execute(
            """
            UPDATE exeat_requests
            SET status=%s, version=version+1, updated_at=NOW()
            WHERE id=%s AND version=%s
            """,
            (status.value, int(request_id), int(expected_version)),
        )
        return self._cur.rowcount == 1

    def mark_expired(self, request_id: int, *, expired_at: datetime, expected_version: int) -> bool:
        self._cur.execute(
            """
            UPDATE exeat_requests
            SET status=%s, is_expired=1, expired_at=%s, version=version+1, updated_at=NOW()
            WHERE id=%s AND version=%s AND is_expired=0
            """,
            (ExeatStatus.COMPLETED.value, naive(expired_at), int(request_id), int(expected_version)),
        )
        return self._cur.rowcount == 1

    def add_approval(self, approval: NewApproval) -> int:
        self._cur.execute(
            """
            INSERT INTO exeat_approvals(
                exeat_request_id, staff_id, role, decision, method, comment,
                from_status, to_status, created_at
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                int(approval.exeat_request_id),
                approval.staff_id,
                approval.role.value,
                approval.decision.value,
                approval.method,
                approval.comment,
                approval.from_status.value,
                approval.to_status.value,
                naive(approval.created_at),
            ),
        )
        return int(self._cur.lastrowid)

    def list_approvals(self, request_id: int) -> Sequence[Approval]:
        self._cur.execute(
            """
            SELECT id, exeat_request_id, staff_id, role, decision, method, comment,
                   from_status, to_status, created_at
            FROM exeat_approvals
            WHERE exeat_request_id=%s
            ORDER BY created_at, id
            """,
            (int(request_id),),
        )
        return [
            Approval(
                approval_id=int(r["id"]),
                exeat_request_id=int(r["exeat_request_id"]),
                staff_id=r.get("staff_id"),
                role=ApproverRole(r["role"]),
                decision=Decision(r["decision"]),
                method=r.get("method"),
                comment=r.get("comment"),
                from_status=ExeatStatus(r["from_status"]),
                to_status=ExeatStatus(r["to_status"]),
                created_at=r["created_at"],
            )
            for r in fetchall(self._cur)
        ]

    def list_for_student(self, student_id: int, *, limit: int = 200) -> Sequence[ExeatRequest]:
        self._cur.execute(
            f"SELECT {_COLUMNS} FROM exeat_requests WHERE student_id=%s ORDER BY created_at DESC LIMIT %s",
            (int(student_id), int(limit)),
        )
        return [self._to_request(r) for r in fetchall(self._cur)]

    def list_expiry_candidates(self, *, today: date) -> Sequence[ExeatRequest]:
        self._cur.execute(
            f"""
            SELECT {_COLUMNS} FROM exeat_requests
            WHERE return_date < %s AND is_expired=0 AND status NOT IN ({_placeholders(_NOT_EXPIRABLE)})
            ORDER BY id
            """,
            (today, *[s.value for s in _NOT_EXPIRABLE]),
        )
        return [self._to_request(r) for r in fetchall(self._cur)]

    def list_overdue_candidates(self, *, today: date) -> Sequence[ExeatRequest]:
        self._cur.execute(
            f"""
            SELECT {_COLUMNS} FROM exeat_requests
            WHERE return_date < %s AND is_expired=0 AND status IN ({_placeholders(_OFF_CAMPUS)})
            ORDER BY id
            """,
            (today, *[s.value for s in _OFF_CAMPUS]),
        )
        return [self._to_request(r) for r in fetchall(self._cur)]
