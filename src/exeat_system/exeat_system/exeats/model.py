from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ApproverRole, Decision, ExeatStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class ExeatRequest:
    """Domain entity: one leave-of-campus application."""

    request_id: int
    student_id: int
    category: str
    reason: str
    destination: str
    departure_date: date
    return_date: date
    status: ExeatStatus
    is_medical: bool = False
    is_expired: bool = False
    expired_at: Optional[datetime] = None
    matric_no: Optional[str] = None
    preferred_mode_of_contact: Optional[str] = None
    parent_surname: Optional[str] = None
    parent_othernames: Optional[str] = None
    parent_phone_no: Optional[str] = None
    parent_email: Optional[str] = None
    student_accommodation: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    def __post_init__(self):
        if not isinstance(self.status, ExeatStatus):
            raise ValidationError(f"Unknown exeat status: {self.status!r}")
        if self.is_expired and (self.status != ExeatStatus.COMPLETED or self.expired_at is None):
            raise ValidationError("An expired exeat must be completed and carry expired_at")

    @property
    def category_key(self) -> str:
        return (self.category or "").strip().lower()


@dataclass(frozen=True)
class NewExeatRequest:
    student_id: int
    category: str
    reason: str
    destination: str
    departure_date: date
    return_date: date
    is_medical: bool = False
    matric_no: Optional[str] = None
    preferred_mode_of_contact: Optional[str] = None
    parent_surname: Optional[str] = None
    parent_othernames: Optional[str] = None
    parent_phone_no: Optional[str] = None
    parent_email: Optional[str] = None
    student_accommodation: Optional[str] = None


@dataclass(frozen=True)
class Approval:
    """Append-only audit record of one staff (or parent) decision."""

    approval_id: int
    exeat_request_id: int
    staff_id: Optional[int]
    role: ApproverRole
    decision: Decision
    method: Optional[str]
    comment: Optional[str]
    from_status: ExeatStatus
    to_status: ExeatStatus
    created_at: datetime


@dataclass(frozen=True)
class NewApproval:
    exeat_request_id: int
    staff_id: Optional[int]
    role: ApproverRole
    decision: Decision
    method: Optional[str]
    comment: Optional[str]
    from_status: ExeatStatus
    to_status: ExeatStatus
    created_at: datetime


@dataclass(frozen=True)
class Actor:
    """Who is acting: a staff member, or a parent (no staff id)."""

    staff_id: Optional[int]
    role: ApproverRole
