from __future__ import annotations

from enum import Enum


class ExeatStatus(str, Enum):
    """Lifecycle status of an exeat request."""

    PENDING = "pending"
    CMD_REVIEW = "cmd_review"
    SECRETARY_REVIEW = "secretary_review"
    PARENT_CONSENT = "parent_consent"
    DEAN_REVIEW = "dean_review"
    HOSTEL_SIGNOUT = "hostel_signout"
    SECURITY_SIGNOUT = "security_signout"
    SECURITY_SIGNIN = "security_signin"
    HOSTEL_SIGNIN = "hostel_signin"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    APPEAL = "appeal"

    @property
    def is_terminal(self) -> bool:
        return self in {ExeatStatus.COMPLETED, ExeatStatus.REJECTED, ExeatStatus.CANCELLED}

    @property
    def is_off_campus(self) -> bool:
        """Student has signed out at the gate and has not finished signing back in."""
        return self in {ExeatStatus.SECURITY_SIGNIN, ExeatStatus.HOSTEL_SIGNIN}


class ApproverRole(str, Enum):
    """Role that may act on an approval stage."""

    CMD = "cmd"
    SECRETARY = "secretary"
    PARENT = "parent"
    DEAN = "dean"
    HOSTEL_ADMIN = "hostel_admin"
    SECURITY = "security"
    ADMIN = "admin"


class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class PaymentStatus(str, Enum):
    """Debt payment status; only moves forward."""

    UNPAID = "unpaid"
    PAID = "paid"
    CLEARED = "cleared"


class RecipientType(str, Enum):
    STUDENT = "student"
    PARENT = "parent"
    STAFF_ROLE = "staff_role"
    ACADEMIC_ADMIN = "academic_admin"


class NotificationType(str, Enum):
    STAGE_CHANGE = "stage_change"
    APPROVAL_REQUIRED = "approval_required"
    REJECTION = "rejection"
    PARENT_CONSENT_REQUEST = "parent_consent_request"
    GATE_EVENT = "gate_event"
    WEEKDAY_ABSENCE = "weekday_absence"
    DEBT_CREATED = "debt_created"
    DEBT_CLEARED = "debt_cleared"
    EXEAT_EXPIRED = "exeat_expired"
