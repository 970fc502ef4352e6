from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from ...core.constants import DEFAULT_BASE_DEBT_UNIT
from .base import DebtCalculator, OverdueAssessment

END_OF_DAY = time(23, 59, 59)


def return_cutoff(expected_return_date: date, now: datetime) -> datetime:
    """23:59:59 of the expected return date, in the same timezone as `now`."""
    return datetime.combine(expected_return_date, END_OF_DAY, tzinfo=now.tzinfo)


def days_overdue(expected_return_date: date, now: datetime) -> int:
    """Count penalty days after 23:59:59 of the expected return date.

    Grace runs until the end of the due day. After that the cutoff is moved
    forward one calendar day at a time (always re-anchored at 23:59:59, so
    a DST shift in the target timezone does not move the boundary) until it
    reaches `now`; every step is one overdue day.
    """
    cutoff = return_cutoff(expected_return_date, now)
    if now <= cutoff:
        return 0

    days = 0
    boundary_date = expected_return_date
    while cutoff < now:
        boundary_date += timedelta(days=1)
        cutoff = datetime.combine(boundary_date, END_OF_DAY, tzinfo=now.tzinfo)
        days += 1
    return days


class DayBoundaryDebtCalculator(DebtCalculator):
    """Standard rule: base unit charged per started day past 23:59:59 of the return date."""

    def __init__(self, base_debt_unit: int | Decimal = DEFAULT_BASE_DEBT_UNIT):
        self._base_unit = Decimal(base_debt_unit)

    @property
    def base_unit(self) -> Decimal:
        return self._base_unit

    def days_overdue(self, expected_return_date: date, now: datetime) -> int:
        return days_overdue(expected_return_date, now)

    def assess(self, expected_return_date: date, now: datetime) -> OverdueAssessment:
        days = days_overdue(expected_return_date, now)
        hours = 0
        if days:
            elapsed = now - return_cutoff(expected_return_date, now)
            hours = int(elapsed.total_seconds() // 3600)
        return OverdueAssessment(days_overdue=days, overdue_hours=hours, potential_debt=days * self._base_unit)
