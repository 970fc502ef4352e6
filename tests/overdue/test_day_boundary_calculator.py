from datetime import date, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from src.exeat_system.exeat_system.overdue.calculator.day_boundary_calculator import (
    DayBoundaryDebtCalculator,
    days_overdue,
    return_cutoff,
)

LAGOS = ZoneInfo("Africa/Lagos")
RETURN = date(2024, 1, 10)


def at(*args) -> datetime:
    return datetime(*args, tzinfo=LAGOS)


@pytest.mark.parametrize(
    "now",
    [
        at(2024, 1, 9, 8, 0),
        at(2024, 1, 10, 0, 0),
        at(2024, 1, 10, 23, 59, 59),
    ],
)
def test_no_days_until_end_of_return_day(now):
    assert days_overdue(RETURN, now) == 0


def test_one_second_after_cutoff_is_one_day():
    cutoff = return_cutoff(RETURN, at(2024, 1, 10))
    assert days_overdue(RETURN, cutoff + timedelta(seconds=1)) == 1


def test_whole_next_day_is_still_one_day():
    assert days_overdue(RETURN, at(2024, 1, 11, 23, 59, 59)) == 1


def test_a_day_and_a_second_after_cutoff_is_two_days():
    cutoff = return_cutoff(RETURN, at(2024, 1, 10))
    assert days_overdue(RETURN, cutoff + timedelta(hours=24, seconds=1)) == 2


def test_three_days_after_two_midnights():
    assert days_overdue(RETURN, at(2024, 1, 13, 0, 0, 1)) == 3


def test_crosses_month_and_leap_day():
    assert days_overdue(date(2024, 2, 28), at(2024, 3, 1, 9, 0)) == 2


def test_cutoff_follows_clock_timezone():
    cutoff = return_cutoff(RETURN, at(2024, 1, 12))
    assert cutoff.tzinfo is LAGOS
    assert (cutoff.hour, cutoff.minute, cutoff.second) == (23, 59, 59)


def test_assess_reports_days_hours_and_debt():
    calc = DayBoundaryDebtCalculator(10_000)
    assessment = calc.assess(RETURN, at(2024, 1, 13, 0, 0, 1))

    assert assessment.days_overdue == 3
    assert assessment.overdue_hours == 48
    assert assessment.potential_debt == Decimal("30000")


def test_assess_on_time_charges_nothing():
    calc = DayBoundaryDebtCalculator()
    assessment = calc.assess(RETURN, at(2024, 1, 10, 18, 0))

    assert assessment.days_overdue == 0
    assert assessment.overdue_hours == 0
    assert assessment.potential_debt == 0


def test_custom_base_unit():
    calc = DayBoundaryDebtCalculator(2500)
    assert calc.base_unit == Decimal("2500")
    assert calc.assess(RETURN, at(2024, 1, 11, 12, 0)).potential_debt == Decimal("2500")
