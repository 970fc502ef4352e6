from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal


@dataclass(frozen=True)
class OverdueAssessment:
    days_overdue: int
    overdue_hours: int
    potential_debt: Decimal


class DebtCalculator(ABC):
    """Calculator interface (Strategy Pattern for late-return penalties)."""

    @abstractmethod
    def days_overdue(self, expected_return_date: date, now: datetime) -> int:
        raise NotImplementedError

    @abstractmethod
    def assess(self, expected_return_date: date, now: datetime) -> OverdueAssessment:
        raise NotImplementedError
