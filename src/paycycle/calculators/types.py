"""Type definitions for the cycle calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


class RateKind(str, Enum):
    """Which rates an employee has configured.

    Resolved once when the rate profile is loaded so pricing rules
    branch on a closed set instead of re-checking nullable fields.
    """

    HOURLY_ONLY = "hourly_only"
    DAILY_ONLY = "daily_only"
    HOURLY_AND_DAILY = "hourly_and_daily"
    UNRATED = "unrated"


class DayMethod(str, Enum):
    """How a single worked day was priced."""

    HOURLY = "hourly"
    DAILY = "daily"


class CalculationMethod(str, Enum):
    """How an employee's whole cycle was priced."""

    HOURLY = "hourly"
    DAILY = "daily"
    MIXED = "mixed"


@dataclass(frozen=True)
class EmployeeRateProfile:
    """Rate configuration for one employee."""

    employee_id: UUID
    full_name: str
    kind: RateKind
    hourly_rate: Decimal | None = None
    daily_rate: Decimal | None = None

    @classmethod
    def from_rates(
        cls,
        employee_id: UUID,
        full_name: str,
        hourly_rate: Decimal | None,
        daily_rate: Decimal | None,
    ) -> EmployeeRateProfile:
        """Build a profile, resolving the rate kind from which rates are set."""
        if hourly_rate is not None and daily_rate is not None:
            kind = RateKind.HOURLY_AND_DAILY
        elif hourly_rate is not None:
            kind = RateKind.HOURLY_ONLY
        elif daily_rate is not None:
            kind = RateKind.DAILY_ONLY
        else:
            kind = RateKind.UNRATED

        return cls(
            employee_id=employee_id,
            full_name=full_name,
            kind=kind,
            hourly_rate=hourly_rate,
            daily_rate=daily_rate,
        )

    @property
    def is_eligible(self) -> bool:
        """An employee needs at least one rate to be calculated."""
        return self.kind != RateKind.UNRATED


@dataclass(frozen=True)
class AttendanceInterval:
    """One check-in/check-out session. A missing check-out means still open."""

    employee_id: UUID
    check_in: datetime
    check_out: datetime | None

    @property
    def is_complete(self) -> bool:
        return self.check_out is not None


@dataclass(frozen=True)
class CycleWindow:
    """Inclusive calendar-date window of a cycle."""

    start_date: date
    end_date: date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass
class DailyHours:
    """Worked hours per calendar day for one employee."""

    hours_by_date: dict[date, Decimal] = field(default_factory=dict)
    anomalies: list[AttendanceInterval] = field(default_factory=list)

    @property
    def days_worked(self) -> int:
        return len(self.hours_by_date)

    @property
    def total_hours(self) -> Decimal:
        return sum(self.hours_by_date.values(), Decimal("0"))


@dataclass(frozen=True)
class DailyCalculation:
    """Pricing of one worked day. Amounts are kept at full precision."""

    work_date: date
    hours: Decimal
    method: DayMethod
    pay: Decimal
    unrateable: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the persisted breakdown and audit trail."""
        return {
            "date": self.work_date.isoformat(),
            "hours": str(self.hours),
            "method": self.method.value,
            "pay": str(self.pay),
            "unrateable": self.unrateable,
        }


@dataclass
class EmployeePayResult:
    """Calculated base pay for one employee in a cycle."""

    employee_id: UUID
    full_name: str
    base_pay: Decimal
    total_hours: Decimal
    days_worked: int
    calculation_method: CalculationMethod
    daily_breakdown: list[DailyCalculation] = field(default_factory=list)

    @property
    def net_pay(self) -> Decimal:
        """Net pay before any adjustment equals base pay."""
        return self.base_pay
