"""Cycle calculator - pure fold from attendance and rates to base pay."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from paycycle.calculators.day_pay_rule import DEFAULT_DAILY_THRESHOLD_HOURS, DayPayRule
from paycycle.calculators.time_aggregator import TimeAggregator
from paycycle.calculators.types import (
    AttendanceInterval,
    CalculationMethod,
    CycleWindow,
    DailyCalculation,
    DayMethod,
    EmployeePayResult,
    EmployeeRateProfile,
)

CENT = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    """Round a monetary total to cents."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def classify_method(days: Sequence[DailyCalculation]) -> CalculationMethod:
    """Classify a cycle from the methods used on each day.

    No worked days is classified as hourly.
    """
    methods = {day.method for day in days}
    if not methods or methods == {DayMethod.HOURLY}:
        return CalculationMethod.HOURLY
    if methods == {DayMethod.DAILY}:
        return CalculationMethod.DAILY
    return CalculationMethod.MIXED


@dataclass
class CycleCalculationResult:
    """Result of calculating a whole cycle."""

    window: CycleWindow
    employees: list[EmployeePayResult] = field(default_factory=list)

    @property
    def total_employees(self) -> int:
        return len(self.employees)

    @property
    def total_base_pay(self) -> Decimal:
        return sum((e.base_pay for e in self.employees), Decimal("0"))

    @property
    def total_hours(self) -> Decimal:
        return sum((e.total_hours for e in self.employees), Decimal("0"))


class CycleCalculator:
    """Computes base pay for every eligible employee of a cycle.

    Pipeline (per employee, stable order):
    1) Aggregate completed attendance intervals into hours per day
    2) Price each day with the hourly/daily rule
    3) Sum day pay at full precision, round once to cents
    4) Classify the cycle as hourly, daily or mixed

    Has no side effects and holds no state between calls.
    """

    def __init__(self, threshold_hours: Decimal = DEFAULT_DAILY_THRESHOLD_HOURS):
        self.day_rule = DayPayRule(threshold_hours)

    def calculate_cycle(
        self,
        window: CycleWindow,
        employees: Iterable[EmployeeRateProfile],
        intervals: Iterable[AttendanceInterval],
    ) -> CycleCalculationResult:
        """Calculate base pay for all employees over the cycle window."""
        by_employee: dict[UUID, list[AttendanceInterval]] = defaultdict(list)
        for interval in intervals:
            by_employee[interval.employee_id].append(interval)

        results = [
            self.calculate_employee(window, profile, by_employee.get(profile.employee_id, []))
            for profile in employees
        ]
        return CycleCalculationResult(window=window, employees=results)

    def calculate_employee(
        self,
        window: CycleWindow,
        profile: EmployeeRateProfile,
        intervals: Iterable[AttendanceInterval],
    ) -> EmployeePayResult:
        """Calculate base pay for a single employee."""
        daily_hours = TimeAggregator.aggregate(intervals, window)

        breakdown = [
            self.day_rule.price_day(work_date, hours, profile)
            for work_date, hours in sorted(daily_hours.hours_by_date.items())
        ]
        base_pay = sum((day.pay for day in breakdown), Decimal("0"))

        return EmployeePayResult(
            employee_id=profile.employee_id,
            full_name=profile.full_name,
            base_pay=round_money(base_pay),
            total_hours=round_money(daily_hours.total_hours),
            days_worked=daily_hours.days_worked,
            calculation_method=classify_method(breakdown),
            daily_breakdown=breakdown,
        )
