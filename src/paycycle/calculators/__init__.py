"""Payroll cycle calculation core."""

from paycycle.calculators.day_pay_rule import DayPayRule
from paycycle.calculators.engine import (
    CycleCalculationResult,
    CycleCalculator,
    classify_method,
    round_money,
)
from paycycle.calculators.time_aggregator import TimeAggregator
from paycycle.calculators.types import (
    AttendanceInterval,
    CalculationMethod,
    CycleWindow,
    DailyCalculation,
    DailyHours,
    DayMethod,
    EmployeePayResult,
    EmployeeRateProfile,
    RateKind,
)

__all__ = [
    "AttendanceInterval",
    "CalculationMethod",
    "CycleCalculationResult",
    "CycleCalculator",
    "CycleWindow",
    "DailyCalculation",
    "DailyHours",
    "DayMethod",
    "DayPayRule",
    "EmployeePayResult",
    "EmployeeRateProfile",
    "RateKind",
    "TimeAggregator",
    "classify_method",
    "round_money",
]
