"""Hourly-versus-daily pricing of a single worked day."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from paycycle.calculators.types import (
    DailyCalculation,
    DayMethod,
    EmployeeRateProfile,
    RateKind,
)

logger = logging.getLogger(__name__)

DEFAULT_DAILY_THRESHOLD_HOURS = Decimal("12")


class DayPayRule:
    """Decides how one day's worked hours are paid.

    Priority order:
    1. Hours above the threshold and a daily rate is set -> daily rate
    2. An hourly rate is set -> hours x hourly rate
    3. Only a daily rate is set -> daily rate, regardless of hours
    4. No rate at all -> zero pay, flagged as unrateable

    The threshold is exclusive: exactly 12 hours is still paid hourly.
    """

    def __init__(self, threshold_hours: Decimal = DEFAULT_DAILY_THRESHOLD_HOURS):
        self.threshold_hours = threshold_hours

    def price_day(
        self,
        work_date: date,
        hours: Decimal,
        profile: EmployeeRateProfile,
    ) -> DailyCalculation:
        """Price one day for an employee."""
        kind = profile.kind

        if kind == RateKind.HOURLY_AND_DAILY:
            if hours > self.threshold_hours:
                return self._daily(work_date, hours, profile.daily_rate)
            return self._hourly(work_date, hours, profile.hourly_rate)

        if kind == RateKind.HOURLY_ONLY:
            return self._hourly(work_date, hours, profile.hourly_rate)

        if kind == RateKind.DAILY_ONLY:
            return self._daily(work_date, hours, profile.daily_rate)

        logger.warning(
            "No usable rate for employee %s (%s) on %s; day paid as zero",
            profile.full_name,
            profile.employee_id,
            work_date.isoformat(),
        )
        return DailyCalculation(
            work_date=work_date,
            hours=hours,
            method=DayMethod.HOURLY,
            pay=Decimal("0"),
            unrateable=True,
        )

    @staticmethod
    def _hourly(work_date: date, hours: Decimal, rate: Decimal) -> DailyCalculation:
        return DailyCalculation(
            work_date=work_date,
            hours=hours,
            method=DayMethod.HOURLY,
            pay=hours * rate,
        )

    @staticmethod
    def _daily(work_date: date, hours: Decimal, rate: Decimal) -> DailyCalculation:
        return DailyCalculation(
            work_date=work_date,
            hours=hours,
            method=DayMethod.DAILY,
            pay=rate,
        )
