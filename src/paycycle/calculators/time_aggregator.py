"""Aggregation of attendance intervals into worked hours per day."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from paycycle.calculators.types import AttendanceInterval, CycleWindow, DailyHours

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = Decimal("3600")


class TimeAggregator:
    """Groups one employee's attendance intervals by calendar day.

    Rules:
    - Intervals without a check-out are open sessions and are skipped.
    - An interval belongs to the date of its check-in, even when it
      runs past midnight.
    - Only check-in dates inside the cycle window are counted.
    - An interval whose check-out precedes its check-in contributes zero
      hours to its check-in date and is recorded as an anomaly instead of
      raising. Like a zero-length interval, it still marks that date as
      worked.
    """

    @staticmethod
    def interval_hours(interval: AttendanceInterval) -> Decimal:
        """Hours between check-in and check-out, never negative."""
        if interval.check_out is None:
            return Decimal("0")

        seconds = Decimal(str((interval.check_out - interval.check_in).total_seconds()))
        if seconds <= 0:
            return Decimal("0")
        return seconds / SECONDS_PER_HOUR

    @classmethod
    def aggregate(
        cls,
        intervals: Iterable[AttendanceInterval],
        window: CycleWindow,
    ) -> DailyHours:
        """Sum completed intervals per check-in date within the window."""
        result = DailyHours()

        for interval in intervals:
            if not interval.is_complete:
                continue

            work_date = interval.check_in.date()
            if not window.contains(work_date):
                continue

            check_out = interval.check_out
            if check_out is not None and check_out < interval.check_in:
                logger.warning(
                    "Counting attendance interval for employee %s as zero hours: "
                    "check-out %s is before check-in %s",
                    interval.employee_id,
                    check_out.isoformat(),
                    interval.check_in.isoformat(),
                )
                result.anomalies.append(interval)

            hours = cls.interval_hours(interval)
            result.hours_by_date[work_date] = (
                result.hours_by_date.get(work_date, Decimal("0")) + hours
            )

        return result
