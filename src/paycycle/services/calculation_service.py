"""Calculation service - runs the cycle calculator against stored data."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paycycle.calculators import (
    AttendanceInterval,
    CycleCalculationResult,
    CycleCalculator,
    CycleWindow,
    EmployeeRateProfile,
    round_money,
)
from paycycle.config import Settings, get_settings
from paycycle.database import unit_of_work
from paycycle.errors import ConflictError, ValidationError
from paycycle.events import EventMetadata, PayrollCycleCalculated, PayrollDetailCreated
from paycycle.models import Employee, PayrollCycle, PayrollDetail, TimeEntry
from paycycle.services.cycle_service import CycleService
from paycycle.services.state_machine import CycleEvent, PayrollCycleStateMachine

if TYPE_CHECKING:
    from paycycle.events import AsyncEventEmitter, PayrollEvent

logger = logging.getLogger(__name__)


@dataclass
class CalculationSummary:
    """What a calculation produced, for the caller."""

    payroll_cycle_id: UUID
    start_date: date
    end_date: date
    total_employees: int
    total_base_pay: Decimal
    employees: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "payroll_cycle_id": self.payroll_cycle_id,
            "period": {"start_date": self.start_date, "end_date": self.end_date},
            "total_employees": self.total_employees,
            "total_base_pay": self.total_base_pay,
            "employees": self.employees,
        }


class CalculationService:
    """Populates pay details for an active cycle, exactly once.

    Calculation is refused while the cycle already has details; an operator
    must reset the cycle to calculate again.
    """

    def __init__(
        self,
        session: AsyncSession,
        emitter: AsyncEventEmitter | None = None,
        settings: Settings | None = None,
    ):
        self.session = session
        self.emitter = emitter
        self.settings = settings or get_settings()
        self.cycles = CycleService(session, settings=self.settings)
        self.calculator = CycleCalculator(self.settings.daily_rate_threshold_hours)

    async def load_eligible_profiles(self) -> list[EmployeeRateProfile]:
        """Active employees with role 'employee' and at least one rate."""
        result = await self.session.execute(
            select(Employee)
            .where(
                Employee.role == "employee",
                Employee.is_active.is_(True),
                or_(Employee.hourly_rate.is_not(None), Employee.daily_rate.is_not(None)),
            )
            .order_by(Employee.full_name, Employee.employee_id)
        )
        profiles = [employee.to_rate_profile() for employee in result.scalars().all()]
        return [profile for profile in profiles if profile.is_eligible]

    async def load_intervals(
        self,
        employee_ids: list[UUID],
        window: CycleWindow,
    ) -> list[AttendanceInterval]:
        """Completed attendance intervals checked in within the window.

        The date filter is coarse (one day of slack at each end so time zone
        offsets never drop a row); the aggregator applies the exact window.
        """
        if not employee_ids:
            return []
        result = await self.session.execute(
            select(TimeEntry)
            .where(
                TimeEntry.employee_id.in_(employee_ids),
                TimeEntry.check_out_time.is_not(None),
                TimeEntry.check_in_time >= _day_start(window.start_date, -1),
                TimeEntry.check_in_time < _day_start(window.end_date, 2),
            )
            .order_by(TimeEntry.check_in_time)
        )
        return [entry.to_interval() for entry in result.scalars().all()]

    async def calculate_cycle(
        self,
        cycle_id: UUID,
        actor_user_id: UUID | None = None,
    ) -> CalculationSummary:
        """Calculate base pay for every eligible employee in a cycle.

        Raises:
            NotFoundError: Unknown cycle
            StateError: Cycle is completed
            ConflictError: Cycle already has pay details
            ValidationError: No eligible employees
            DependencyError: Storage failure (nothing is written)
        """
        async with unit_of_work(self.session, "calculate_cycle"):
            cycle = await self.cycles.get_cycle(cycle_id, for_update=True)
            PayrollCycleStateMachine.apply(cycle, CycleEvent.CALCULATE)

            existing = await self.cycles.count_details(cycle_id)
            if existing:
                logger.info("Refused calculation of %s: %d detail(s) exist", cycle_id, existing)
                raise ConflictError(
                    f"Payroll cycle '{cycle.name}' has already been calculated",
                    conflicting={
                        "payroll_cycle_id": str(cycle_id),
                        "name": cycle.name,
                        "details_count": existing,
                    },
                )

            profiles = await self.load_eligible_profiles()
            if not profiles:
                raise ValidationError(
                    "No eligible employees: active employees need an hourly or daily rate",
                    details={"payroll_cycle_id": str(cycle_id)},
                )

            window = CycleWindow(cycle.start_date, cycle.end_date)
            intervals = await self.load_intervals([p.employee_id for p in profiles], window)
            result = self.calculator.calculate_cycle(window, profiles, intervals)

            details = self._build_details(cycle, result)
            self.session.add_all(details)
            try:
                await self.session.flush()
            except IntegrityError as exc:
                # A concurrent calculation inserted rows for this cycle first
                raise ConflictError(
                    f"Payroll cycle '{cycle.name}' has already been calculated",
                    conflicting={"payroll_cycle_id": str(cycle_id), "name": cycle.name},
                ) from exc

        summary = self._summarize(cycle, result)
        logger.info(
            "Calculated payroll cycle %s: %d employee(s), base pay %s",
            cycle_id,
            summary.total_employees,
            summary.total_base_pay,
        )
        await self._publish(self._events(cycle, details, summary, actor_user_id))
        return summary

    def _build_details(
        self,
        cycle: PayrollCycle,
        result: CycleCalculationResult,
    ) -> list[PayrollDetail]:
        return [
            PayrollDetail(
                payroll_cycle_id=cycle.payroll_cycle_id,
                employee_id=employee.employee_id,
                base_pay=employee.base_pay,
                bonus=Decimal("0"),
                deduction=Decimal("0"),
                net_pay=employee.net_pay,
                calculation_method=employee.calculation_method.value,
                total_hours=employee.total_hours,
                days_worked=employee.days_worked,
                daily_breakdown=[day.to_dict() for day in employee.daily_breakdown],
            )
            for employee in result.employees
        ]

    def _summarize(self, cycle: PayrollCycle, result: CycleCalculationResult) -> CalculationSummary:
        return CalculationSummary(
            payroll_cycle_id=cycle.payroll_cycle_id,
            start_date=cycle.start_date,
            end_date=cycle.end_date,
            total_employees=result.total_employees,
            total_base_pay=round_money(result.total_base_pay),
            employees=[
                {
                    "employee_id": e.employee_id,
                    "full_name": e.full_name,
                    "total_hours": e.total_hours,
                    "days_worked": e.days_worked,
                    "base_pay": e.base_pay,
                    "calculation_method": e.calculation_method.value,
                }
                for e in result.employees
            ],
        )

    def _events(
        self,
        cycle: PayrollCycle,
        details: list[PayrollDetail],
        summary: CalculationSummary,
        actor_user_id: UUID | None,
    ) -> list[PayrollEvent]:
        metadata = EventMetadata.create(actor_user_id)
        events: list[PayrollEvent] = [
            PayrollCycleCalculated(
                metadata=metadata,
                entity_id=cycle.payroll_cycle_id,
                new_values={
                    "total_employees": summary.total_employees,
                    "total_base_pay": summary.total_base_pay,
                    "engine_version": self.settings.engine_version,
                },
                description=f"Calculated payroll cycle '{cycle.name}'",
            )
        ]
        for detail in details:
            events.append(
                PayrollDetailCreated(
                    metadata=EventMetadata.create(actor_user_id, metadata.correlation_id),
                    entity_id=detail.payroll_detail_id,
                    new_values={
                        "payroll_cycle_id": detail.payroll_cycle_id,
                        "employee_id": detail.employee_id,
                        "base_pay": detail.base_pay,
                        "net_pay": detail.net_pay,
                        "calculation_method": detail.calculation_method,
                    },
                    description="Created pay detail from calculation",
                )
            )
        return events

    async def _publish(self, events: list[PayrollEvent]) -> None:
        if self.emitter is not None:
            await self.emitter.publish(events)


def _day_start(day: date, offset_days: int) -> datetime:
    return datetime.combine(day + timedelta(days=offset_days), time.min, tzinfo=timezone.utc)
