"""Summary service - export payload and dashboard statistics."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from paycycle.calculators import round_money
from paycycle.database import storage_errors
from paycycle.models import Employee, PayrollCycle, PayrollDetail
from paycycle.services.cycle_service import CycleService
from paycycle.services.finalization_service import FinalizationService, validate_for_finalization
from paycycle.services.state_machine import CycleStatus


@dataclass
class PayrollStats:
    """Dashboard counters."""

    active_cycles: int
    active_employees: int
    completed_net_pay_this_month: Decimal
    pending_finalization: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "active_cycles": self.active_cycles,
            "active_employees": self.active_employees,
            "completed_net_pay_this_month": self.completed_net_pay_this_month,
            "pending_finalization": self.pending_finalization,
        }


def _month_start(today: date) -> datetime:
    return datetime(today.year, today.month, 1, tzinfo=timezone.utc)


def _next_month_start(today: date) -> datetime:
    if today.month == 12:
        return datetime(today.year + 1, 1, 1, tzinfo=timezone.utc)
    return datetime(today.year, today.month + 1, 1, tzinfo=timezone.utc)


class SummaryService:
    """Read-only views over cycles and their pay details."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def build_cycle_summary(self, cycle_id: UUID) -> dict[str, Any]:
        """Cycle info, totals, validation state and per-employee details.

        This is the structure export formatters consume.
        """
        cycle = await CycleService(self.session).get_cycle(cycle_id)
        details = await FinalizationService(self.session).load_details(cycle_id)
        details.sort(key=lambda d: (d.employee.full_name if d.employee else "", str(d.employee_id)))
        report = validate_for_finalization(details)

        zero = Decimal("0")
        totals = {
            "total_employees": len(details),
            "total_base_pay": round_money(sum((d.base_pay or zero for d in details), zero)),
            "total_bonuses": round_money(sum((d.bonus for d in details), zero)),
            "total_deductions": round_money(sum((d.deduction for d in details), zero)),
            "total_net_pay": report.total_net_pay,
        }

        return {
            "cycle_info": {
                "id": cycle.payroll_cycle_id,
                "name": cycle.name,
                "start_date": cycle.start_date,
                "end_date": cycle.end_date,
                "pay_date": cycle.pay_date,
                "status": cycle.status,
                "finalized_at": cycle.finalized_at,
                "finalized_by": cycle.finalized_by_user_id,
            },
            "totals": totals,
            "validation": {
                "can_finalize": report.can_finalize,
                "employees_with_negative_net_pay": [
                    issue.to_dict() for issue in report.employees_with_negative_net_pay
                ],
                "validation_issues": [issue.to_dict() for issue in report.issues],
            },
            "employee_details": [
                {
                    "payroll_detail_id": d.payroll_detail_id,
                    "employee_id": d.employee_id,
                    "full_name": d.employee.full_name if d.employee else None,
                    "base_pay": d.base_pay,
                    "bonus": d.bonus,
                    "bonus_reason": d.bonus_reason,
                    "deduction": d.deduction,
                    "deduction_reason": d.deduction_reason,
                    "net_pay": d.net_pay,
                    "calculation_method": d.calculation_method,
                    "total_hours": d.total_hours,
                    "days_worked": d.days_worked,
                    "daily_breakdown": d.daily_breakdown,
                }
                for d in details
            ],
        }

    async def get_payroll_stats(self, today: date | None = None) -> PayrollStats:
        """Counters for the payroll dashboard."""
        today = today or datetime.now(timezone.utc).date()

        async with storage_errors("get_payroll_stats"):
            active_cycles = await self.session.scalar(
                select(func.count())
                .select_from(PayrollCycle)
                .where(PayrollCycle.status == CycleStatus.ACTIVE.value)
            )
            active_employees = await self.session.scalar(
                select(func.count())
                .select_from(Employee)
                .where(Employee.role == "employee", Employee.is_active.is_(True))
            )
            completed_net = await self.session.scalar(
                select(func.coalesce(func.sum(PayrollCycle.total_amount), 0)).where(
                    PayrollCycle.status == CycleStatus.COMPLETED.value,
                    PayrollCycle.finalized_at >= _month_start(today),
                    PayrollCycle.finalized_at < _next_month_start(today),
                )
            )
            pending = await self.session.scalar(
                select(func.count())
                .select_from(PayrollCycle)
                .where(
                    PayrollCycle.status == CycleStatus.ACTIVE.value,
                    exists().where(PayrollDetail.payroll_cycle_id == PayrollCycle.payroll_cycle_id),
                )
            )

        return PayrollStats(
            active_cycles=active_cycles or 0,
            active_employees=active_employees or 0,
            completed_net_pay_this_month=round_money(Decimal(str(completed_net or 0))),
            pending_finalization=pending or 0,
        )
