"""Finalization service - validation gate and irreversible cycle closure."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from paycycle.calculators import round_money
from paycycle.database import storage_errors, unit_of_work
from paycycle.errors import IntegrityViolation, ValidationError
from paycycle.events import EventMetadata, PayrollCycleFinalized
from paycycle.models import PayrollCycle, PayrollDetail
from paycycle.services.cycle_service import CycleService
from paycycle.services.state_machine import CycleEvent, PayrollCycleStateMachine

if TYPE_CHECKING:
    from paycycle.events import AsyncEventEmitter

logger = logging.getLogger(__name__)


class IssueType(str, Enum):
    """Conditions that block finalization."""

    NEGATIVE_NET_PAY = "negative_net_pay"
    MISSING_DATA = "missing_data"


@dataclass(frozen=True)
class ValidationIssue:
    """One blocking condition on one pay detail."""

    type: IssueType
    employee_id: UUID | None
    full_name: str | None
    message: str
    net_pay: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "employee_id": str(self.employee_id) if self.employee_id else None,
            "full_name": self.full_name,
            "net_pay": str(self.net_pay) if self.net_pay is not None else None,
            "message": self.message,
        }


@dataclass
class FinalizationReport:
    """Result of checking a cycle's details before finalization."""

    total_employees: int
    total_net_pay: Decimal
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def can_finalize(self) -> bool:
        return not self.issues

    @property
    def employees_with_negative_net_pay(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.type == IssueType.NEGATIVE_NET_PAY]


def validate_for_finalization(details: Iterable[PayrollDetail]) -> FinalizationReport:
    """Scan pay details for conditions that block finalization.

    Net pay is re-checked even though adjustments already guard it, so an
    out-of-band change to a stored row still blocks closure.
    """
    details = list(details)
    issues: list[ValidationIssue] = []
    total_net = Decimal("0")

    for detail in details:
        employee = detail.employee
        full_name = employee.full_name if employee is not None else None

        if not full_name or detail.base_pay is None or detail.net_pay is None:
            issues.append(
                ValidationIssue(
                    type=IssueType.MISSING_DATA,
                    employee_id=detail.employee_id,
                    full_name=full_name,
                    net_pay=detail.net_pay,
                    message="Pay detail is missing employee name, base pay or net pay",
                )
            )
            if detail.net_pay is None:
                continue

        total_net += detail.net_pay
        if detail.net_pay < 0:
            issues.append(
                ValidationIssue(
                    type=IssueType.NEGATIVE_NET_PAY,
                    employee_id=detail.employee_id,
                    full_name=full_name,
                    net_pay=detail.net_pay,
                    message=f"Net pay is negative ({detail.net_pay})",
                )
            )

    return FinalizationReport(
        total_employees=len(details),
        total_net_pay=round_money(total_net),
        issues=issues,
    )


@dataclass
class FinalizationResult:
    """Summary returned after a cycle is closed."""

    cycle: PayrollCycle
    report: FinalizationReport

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycle_info": {
                "id": self.cycle.payroll_cycle_id,
                "name": self.cycle.name,
                "start_date": self.cycle.start_date,
                "end_date": self.cycle.end_date,
                "status": self.cycle.status,
            },
            "totals": {
                "total_employees": self.report.total_employees,
                "total_net_pay": self.report.total_net_pay,
            },
            "finalized_at": self.cycle.finalized_at,
            "finalized_by": self.cycle.finalized_by_user_id,
        }


class FinalizationService:
    """Closes a cycle once all of its pay details pass validation.

    Finalization is all-or-nothing: either every detail is frozen with the
    cycle marked completed and stamped, or nothing changes.
    """

    def __init__(self, session: AsyncSession, emitter: AsyncEventEmitter | None = None):
        self.session = session
        self.emitter = emitter

    async def load_details(self, cycle_id: UUID) -> list[PayrollDetail]:
        async with storage_errors("load_details"):
            result = await self.session.execute(
                select(PayrollDetail)
                .where(PayrollDetail.payroll_cycle_id == cycle_id)
                .options(selectinload(PayrollDetail.employee))
                .execution_options(populate_existing=True)
            )
        return list(result.scalars().all())

    async def validate_cycle(self, cycle_id: UUID) -> FinalizationReport:
        """Run the finalization checks without changing anything."""
        await CycleService(self.session).get_cycle(cycle_id)
        return validate_for_finalization(await self.load_details(cycle_id))

    async def finalize_cycle(
        self,
        cycle_id: UUID,
        actor_user_id: UUID | None,
    ) -> FinalizationResult:
        """Mark a cycle completed and stamp who closed it and when.

        Raises:
            NotFoundError: Unknown cycle
            ValidationError: No actor given
            StateError: Cycle already completed
            IntegrityViolation: Some detail blocks finalization
        """
        if actor_user_id is None:
            raise ValidationError("Finalization requires the acting user", field="actor_user_id")

        async with unit_of_work(self.session, "finalize_cycle"):
            cycle = await CycleService(self.session).get_cycle(cycle_id, for_update=True)
            next_status = PayrollCycleStateMachine.apply(cycle, CycleEvent.FINALIZE)

            report = validate_for_finalization(await self.load_details(cycle_id))
            if not report.can_finalize:
                offending = [issue.to_dict() for issue in report.issues]
                logger.info("Refused finalization of %s: %s", cycle_id, offending)
                raise IntegrityViolation(
                    f"Payroll cycle '{cycle.name}' has {len(offending)} blocking issue(s)",
                    employees=offending,
                )

            cycle.status = next_status.value
            cycle.finalized_at = datetime.now(timezone.utc)
            cycle.finalized_by_user_id = actor_user_id
            cycle.total_employees = report.total_employees
            cycle.total_amount = report.total_net_pay
            await self.session.flush()

        logger.info(
            "Finalized payroll cycle %s: %d employee(s), net pay %s",
            cycle_id,
            report.total_employees,
            report.total_net_pay,
        )
        if self.emitter is not None:
            await self.emitter.publish(
                [
                    PayrollCycleFinalized(
                        metadata=EventMetadata.create(actor_user_id),
                        entity_id=cycle.payroll_cycle_id,
                        old_values={"status": "active"},
                        new_values={
                            "status": cycle.status,
                            "finalized_at": cycle.finalized_at,
                            "total_employees": report.total_employees,
                            "total_net_pay": report.total_net_pay,
                        },
                        description=f"Finalized payroll cycle '{cycle.name}'",
                    )
                ]
            )
        return FinalizationResult(cycle=cycle, report=report)
