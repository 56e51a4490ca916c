"""Adjustment service - bonus and deduction changes on pay details."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from paycycle.database import unit_of_work
from paycycle.errors import IntegrityViolation, NotFoundError, ValidationError
from paycycle.events import BonusChanged, DeductionChanged, EventMetadata
from paycycle.models import PayrollDetail
from paycycle.services.cycle_service import CycleService
from paycycle.services.state_machine import CycleEvent, PayrollCycleStateMachine

if TYPE_CHECKING:
    from paycycle.events import AsyncEventEmitter

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class AdjustmentKind(str, Enum):
    """Which adjustment of a pay detail is being changed."""

    BONUS = "bonus"
    DEDUCTION = "deduction"


def normalize_adjustment(
    kind: AdjustmentKind,
    amount: Decimal | int | str | None,
    reason: str | None,
) -> tuple[Decimal, str | None]:
    """Validate an amount/reason pair and return it in stored form.

    - amount must be a non-negative number with at most two decimals
    - a positive amount requires a non-empty reason
    - a zero amount requires no reason (this is how an adjustment is cleared)
    """
    field = kind.value
    if amount is None:
        raise ValidationError(f"{field} amount is required", field=field)
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValidationError(f"{field} amount is not a number", field=field) from exc
    if not value.is_finite():
        raise ValidationError(f"{field} amount is not a number", field=field)
    if value < ZERO:
        raise ValidationError(
            f"{field} amount cannot be negative",
            field=field,
            details={"amount": str(value)},
        )
    if value != value.quantize(Decimal("0.01")):
        raise ValidationError(
            f"{field} amount may have at most two decimal places",
            field=field,
            details={"amount": str(value)},
        )

    if reason is not None:
        reason = reason.strip() or None

    reason_field = f"{field}_reason"
    if value > ZERO and reason is None:
        raise ValidationError(
            f"A reason is required for a non-zero {field}",
            field=reason_field,
        )
    if value == ZERO and reason is not None:
        raise ValidationError(
            f"A zero {field} must not carry a reason",
            field=reason_field,
        )
    return value.quantize(Decimal("0.01")), reason


class AdjustmentService:
    """Set or clear the bonus and deduction of a pay detail.

    Every change re-reads the detail under a row lock, checks the owning
    cycle is active and refuses any change that would make net pay
    negative. Nothing is written when a check fails.
    """

    def __init__(self, session: AsyncSession, emitter: AsyncEventEmitter | None = None):
        self.session = session
        self.emitter = emitter

    async def get_detail(self, detail_id: UUID, for_update: bool = False) -> PayrollDetail:
        """Load a pay detail with its employee, or raise NotFoundError."""
        stmt = (
            select(PayrollDetail)
            .where(PayrollDetail.payroll_detail_id == detail_id)
            .options(selectinload(PayrollDetail.employee))
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        detail = result.scalar_one_or_none()
        if detail is None:
            raise NotFoundError("payroll_detail", detail_id)
        return detail

    async def set_bonus(
        self,
        detail_id: UUID,
        amount: Decimal | int | str,
        reason: str | None,
        actor_user_id: UUID | None = None,
    ) -> PayrollDetail:
        """Set a detail's bonus. A zero amount with no reason clears it."""
        return await self._adjust(AdjustmentKind.BONUS, detail_id, amount, reason, actor_user_id)

    async def clear_bonus(
        self,
        detail_id: UUID,
        actor_user_id: UUID | None = None,
    ) -> PayrollDetail:
        return await self._adjust(AdjustmentKind.BONUS, detail_id, ZERO, None, actor_user_id)

    async def set_deduction(
        self,
        detail_id: UUID,
        amount: Decimal | int | str,
        reason: str | None,
        actor_user_id: UUID | None = None,
    ) -> PayrollDetail:
        """Set a detail's deduction. A zero amount with no reason clears it."""
        return await self._adjust(
            AdjustmentKind.DEDUCTION, detail_id, amount, reason, actor_user_id
        )

    async def clear_deduction(
        self,
        detail_id: UUID,
        actor_user_id: UUID | None = None,
    ) -> PayrollDetail:
        return await self._adjust(AdjustmentKind.DEDUCTION, detail_id, ZERO, None, actor_user_id)

    async def _adjust(
        self,
        kind: AdjustmentKind,
        detail_id: UUID,
        amount: Decimal | int | str,
        reason: str | None,
        actor_user_id: UUID | None,
    ) -> PayrollDetail:
        value, reason = normalize_adjustment(kind, amount, reason)

        async with unit_of_work(self.session, f"update_{kind.value}"):
            # Cycle row first, then the detail, same order as calculate/finalize
            detail = await self.get_detail(detail_id)
            cycle = await CycleService(self.session).get_cycle(
                detail.payroll_cycle_id, for_update=True
            )
            PayrollCycleStateMachine.apply(cycle, CycleEvent.ADJUST)
            detail = await self.get_detail(detail_id, for_update=True)

            before = self._snapshot(kind, detail)
            if kind is AdjustmentKind.BONUS:
                new_net = detail.compute_net_pay(bonus=value)
            else:
                new_net = detail.compute_net_pay(deduction=value)

            if new_net < ZERO:
                offending = {
                    "payroll_detail_id": str(detail.payroll_detail_id),
                    "employee_id": str(detail.employee_id),
                    "full_name": detail.employee.full_name if detail.employee else None,
                    "net_pay": str(new_net),
                }
                logger.info("Refused %s change on %s: net pay %s", kind.value, detail_id, new_net)
                raise IntegrityViolation(
                    f"Net pay would become negative ({new_net})",
                    employees=[offending],
                    details={"field": kind.value, "computed_net_pay": str(new_net)},
                )

            if kind is AdjustmentKind.BONUS:
                detail.bonus = value
                detail.bonus_reason = reason
            else:
                detail.deduction = value
                detail.deduction_reason = reason
            detail.net_pay = new_net
            after = self._snapshot(kind, detail)
            await self.session.flush()

        logger.info(
            "Updated %s on detail %s: %s -> %s",
            kind.value,
            detail_id,
            before[kind.value],
            after[kind.value],
        )
        event_type = BonusChanged if kind is AdjustmentKind.BONUS else DeductionChanged
        if self.emitter is not None:
            await self.emitter.publish(
                [
                    event_type(
                        metadata=EventMetadata.create(actor_user_id),
                        entity_id=detail.payroll_detail_id,
                        old_values=before,
                        new_values=after,
                        description=(
                            f"{'Cleared' if value == ZERO else 'Set'} {kind.value} "
                            f"for employee {detail.employee_id}"
                        ),
                    )
                ]
            )
        return detail

    @staticmethod
    def _snapshot(kind: AdjustmentKind, detail: PayrollDetail) -> dict[str, Any]:
        if kind is AdjustmentKind.BONUS:
            return {
                "bonus": detail.bonus,
                "bonus_reason": detail.bonus_reason,
                "net_pay": detail.net_pay,
            }
        return {
            "deduction": detail.deduction,
            "deduction_reason": detail.deduction_reason,
            "net_pay": detail.net_pay,
        }
