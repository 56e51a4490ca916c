"""Cycle service - creation, lookup and reset of payroll cycles."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paycycle.config import Settings, get_settings
from paycycle.database import storage_errors, unit_of_work
from paycycle.errors import ConflictError, NotFoundError, ValidationError
from paycycle.events import EventMetadata, PayrollCycleCreated, PayrollCycleReset
from paycycle.models import PayrollCycle, PayrollDetail
from paycycle.services.state_machine import CycleEvent, CycleStatus, PayrollCycleStateMachine

if TYPE_CHECKING:
    from paycycle.events import AsyncEventEmitter

logger = logging.getLogger(__name__)


def generate_cycle_name(start_date: date, end_date: date) -> str:
    """Default display name for a cycle, derived from its full date range.

    Examples: "Payroll 1-15 Jan 2025", "Payroll 16 Jan - 3 Feb 2025",
    "Payroll 16 Dec 2024 - 15 Jan 2025". Cycles cannot overlap, so two
    cycles never share a generated name.
    """
    if (start_date.year, start_date.month) == (end_date.year, end_date.month):
        return f"Payroll {start_date.day}-{end_date.day} {end_date:%b %Y}"
    if start_date.year == end_date.year:
        return f"Payroll {start_date.day} {start_date:%b} - {end_date.day} {end_date:%b %Y}"
    return f"Payroll {start_date.day} {start_date:%b %Y} - {end_date.day} {end_date:%b %Y}"


def _add_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return day.replace(year=day.year + years, day=28)


class CycleService:
    """Service for the payroll cycle lifecycle outside calculation.

    Operations:
    - create_cycle: Validate dates, overlap and name, then open a cycle
    - get_cycle / list_cycles: Lookup
    - reset_cycle: Discard calculated details of an active cycle
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

    async def get_cycle(self, cycle_id: UUID, for_update: bool = False) -> PayrollCycle:
        """Load a cycle or raise NotFoundError.

        With ``for_update`` the row is locked until the transaction ends so
        that operations on the same cycle are serialized.
        """
        stmt = select(PayrollCycle).where(PayrollCycle.payroll_cycle_id == cycle_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        async with storage_errors("get_cycle"):
            result = await self.session.execute(stmt)
        cycle = result.scalar_one_or_none()
        if cycle is None:
            raise NotFoundError("payroll_cycle", cycle_id)
        return cycle

    async def list_cycles(self, status: str | None = None) -> list[PayrollCycle]:
        """List cycles newest first, optionally filtered by status."""
        stmt = select(PayrollCycle).order_by(
            PayrollCycle.start_date.desc(), PayrollCycle.created_at.desc()
        )
        if status is not None:
            try:
                status = CycleStatus(status).value
            except ValueError as exc:
                raise ValidationError(f"Unknown cycle status '{status}'", field="status") from exc
            stmt = stmt.where(PayrollCycle.status == status)
        async with storage_errors("list_cycles"):
            result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_details(self, cycle_id: UUID) -> int:
        """Number of pay detail rows in a cycle."""
        result = await self.session.execute(
            select(func.count())
            .select_from(PayrollDetail)
            .where(PayrollDetail.payroll_cycle_id == cycle_id)
        )
        return result.scalar_one()

    def validate_date_range(
        self,
        start_date: date | None,
        end_date: date | None,
        today: date | None = None,
    ) -> None:
        """Check presence, order, span and horizon of a cycle's dates."""
        if start_date is None:
            raise ValidationError("start_date is required", field="start_date")
        if end_date is None:
            raise ValidationError("end_date is required", field="end_date")
        if end_date <= start_date:
            raise ValidationError(
                "end_date must be after start_date",
                field="end_date",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )

        span_days = (end_date - start_date).days
        if span_days > self.settings.max_cycle_days:
            raise ValidationError(
                f"A cycle may span at most {self.settings.max_cycle_days} days",
                field="end_date",
                details={"span_days": span_days},
            )

        today = today or date.today()
        horizon = _add_years(today, self.settings.max_future_years)
        if end_date > horizon:
            raise ValidationError(
                f"end_date may be at most {self.settings.max_future_years} years ahead",
                field="end_date",
                details={"latest_allowed": horizon.isoformat()},
            )

    async def find_overlapping(self, start_date: date, end_date: date) -> list[PayrollCycle]:
        """Cycles whose range intersects [start_date, end_date], boundaries included."""
        result = await self.session.execute(
            select(PayrollCycle)
            .where(
                PayrollCycle.start_date <= end_date,
                PayrollCycle.end_date >= start_date,
            )
            .order_by(PayrollCycle.start_date)
        )
        return list(result.scalars().all())

    async def name_exists(self, name: str) -> bool:
        result = await self.session.execute(
            select(PayrollCycle.payroll_cycle_id).where(PayrollCycle.name == name).limit(1)
        )
        return result.first() is not None

    async def create_cycle(
        self,
        start_date: date | None,
        end_date: date | None,
        name: str | None = None,
        pay_date: date | None = None,
        actor_user_id: UUID | None = None,
    ) -> PayrollCycle:
        """Open a new active cycle.

        Checks run in a fixed order and the first failure wins:
        1. Dates present, ordered and within span/horizon limits
        2. No existing cycle overlaps the range (touching counts)
        3. Name unused

        Raises:
            ValidationError: Bad or missing dates
            ConflictError: Overlapping range or duplicate name
        """
        self.validate_date_range(start_date, end_date)
        name = (name or "").strip() or generate_cycle_name(start_date, end_date)

        async with unit_of_work(self.session, "create_cycle"):
            overlapping = await self.find_overlapping(start_date, end_date)
            if overlapping:
                conflicting = [
                    {
                        "payroll_cycle_id": str(c.payroll_cycle_id),
                        "name": c.name,
                        "start_date": c.start_date.isoformat(),
                        "end_date": c.end_date.isoformat(),
                        "status": c.status,
                    }
                    for c in overlapping
                ]
                logger.info("Refused cycle %s..%s: overlaps %s", start_date, end_date, conflicting)
                raise ConflictError(
                    "Date range overlaps an existing payroll cycle",
                    conflicting=conflicting,
                )

            if await self.name_exists(name):
                logger.info("Refused cycle %s: name already used", name)
                raise ConflictError(
                    f"A payroll cycle named '{name}' already exists",
                    conflicting={"name": name},
                )

            cycle = PayrollCycle(
                name=name,
                start_date=start_date,
                end_date=end_date,
                pay_date=pay_date or end_date,
                status=CycleStatus.ACTIVE.value,
                created_by_user_id=actor_user_id,
            )
            self.session.add(cycle)
            try:
                await self.session.flush()
            except IntegrityError as exc:
                # Lost a race against a concurrent create with the same name
                raise ConflictError(
                    f"A payroll cycle named '{name}' already exists",
                    conflicting={"name": name},
                ) from exc

        logger.info("Created payroll cycle %s (%s..%s)", cycle.payroll_cycle_id, start_date, end_date)
        await self._publish(
            [
                PayrollCycleCreated(
                    metadata=EventMetadata.create(actor_user_id),
                    entity_id=cycle.payroll_cycle_id,
                    new_values={
                        "name": cycle.name,
                        "start_date": cycle.start_date,
                        "end_date": cycle.end_date,
                        "pay_date": cycle.pay_date,
                        "status": cycle.status,
                    },
                    description=f"Created payroll cycle '{cycle.name}'",
                )
            ]
        )
        return cycle

    async def reset_cycle(self, cycle_id: UUID, actor_user_id: UUID | None = None) -> int:
        """Delete all pay details of an active cycle so it can be recalculated.

        Returns the number of deleted detail rows.

        Raises:
            NotFoundError: Unknown cycle
            StateError: Cycle is completed
        """
        async with unit_of_work(self.session, "reset_cycle"):
            cycle = await self.get_cycle(cycle_id, for_update=True)
            PayrollCycleStateMachine.apply(cycle, CycleEvent.RESET)

            result = await self.session.execute(
                delete(PayrollDetail).where(PayrollDetail.payroll_cycle_id == cycle_id)
            )
            deleted = result.rowcount or 0

        logger.info("Reset payroll cycle %s, removed %d detail(s)", cycle_id, deleted)
        await self._publish(
            [
                PayrollCycleReset(
                    metadata=EventMetadata.create(actor_user_id),
                    entity_id=cycle_id,
                    old_values={"details_count": deleted},
                    new_values={"details_count": 0},
                    description=f"Reset payroll cycle '{cycle.name}'",
                )
            ]
        )
        return deleted

    async def _publish(self, events: list) -> None:
        if self.emitter is not None:
            await self.emitter.publish(events)
