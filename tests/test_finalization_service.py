"""Tests for the finalization gate and cycle closure."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import select, update

from paycycle.errors import IntegrityViolation, StateError, ValidationError
from paycycle.events import PayrollCycleFinalized
from paycycle.models import PayrollCycle, PayrollDetail
from paycycle.services import (
    AdjustmentService,
    CalculationService,
    FinalizationService,
    IssueType,
    validate_for_finalization,
)

from .conftest import ADMIN_ID, at


def detail(name: str | None, net_pay: str | None, base_pay: str | None = "100") -> SimpleNamespace:
    return SimpleNamespace(
        employee_id=uuid4(),
        employee=SimpleNamespace(full_name=name) if name is not None else None,
        base_pay=Decimal(base_pay) if base_pay is not None else None,
        net_pay=Decimal(net_pay) if net_pay is not None else None,
    )


class TestValidateForFinalization:
    """Test the pure validator."""

    def test_clean_cycle(self):
        report = validate_for_finalization([detail("A", "100.50"), detail("B", "0")])

        assert report.can_finalize is True
        assert report.total_employees == 2
        assert report.total_net_pay == Decimal("100.50")
        assert report.issues == []

    def test_empty_cycle_can_finalize(self):
        report = validate_for_finalization([])
        assert report.can_finalize is True
        assert report.total_net_pay == Decimal("0")

    def test_negative_net_pay_listed_per_employee(self):
        report = validate_for_finalization(
            [detail("A", "100"), detail("B", "-20"), detail("C", "-0.01")]
        )

        assert report.can_finalize is False
        assert [i.full_name for i in report.employees_with_negative_net_pay] == ["B", "C"]
        assert report.issues[0].to_dict()["net_pay"] == "-20"

    def test_missing_data(self):
        report = validate_for_finalization([detail(None, "100"), detail("B", None)])

        assert report.can_finalize is False
        assert {i.type for i in report.issues} == {IssueType.MISSING_DATA}
        assert report.total_net_pay == Decimal("100.00")


@pytest_asyncio.fixture
async def calculated(session, settings, make_cycle, make_employee, make_time_entry):
    cycle = await make_cycle()
    alice = await make_employee("Alice", hourly_rate="50")
    bob = await make_employee("Bob", daily_rate="500")
    await make_time_entry(alice, at(date(2025, 1, 2), 8), hours=8)
    await make_time_entry(bob, at(date(2025, 1, 2), 8), hours=4)
    await CalculationService(session, settings=settings).calculate_cycle(cycle.payroll_cycle_id)
    return cycle.payroll_cycle_id


class TestFinalizationService:
    """Test closure against stored details."""

    async def test_finalize_stamps_cycle(self, session, emitter, recorder, calculated):
        result = await FinalizationService(session, emitter).finalize_cycle(calculated, ADMIN_ID)

        cycle = result.cycle
        assert cycle.status == "completed"
        assert cycle.finalized_at is not None
        assert cycle.finalized_by_user_id == ADMIN_ID
        assert cycle.total_employees == 2
        assert cycle.total_amount == Decimal("900.00")

        payload = result.to_dict()
        assert payload["totals"] == {"total_employees": 2, "total_net_pay": Decimal("900.00")}
        assert payload["finalized_by"] == ADMIN_ID
        assert len(recorder.of_type(PayrollCycleFinalized)) == 1

    async def test_finalize_twice_is_state_error(self, session, calculated):
        service = FinalizationService(session)
        await service.finalize_cycle(calculated, ADMIN_ID)

        with pytest.raises(StateError):
            await service.finalize_cycle(calculated, ADMIN_ID)

    async def test_actor_required(self, session, calculated):
        with pytest.raises(ValidationError):
            await FinalizationService(session).finalize_cycle(calculated, None)

    async def test_out_of_band_negative_net_pay_blocks(self, session, calculated):
        await session.execute(
            update(PayrollDetail)
            .where(PayrollDetail.payroll_cycle_id == calculated)
            .where(PayrollDetail.base_pay == Decimal("500.00"))
            .values(net_pay=Decimal("-150.00"))
        )
        await session.commit()

        with pytest.raises(IntegrityViolation) as exc_info:
            await FinalizationService(session).finalize_cycle(calculated, ADMIN_ID)

        employees = exc_info.value.details["employees"]
        assert [(e["full_name"], e["net_pay"]) for e in employees] == [("Bob", "-150.00")]

        cycle = (
            await session.execute(
                select(PayrollCycle)
                .where(PayrollCycle.payroll_cycle_id == calculated)
                .execution_options(populate_existing=True)
            )
        ).scalar_one()
        assert cycle.status == "active"
        assert cycle.finalized_at is None

    async def test_validate_cycle_reports_without_changes(self, session, calculated):
        report = await FinalizationService(session).validate_cycle(calculated)

        assert report.can_finalize is True
        assert report.total_net_pay == Decimal("900.00")

    async def test_adjustments_included_in_total(self, session, calculated):
        details = (await session.execute(select(PayrollDetail))).scalars().all()
        alice = next(d for d in details if d.base_pay == Decimal("400.00"))
        await AdjustmentService(session).set_bonus(alice.payroll_detail_id, "100", "Weekend cover")

        result = await FinalizationService(session).finalize_cycle(calculated, ADMIN_ID)

        assert result.report.total_net_pay == Decimal("1000.00")
