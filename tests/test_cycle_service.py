"""Tests for cycle creation, lookup and reset."""

from datetime import date, timedelta
from uuid import uuid4

import pytest

from paycycle.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    StateError,
    ValidationError,
)
from paycycle.events import PayrollCycleCreated, PayrollCycleReset
from paycycle.services import CalculationService, CycleService, FinalizationService, generate_cycle_name

from .conftest import ADMIN_ID, at


class TestGenerateCycleName:
    def test_single_month(self):
        assert generate_cycle_name(date(2025, 1, 1), date(2025, 1, 31)) == "Payroll 1-31 Jan 2025"

    def test_across_months(self):
        assert (
            generate_cycle_name(date(2025, 1, 16), date(2025, 2, 3))
            == "Payroll 16 Jan - 3 Feb 2025"
        )

    def test_across_years(self):
        assert (
            generate_cycle_name(date(2024, 12, 16), date(2025, 1, 15))
            == "Payroll 16 Dec 2024 - 15 Jan 2025"
        )

    def test_semi_monthly_halves_differ(self):
        first = generate_cycle_name(date(2025, 1, 1), date(2025, 1, 15))
        second = generate_cycle_name(date(2025, 1, 16), date(2025, 1, 31))

        assert first == "Payroll 1-15 Jan 2025"
        assert second == "Payroll 16-31 Jan 2025"


class TestCreateCycle:
    """Test creation validation and its order."""

    async def test_creates_active_cycle(self, session, settings, emitter, recorder):
        service = CycleService(session, emitter, settings)
        cycle = await service.create_cycle(
            date(2025, 1, 1), date(2025, 1, 15), name="January A", actor_user_id=ADMIN_ID
        )

        assert cycle.status == "active"
        assert cycle.name == "January A"
        assert cycle.pay_date == date(2025, 1, 15)
        assert cycle.created_by_user_id == ADMIN_ID
        assert cycle.created_at is not None

        events = recorder.of_type(PayrollCycleCreated)
        assert len(events) == 1
        assert events[0].entity_id == cycle.payroll_cycle_id

    async def test_generates_name_when_missing(self, session, settings):
        cycle = await CycleService(session, settings=settings).create_cycle(
            date(2025, 3, 1), date(2025, 3, 31), name="  "
        )
        assert cycle.name == "Payroll 1-31 Mar 2025"

    async def test_missing_start_date(self, session, settings):
        with pytest.raises(ValidationError) as exc_info:
            await CycleService(session, settings=settings).create_cycle(None, date(2025, 1, 15))
        assert exc_info.value.field == "start_date"

    @pytest.mark.parametrize("end", [date(2025, 1, 1), date(2024, 12, 31)])
    async def test_end_must_follow_start(self, session, settings, end):
        with pytest.raises(ValidationError):
            await CycleService(session, settings=settings).create_cycle(date(2025, 1, 1), end)

    async def test_span_limit(self, session, settings):
        with pytest.raises(ValidationError) as exc_info:
            await CycleService(session, settings=settings).create_cycle(
                date(2024, 1, 1), date(2025, 1, 2)
            )
        assert exc_info.value.details["span_days"] == 367

    async def test_end_date_horizon(self, session, settings):
        start = date.today() + timedelta(days=365 * 2)
        with pytest.raises(ValidationError) as exc_info:
            await CycleService(session, settings=settings).create_cycle(
                start, start + timedelta(days=30)
            )
        assert "latest_allowed" in exc_info.value.details

    async def test_touching_boundary_overlaps(self, session, settings, make_cycle):
        existing = await make_cycle(date(2025, 1, 1), date(2025, 1, 15))

        with pytest.raises(ConflictError) as exc_info:
            await CycleService(session, settings=settings).create_cycle(
                date(2025, 1, 15), date(2025, 1, 31)
            )

        conflicting = exc_info.value.details["conflicting"]
        assert conflicting[0]["payroll_cycle_id"] == str(existing.payroll_cycle_id)

    async def test_adjacent_range_accepted(self, session, settings, make_cycle):
        await make_cycle(date(2025, 1, 1), date(2025, 1, 15))

        cycle = await CycleService(session, settings=settings).create_cycle(
            date(2025, 1, 16), date(2025, 1, 31)
        )
        assert cycle.status == "active"
        assert cycle.name == "Payroll 16-31 Jan 2025"

    async def test_duplicate_name(self, session, settings, make_cycle):
        await make_cycle(date(2025, 1, 1), date(2025, 1, 15), name="Payroll A")

        with pytest.raises(ConflictError) as exc_info:
            await CycleService(session, settings=settings).create_cycle(
                date(2025, 2, 1), date(2025, 2, 15), name="Payroll A"
            )
        assert exc_info.value.details["conflicting"] == {"name": "Payroll A"}

    async def test_overlap_reported_before_duplicate_name(self, session, settings, make_cycle):
        await make_cycle(date(2025, 1, 1), date(2025, 1, 15), name="Payroll A")

        with pytest.raises(ConflictError) as exc_info:
            await CycleService(session, settings=settings).create_cycle(
                date(2025, 1, 10), date(2025, 1, 20), name="Payroll A"
            )
        assert isinstance(exc_info.value.details["conflicting"], list)

    async def test_bad_dates_reported_before_overlap(self, session, settings, make_cycle):
        await make_cycle(date(2025, 1, 1), date(2025, 1, 15))

        with pytest.raises(ValidationError):
            await CycleService(session, settings=settings).create_cycle(
                date(2025, 1, 10), date(2025, 1, 5)
            )


class TestLookup:
    async def test_get_unknown_cycle(self, session, settings):
        with pytest.raises(NotFoundError):
            await CycleService(session, settings=settings).get_cycle(uuid4())

    async def test_list_newest_first_and_filter(self, session, settings, make_cycle):
        await make_cycle(date(2025, 1, 1), date(2025, 1, 15))
        await make_cycle(date(2025, 2, 1), date(2025, 2, 15))

        service = CycleService(session, settings=settings)
        cycles = await service.list_cycles()
        assert [c.start_date for c in cycles] == [date(2025, 2, 1), date(2025, 1, 1)]
        assert await service.list_cycles("completed") == []

    async def test_list_unknown_status(self, session, settings):
        with pytest.raises(ValidationError):
            await CycleService(session, settings=settings).list_cycles("draft")


class TestResetCycle:
    async def test_reset_allows_recalculation(
        self, session, settings, emitter, recorder, make_cycle, make_employee, make_time_entry
    ):
        cycle = await make_cycle()
        employee = await make_employee(hourly_rate="50")
        await make_time_entry(employee, at(date(2025, 1, 2), 8), hours=8)
        calculation = CalculationService(session, settings=settings)
        await calculation.calculate_cycle(cycle.payroll_cycle_id)

        deleted = await CycleService(session, emitter, settings).reset_cycle(
            cycle.payroll_cycle_id, actor_user_id=ADMIN_ID
        )

        assert deleted == 1
        assert len(recorder.of_type(PayrollCycleReset)) == 1
        summary = await calculation.calculate_cycle(cycle.payroll_cycle_id)
        assert summary.total_employees == 1

    async def test_reset_completed_cycle_refused(self, session, settings, make_cycle, make_employee):
        cycle = await make_cycle()
        cycle_id = cycle.payroll_cycle_id
        await make_employee(hourly_rate="50")
        await CalculationService(session, settings=settings).calculate_cycle(cycle_id)
        await FinalizationService(session).finalize_cycle(cycle_id, ADMIN_ID)

        with pytest.raises(StateError):
            await CycleService(session, settings=settings).reset_cycle(cycle_id)


class TestStorageFailures:
    """Reads surface an unreachable database as DependencyError."""

    async def test_get_cycle(self, failing_session, settings):
        with pytest.raises(DependencyError) as exc_info:
            await CycleService(failing_session, settings=settings).get_cycle(uuid4())
        assert exc_info.value.details == {"operation": "get_cycle"}

    async def test_list_cycles(self, failing_session, settings):
        with pytest.raises(DependencyError) as exc_info:
            await CycleService(failing_session, settings=settings).list_cycles()
        assert exc_info.value.details == {"operation": "list_cycles"}
