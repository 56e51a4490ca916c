"""Pytest fixtures for payroll cycle engine tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from paycycle.config import Settings
from paycycle.database import create_session_factory
from paycycle.events import AsyncEventEmitter, PayrollEvent
from paycycle.models import Base, Employee, PayrollCycle, TimeEntry
from paycycle.services import CycleService

ADMIN_ID = UUID("00000000-0000-0000-0000-00000000a001")


def at(day: date, hour: int, minute: int = 0) -> datetime:
    """UTC timestamp on a given day."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'paycycle_test.db'}",
        engine_version="test",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="INFO",
        daily_rate_threshold_hours=Decimal("12"),
        max_cycle_days=365,
        max_future_years=2,
    )


@pytest_asyncio.fixture
async def engine(settings: Settings):
    """Create test database engine with all tables."""
    engine = create_async_engine(settings.database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session


async def unreachable_database(*args, **kwargs):
    """Stand-in for a query against a database that went away."""
    raise OperationalError("SELECT 1", {}, ConnectionError("database is unreachable"))


@pytest.fixture
def failing_session(session, monkeypatch) -> AsyncSession:
    """Session whose every query fails at the storage layer."""
    monkeypatch.setattr(session, "execute", unreachable_database)
    monkeypatch.setattr(session, "scalar", unreachable_database)
    return session


class RecordingHandler:
    """Event handler that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[PayrollEvent] = []

    async def __call__(self, event: PayrollEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[PayrollEvent]) -> list[PayrollEvent]:
        return [e for e in self.events if isinstance(e, event_type)]


@pytest.fixture
def recorder() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def emitter(recorder: RecordingHandler) -> AsyncEventEmitter:
    emitter = AsyncEventEmitter()
    emitter.on_all(recorder)
    return emitter


# ============================================================================
# Data factories
# ============================================================================


@pytest.fixture
def make_employee(
    session_factory,
) -> Callable[..., Awaitable[Employee]]:
    """Insert an employee in its own committed transaction."""

    async def _make(
        full_name: str = "Somchai Jaidee",
        hourly_rate: Decimal | str | None = None,
        daily_rate: Decimal | str | None = None,
        role: str = "employee",
        is_active: bool = True,
    ) -> Employee:
        employee = Employee(
            employee_id=uuid4(),
            full_name=full_name,
            role=role,
            is_active=is_active,
            hourly_rate=Decimal(hourly_rate) if hourly_rate is not None else None,
            daily_rate=Decimal(daily_rate) if daily_rate is not None else None,
        )
        async with session_factory() as session:
            session.add(employee)
            await session.commit()
        return employee

    return _make


@pytest.fixture
def make_time_entry(
    session_factory,
) -> Callable[..., Awaitable[TimeEntry]]:
    """Insert one attendance record."""

    async def _make(
        employee: Employee,
        check_in: datetime,
        check_out: datetime | None = None,
        hours: float | None = None,
    ) -> TimeEntry:
        if hours is not None:
            check_out = check_in + timedelta(hours=hours)
        entry = TimeEntry(
            time_entry_id=uuid4(),
            employee_id=employee.employee_id,
            check_in_time=check_in,
            check_out_time=check_out,
        )
        async with session_factory() as session:
            session.add(entry)
            await session.commit()
        return entry

    return _make


@pytest.fixture
def make_cycle(
    session_factory,
    settings: Settings,
) -> Callable[..., Awaitable[PayrollCycle]]:
    """Open a cycle through the service."""

    async def _make(
        start_date: date = date(2025, 1, 1),
        end_date: date = date(2025, 1, 15),
        name: str | None = None,
    ) -> PayrollCycle:
        async with session_factory() as session:
            return await CycleService(session, settings=settings).create_cycle(
                start_date=start_date,
                end_date=end_date,
                name=name,
                actor_user_id=ADMIN_ID,
            )

    return _make
