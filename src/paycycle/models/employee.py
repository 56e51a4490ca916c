"""Employee and attendance models (read-only inputs to the engine)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paycycle.calculators.types import AttendanceInterval, EmployeeRateProfile
from paycycle.models.base import Base, TimestampMixin


class Employee(Base, TimestampMixin):
    """User account holding rate configuration."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    employee_code: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False, default="employee")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "role IN ('employee', 'admin')",
            name="employee_role_check",
        ),
        CheckConstraint(
            "hourly_rate IS NULL OR hourly_rate >= 0",
            name="employee_hourly_rate_check",
        ),
        CheckConstraint(
            "daily_rate IS NULL OR daily_rate >= 0",
            name="employee_daily_rate_check",
        ),
    )

    # Relationships
    time_entries: Mapped[list[TimeEntry]] = relationship(back_populates="employee")

    def to_rate_profile(self) -> EmployeeRateProfile:
        """Resolve the employee's rates into a calculation profile."""
        return EmployeeRateProfile.from_rates(
            employee_id=self.employee_id,
            full_name=self.full_name,
            hourly_rate=self.hourly_rate,
            daily_rate=self.daily_rate,
        )


class TimeEntry(Base, TimestampMixin):
    """Check-in/check-out attendance record."""

    __tablename__ = "time_entry"

    time_entry_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    employee_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    check_in_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    check_out_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="time_entries")

    def to_interval(self) -> AttendanceInterval:
        """Convert to a calculation interval."""
        return AttendanceInterval(
            employee_id=self.employee_id,
            check_in=self.check_in_time,
            check_out=self.check_out_time,
        )
