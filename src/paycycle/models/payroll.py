"""Payroll cycle and pay detail models."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paycycle.models.base import Base, TimestampMixin
from paycycle.models.employee import Employee


# ===== Payroll Cycle =====


class PayrollCycle(Base, TimestampMixin):
    """Pay period with a fixed inclusive date range and lifecycle status."""

    __tablename__ = "payroll_cycle"

    payroll_cycle_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    pay_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    created_by_user_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    # Stamped at finalization
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finalized_by_user_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), nullable=True
    )
    total_employees: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    __table_args__ = (
        UniqueConstraint("name", name="payroll_cycle_name_unique"),
        CheckConstraint(
            "status IN ('active', 'completed')",
            name="payroll_cycle_status_check",
        ),
        CheckConstraint("end_date > start_date", name="payroll_cycle_dates_check"),
        CheckConstraint(
            "status <> 'completed' OR (finalized_at IS NOT NULL AND finalized_by_user_id IS NOT NULL)",
            name="payroll_cycle_finalization_stamp_check",
        ),
    )

    # Relationships
    details: Mapped[list[PayrollDetail]] = relationship(
        back_populates="cycle",
        cascade="all, delete-orphan",
    )


# ===== Payroll Detail =====


class PayrollDetail(Base, TimestampMixin):
    """Calculated and adjusted pay of one employee within a cycle."""

    __tablename__ = "payroll_detail"

    payroll_detail_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    payroll_cycle_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("payroll_cycle.payroll_cycle_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    base_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    bonus: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    bonus_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    deduction: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    deduction_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    calculation_method: Mapped[str] = mapped_column(String, nullable=False, default="hourly")

    # Calculation trace
    total_hours: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    days_worked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    daily_breakdown: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("payroll_cycle_id", "employee_id", name="payroll_detail_cycle_employee_unique"),
        CheckConstraint("bonus >= 0", name="payroll_detail_bonus_check"),
        CheckConstraint("deduction >= 0", name="payroll_detail_deduction_check"),
        CheckConstraint(
            "calculation_method IN ('hourly', 'daily', 'mixed')",
            name="payroll_detail_method_check",
        ),
    )

    # Relationships
    cycle: Mapped[PayrollCycle] = relationship(back_populates="details")
    employee: Mapped[Employee] = relationship()

    def compute_net_pay(
        self,
        bonus: Decimal | None = None,
        deduction: Decimal | None = None,
    ) -> Decimal:
        """Net pay for the given (or current) bonus and deduction."""
        bonus = self.bonus if bonus is None else bonus
        deduction = self.deduction if deduction is None else deduction
        return self.base_pay + bonus - deduction
