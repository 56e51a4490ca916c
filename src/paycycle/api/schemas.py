"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Payroll Cycle schemas
# ============================================================================


class PayrollCycleCreate(BaseModel):
    """Schema for opening a payroll cycle.

    Dates are optional here so that a missing date is reported by the
    engine's own validation, in its checking order.
    """

    name: str | None = Field(default=None, max_length=200)
    start_date: date | None = None
    end_date: date | None = None
    pay_date: date | None = None


class PayrollCycleResponse(BaseModel):
    """Schema for payroll cycle response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_cycle_id: UUID
    name: str
    start_date: date
    end_date: date
    pay_date: date | None = None
    status: str
    created_by_user_id: UUID | None = None
    created_at: datetime | None = None
    finalized_at: datetime | None = None
    finalized_by_user_id: UUID | None = None
    total_employees: int | None = None
    total_amount: Decimal | None = None


class PayrollCycleListResponse(BaseModel):
    """Schema for listing payroll cycles."""

    items: list[PayrollCycleResponse]
    total: int


class ResetResponse(BaseModel):
    """Schema for reset response."""

    payroll_cycle_id: UUID
    deleted_details: int


# ============================================================================
# Calculation schemas
# ============================================================================


class EmployeeCalculation(BaseModel):
    """Calculated base pay of one employee."""

    employee_id: UUID
    full_name: str
    total_hours: Decimal
    days_worked: int
    base_pay: Decimal
    calculation_method: str


class CalculationPeriod(BaseModel):
    start_date: date
    end_date: date


class CalculationResponse(BaseModel):
    """Schema for calculation response."""

    payroll_cycle_id: UUID
    period: CalculationPeriod
    total_employees: int
    total_base_pay: Decimal
    employees: list[EmployeeCalculation]


# ============================================================================
# Pay Detail schemas
# ============================================================================


class AdjustmentRequest(BaseModel):
    """Schema for setting a bonus or deduction."""

    amount: Decimal
    reason: str | None = None


class PayrollDetailResponse(BaseModel):
    """Schema for pay detail response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_detail_id: UUID
    payroll_cycle_id: UUID
    employee_id: UUID
    base_pay: Decimal
    bonus: Decimal
    bonus_reason: str | None = None
    deduction: Decimal
    deduction_reason: str | None = None
    net_pay: Decimal
    calculation_method: str
    total_hours: Decimal
    days_worked: int
    updated_at: datetime | None = None


# ============================================================================
# Summary & finalization schemas
# ============================================================================


class CycleInfo(BaseModel):
    id: UUID
    name: str
    start_date: date
    end_date: date
    pay_date: date | None = None
    status: str
    finalized_at: datetime | None = None
    finalized_by: UUID | None = None


class SummaryTotals(BaseModel):
    total_employees: int
    total_base_pay: Decimal
    total_bonuses: Decimal
    total_deductions: Decimal
    total_net_pay: Decimal


class ValidationIssueResponse(BaseModel):
    type: str
    employee_id: str | None = None
    full_name: str | None = None
    net_pay: str | None = None
    message: str


class SummaryValidation(BaseModel):
    can_finalize: bool
    employees_with_negative_net_pay: list[ValidationIssueResponse]
    validation_issues: list[ValidationIssueResponse]


class DailyBreakdownEntry(BaseModel):
    date: date
    hours: Decimal
    method: str
    pay: Decimal
    unrateable: bool = False


class EmployeeDetail(BaseModel):
    payroll_detail_id: UUID
    employee_id: UUID
    full_name: str | None = None
    base_pay: Decimal
    bonus: Decimal
    bonus_reason: str | None = None
    deduction: Decimal
    deduction_reason: str | None = None
    net_pay: Decimal
    calculation_method: str
    total_hours: Decimal
    days_worked: int
    daily_breakdown: list[DailyBreakdownEntry]


class CycleSummaryResponse(BaseModel):
    """Cycle summary in the export structure."""

    cycle_info: CycleInfo
    totals: SummaryTotals
    validation: SummaryValidation
    employee_details: list[EmployeeDetail]


class FinalizationTotals(BaseModel):
    total_employees: int
    total_net_pay: Decimal


class FinalizationResponse(BaseModel):
    """Schema for finalization response."""

    cycle_info: CycleInfo
    totals: FinalizationTotals
    finalized_at: datetime
    finalized_by: UUID


class PayrollStatsResponse(BaseModel):
    """Dashboard statistics."""

    active_cycles: int
    active_employees: int
    completed_net_pay_this_month: Decimal
    pending_finalization: int


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
