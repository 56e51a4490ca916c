"""Payroll cycle services."""

from paycycle.services.adjustment_service import (
    AdjustmentKind,
    AdjustmentService,
    normalize_adjustment,
)
from paycycle.services.calculation_service import CalculationService, CalculationSummary
from paycycle.services.cycle_service import CycleService, generate_cycle_name
from paycycle.services.finalization_service import (
    FinalizationReport,
    FinalizationResult,
    FinalizationService,
    IssueType,
    ValidationIssue,
    validate_for_finalization,
)
from paycycle.services.state_machine import CycleEvent, CycleStatus, PayrollCycleStateMachine
from paycycle.services.summary_service import PayrollStats, SummaryService

__all__ = [
    "AdjustmentKind",
    "AdjustmentService",
    "CalculationService",
    "CalculationSummary",
    "CycleEvent",
    "CycleService",
    "CycleStatus",
    "FinalizationReport",
    "FinalizationResult",
    "FinalizationService",
    "IssueType",
    "PayrollCycleStateMachine",
    "PayrollStats",
    "SummaryService",
    "ValidationIssue",
    "generate_cycle_name",
    "normalize_adjustment",
    "validate_for_finalization",
]
