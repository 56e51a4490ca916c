"""Payroll domain events and the audit sink."""

from paycycle.events.audit import AuditEventRecorder
from paycycle.events.emitter import AsyncEventEmitter, AsyncEventHandler
from paycycle.events.types import (
    EVENT_TYPES,
    AuditAction,
    BonusChanged,
    DeductionChanged,
    EventMetadata,
    PayrollCycleCalculated,
    PayrollCycleCreated,
    PayrollCycleFinalized,
    PayrollCycleReset,
    PayrollDetailCreated,
    PayrollEvent,
)

__all__ = [
    "EVENT_TYPES",
    "AsyncEventEmitter",
    "AsyncEventHandler",
    "AuditAction",
    "AuditEventRecorder",
    "BonusChanged",
    "DeductionChanged",
    "EventMetadata",
    "PayrollCycleCalculated",
    "PayrollCycleCreated",
    "PayrollCycleFinalized",
    "PayrollCycleReset",
    "PayrollDetailCreated",
    "PayrollEvent",
]
