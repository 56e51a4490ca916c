"""ORM models for the payroll cycle engine."""

from paycycle.models.audit import AuditEvent
from paycycle.models.base import Base, TimestampMixin
from paycycle.models.employee import Employee, TimeEntry
from paycycle.models.payroll import PayrollCycle, PayrollDetail

__all__ = [
    "AuditEvent",
    "Base",
    "Employee",
    "PayrollCycle",
    "PayrollDetail",
    "TimeEntry",
    "TimestampMixin",
]
