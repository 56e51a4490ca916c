"""Error taxonomy for payroll cycle operations.

Every error carries a machine-readable ``code`` and a ``details`` dict with
enough structure for the caller to act on (offending employees, conflicting
cycles, the computed negative amount). Stack traces are logged, never put
into ``details``.
"""

from __future__ import annotations

from typing import Any


class PayrollError(Exception):
    """Base class for all payroll engine errors."""

    code = "PAYROLL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(PayrollError):
    """Malformed or out-of-range input. Fix the input and resubmit."""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.field = field
        details = dict(details or {})
        if field:
            details.setdefault("field", field)
        super().__init__(message, details)


class NotFoundError(PayrollError):
    """Referenced cycle or pay detail does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} {entity_id} not found",
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )


class ConflictError(PayrollError):
    """Request conflicts with existing data (overlap, duplicate, already done)."""

    code = "CONFLICT"

    def __init__(
        self,
        message: str,
        conflicting: list[dict[str, Any]] | dict[str, Any] | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.conflicting = conflicting
        details = dict(details or {})
        if conflicting is not None:
            details["conflicting"] = conflicting
        super().__init__(message, details)


class StateError(PayrollError):
    """Operation is not allowed in the cycle's current lifecycle state."""

    code = "INVALID_STATE"

    def __init__(self, current_status: str, operation: str, reason: str | None = None):
        self.current_status = current_status
        self.operation = operation
        self.reason = reason
        msg = f"Cannot {operation} a cycle in status '{current_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(
            msg,
            {"current_status": current_status, "operation": operation},
        )


class IntegrityViolation(PayrollError):
    """Operation would break the non-negative net pay invariant."""

    code = "INTEGRITY_VIOLATION"

    def __init__(
        self,
        message: str,
        employees: list[dict[str, Any]] | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.employees = employees or []
        details = dict(details or {})
        if employees is not None:
            details["employees"] = employees
        super().__init__(message, details)


class DependencyError(PayrollError):
    """A store was unreachable or rejected a read/write. Safe to retry."""

    code = "DEPENDENCY_ERROR"

    def __init__(self, operation: str, reason: str | None = None):
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Storage failure during {operation}",
            {"operation": operation},
        )
