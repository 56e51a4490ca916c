"""Payroll cycle state machine with transition validation."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from paycycle.errors import ConflictError, StateError

if TYPE_CHECKING:
    from paycycle.models import PayrollCycle


class CycleStatus(str, Enum):
    """Payroll cycle status values."""

    ACTIVE = "active"
    COMPLETED = "completed"


class CycleEvent(str, Enum):
    """Operations that act on a cycle."""

    CALCULATE = "calculate"
    ADJUST = "adjust"
    RESET = "reset"
    FINALIZE = "finalize"


class PayrollCycleStateMachine:
    """State machine for payroll cycle operations.

    Allowed transitions:
    - active --calculate--> active
    - active --adjust--> active
    - active --reset--> active
    - active --finalize--> completed

    Completed is terminal. Adjusting a completed cycle is reported as a
    conflict with the cycle; every other event on it is a state error.
    """

    # {(from_status, event): to_status}
    TRANSITIONS: dict[tuple[str, str], CycleStatus] = {
        (CycleStatus.ACTIVE, CycleEvent.CALCULATE): CycleStatus.ACTIVE,
        (CycleStatus.ACTIVE, CycleEvent.ADJUST): CycleStatus.ACTIVE,
        (CycleStatus.ACTIVE, CycleEvent.RESET): CycleStatus.ACTIVE,
        (CycleStatus.ACTIVE, CycleEvent.FINALIZE): CycleStatus.COMPLETED,
    }

    # Events whose refusal on a closed cycle is a data conflict
    CONFLICT_WHEN_CLOSED = {CycleEvent.ADJUST}

    TERMINAL = {CycleStatus.COMPLETED}

    @classmethod
    def can_apply(cls, status: str, event: str) -> bool:
        """Check if an event is allowed in this status."""
        return (CycleStatus(status), CycleEvent(event)) in cls.TRANSITIONS

    @classmethod
    def next_status(cls, status: str, event: str) -> CycleStatus:
        """Return the status after the event, raising if it is not allowed."""
        key = (CycleStatus(status), CycleEvent(event))
        if key not in cls.TRANSITIONS:
            raise StateError(CycleStatus(status).value, CycleEvent(event).value)
        return cls.TRANSITIONS[key]

    @classmethod
    def apply(cls, cycle: PayrollCycle, event: str) -> CycleStatus:
        """Validate an event against a cycle and return its next status.

        Does not mutate the cycle; callers assign the returned status once
        the rest of the operation has succeeded.
        """
        event = CycleEvent(event)
        if not cls.can_apply(cycle.status, event):
            if event in cls.CONFLICT_WHEN_CLOSED and cls.is_terminal(cycle.status):
                raise ConflictError(
                    f"Payroll cycle '{cycle.name}' is {cycle.status} and can no longer be modified",
                    conflicting={
                        "payroll_cycle_id": str(cycle.payroll_cycle_id),
                        "name": cycle.name,
                        "status": cycle.status,
                    },
                )
            raise StateError(cycle.status, event.value)
        return cls.next_status(cycle.status, event)

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        """Check if no further operations are possible."""
        return CycleStatus(status) in cls.TERMINAL

    @classmethod
    def is_mutable(cls, status: str) -> bool:
        """Check if pay details of a cycle in this status may change."""
        return cls.can_apply(status, CycleEvent.ADJUST)

    @classmethod
    def get_allowed_events(cls, status: str) -> list[CycleEvent]:
        """Get events allowed in the current status."""
        current = CycleStatus(status)
        return [event for (from_status, event) in cls.TRANSITIONS if from_status == current]
