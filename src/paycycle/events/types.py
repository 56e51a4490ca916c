"""Domain event types for audit-worthy payroll facts.

All events are:
- Immutable (frozen dataclasses)
- Published only after the primary transaction commits
- Convertible to the audit fact shape
  {actor, action, entity, entity_id, old_values, new_values, description}
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar
from uuid import UUID, uuid4


class AuditAction(str, Enum):
    """Actions recorded in the audit trail."""

    CREATE = "CREATE"
    CALCULATE = "CALCULATE"
    UPDATE = "UPDATE"
    RESET = "RESET"
    FINALIZE = "FINALIZE"


@dataclass(frozen=True)
class EventMetadata:
    """Metadata attached to every domain event."""

    event_id: UUID
    timestamp: datetime
    actor_id: UUID | None
    correlation_id: UUID
    source_service: str

    @classmethod
    def create(
        cls,
        actor_id: UUID | None,
        correlation_id: UUID | None = None,
        source_service: str = "paycycle",
    ) -> EventMetadata:
        """Create metadata with auto-generated fields."""
        return cls(
            event_id=uuid4(),
            timestamp=datetime.now(timezone.utc),
            actor_id=actor_id,
            correlation_id=correlation_id or uuid4(),
            source_service=source_service,
        )


@dataclass(frozen=True)
class PayrollEvent:
    """Base class for all payroll domain events."""

    entity_type: ClassVar[str] = ""
    action: ClassVar[AuditAction]

    metadata: EventMetadata
    entity_id: UUID
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    description: str = ""

    @property
    def event_type(self) -> str:
        """Event type name for routing."""
        return self.__class__.__name__

    def to_audit_fact(self) -> dict[str, Any]:
        """Shape accepted by the audit sink."""
        return _serialize_dict(
            {
                "actor": self.metadata.actor_id,
                "action": self.action,
                "entity": self.entity_type,
                "entity_id": self.entity_id,
                "old_values": self.old_values,
                "new_values": self.new_values,
                "description": self.description,
            }
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize event to dictionary."""
        data = asdict(self)
        data["event_type"] = self.event_type
        return _serialize_dict(data)

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps(self.to_dict(), default=str)


def _serialize_dict(obj: Any) -> Any:
    """Recursively serialize objects for JSON compatibility."""
    if isinstance(obj, dict):
        return {k: _serialize_dict(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_serialize_dict(v) for v in obj]
    elif isinstance(obj, UUID):
        return str(obj)
    elif isinstance(obj, datetime):
        return obj.isoformat()
    elif isinstance(obj, date):
        return obj.isoformat()
    elif isinstance(obj, Decimal):
        return str(obj)
    elif isinstance(obj, Enum):
        return obj.value
    return obj


# =============================================================================
# Cycle Events
# =============================================================================


@dataclass(frozen=True)
class PayrollCycleCreated(PayrollEvent):
    """A new payroll cycle was opened."""

    entity_type: ClassVar[str] = "payroll_cycle"
    action: ClassVar[AuditAction] = AuditAction.CREATE


@dataclass(frozen=True)
class PayrollCycleCalculated(PayrollEvent):
    """Base pay was calculated for every eligible employee of a cycle."""

    entity_type: ClassVar[str] = "payroll_cycle"
    action: ClassVar[AuditAction] = AuditAction.CALCULATE


@dataclass(frozen=True)
class PayrollCycleReset(PayrollEvent):
    """Calculated pay details of an open cycle were discarded."""

    entity_type: ClassVar[str] = "payroll_cycle"
    action: ClassVar[AuditAction] = AuditAction.RESET


@dataclass(frozen=True)
class PayrollCycleFinalized(PayrollEvent):
    """A cycle was irreversibly closed."""

    entity_type: ClassVar[str] = "payroll_cycle"
    action: ClassVar[AuditAction] = AuditAction.FINALIZE


# =============================================================================
# Detail Events
# =============================================================================


@dataclass(frozen=True)
class PayrollDetailCreated(PayrollEvent):
    """A pay detail row was created by calculation."""

    entity_type: ClassVar[str] = "payroll_detail"
    action: ClassVar[AuditAction] = AuditAction.CREATE


@dataclass(frozen=True)
class BonusChanged(PayrollEvent):
    """A bonus was set or cleared on a pay detail."""

    entity_type: ClassVar[str] = "payroll_detail"
    action: ClassVar[AuditAction] = AuditAction.UPDATE


@dataclass(frozen=True)
class DeductionChanged(PayrollEvent):
    """A deduction was set or cleared on a pay detail."""

    entity_type: ClassVar[str] = "payroll_detail"
    action: ClassVar[AuditAction] = AuditAction.UPDATE


EVENT_TYPES: dict[str, type[PayrollEvent]] = {
    cls.__name__: cls
    for cls in (
        PayrollCycleCreated,
        PayrollCycleCalculated,
        PayrollCycleReset,
        PayrollCycleFinalized,
        PayrollDetailCreated,
        BonusChanged,
        DeductionChanged,
    )
}
