"""Audit sink writing committed payroll events to the audit trail."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from paycycle.events.types import PayrollEvent
from paycycle.models import AuditEvent

logger = logging.getLogger(__name__)


class AuditEventRecorder:
    """Persist events as AuditEvent rows.

    Each event is written in its own session so an audit failure can never
    touch the payroll transaction that produced it.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def __call__(self, event: PayrollEvent) -> None:
        fact = event.to_audit_fact()
        async with self.session_factory() as session:
            session.add(
                AuditEvent(
                    actor_user_id=event.metadata.actor_id,
                    entity_type=fact["entity"],
                    entity_id=UUID(fact["entity_id"]),
                    action=fact["action"],
                    before_json=fact["old_values"],
                    after_json=fact["new_values"],
                    description=fact["description"] or None,
                )
            )
            await session.commit()
        logger.debug("Recorded %s for %s %s", fact["action"], fact["entity"], fact["entity_id"])
