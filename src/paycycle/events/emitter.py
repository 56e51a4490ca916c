"""Event emitter for publishing payroll events after commit.

The emitter provides:
- Handler registration with type filtering
- Error isolation (handler failures are logged, never raised to the caller)
- Publishing a batch of events collected during one transaction
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Protocol, TypeVar, runtime_checkable

from paycycle.events.types import PayrollEvent

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=PayrollEvent)


@runtime_checkable
class AsyncEventHandler(Protocol):
    """Protocol for asynchronous event handlers."""

    async def __call__(self, event: PayrollEvent) -> None:
        """Handle a payroll event asynchronously."""
        ...


@dataclass
class HandlerRegistration:
    """Registration of an event handler."""

    handler: AsyncEventHandler
    event_types: set[str] | None  # None = all events


class AsyncEventEmitter:
    """Asynchronous event emitter.

    Services build events while their transaction is open and hand them to
    ``publish`` only once it has committed. A failing handler never undoes
    or fails the operation that produced the event.

    Usage:
        emitter = AsyncEventEmitter()

        async def record(event: PayrollEvent) -> None:
            await sink.write(event.to_audit_fact())

        emitter.on_all(record)
        await emitter.publish([event1, event2])
    """

    def __init__(self) -> None:
        self._handlers: list[HandlerRegistration] = []

    def on(
        self,
        event_type: type[T] | list[type[T]],
        handler: AsyncEventHandler,
    ) -> None:
        """Register handler for specific event type(s)."""
        if isinstance(event_type, list):
            types = {t.__name__ for t in event_type}
        else:
            types = {event_type.__name__}
        self._handlers.append(HandlerRegistration(handler=handler, event_types=types))

    def on_all(self, handler: AsyncEventHandler) -> None:
        """Register handler for all events."""
        self._handlers.append(HandlerRegistration(handler=handler, event_types=None))

    def off(self, handler: AsyncEventHandler) -> None:
        """Unregister a handler."""
        self._handlers = [reg for reg in self._handlers if reg.handler is not handler]

    async def emit(self, event: PayrollEvent) -> list[Exception]:
        """Emit an event to all matching handlers.

        Returns list of any exceptions raised by handlers.
        """
        tasks = [
            asyncio.create_task(self._call_handler(reg.handler, event))
            for reg in self._handlers
            if not reg.event_types or event.event_type in reg.event_types
        ]
        if not tasks:
            return []

        results = await asyncio.gather(*tasks, return_exceptions=True)
        return [result for result in results if isinstance(result, Exception)]

    async def publish(self, events: Iterable[PayrollEvent]) -> list[Exception]:
        """Emit committed events in order, collecting handler failures."""
        errors: list[Exception] = []
        for event in events:
            errors.extend(await self.emit(event))
        if errors:
            logger.warning("%d audit handler failure(s) after commit", len(errors))
        return errors

    async def _call_handler(
        self,
        handler: AsyncEventHandler,
        event: PayrollEvent,
    ) -> None:
        """Call handler with error logging."""
        try:
            await handler(event)
        except Exception:
            logger.exception(
                "Handler %s failed for event %s",
                handler,
                event.event_type,
            )
            raise
