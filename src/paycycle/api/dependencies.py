"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from paycycle.config import Settings
from paycycle.errors import ValidationError
from paycycle.events import AsyncEventEmitter


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_event_emitter(request: Request) -> AsyncEventEmitter:
    """Emitter that publishes committed events to the audit trail."""
    return request.app.state.emitter


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_actor_id(
    x_user_id: Annotated[str | None, Header()] = None
) -> UUID | None:
    """Extract the acting user's ID from header, if present."""
    if not x_user_id:
        return None
    try:
        return UUID(x_user_id)
    except ValueError:
        raise ValidationError("Invalid X-User-ID format", field="X-User-ID")


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Emitter = Annotated[AsyncEventEmitter, Depends(get_event_emitter)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
ActorId = Annotated[UUID | None, Depends(get_actor_id)]
