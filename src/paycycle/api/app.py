"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from paycycle import __version__
from paycycle.api.exceptions import setup_exception_handlers
from paycycle.api.routes import (
    health_router,
    payroll_cycles_router,
    payroll_details_router,
    stats_router,
)
from paycycle.config import Settings, get_settings
from paycycle.database import create_session_factory, get_engine
from paycycle.events import AsyncEventEmitter, AuditEventRecorder


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    yield
    # Shutdown
    engine = app.state.engine
    if engine is not None:
        await engine.dispose()


def create_app(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Tests pass their own ``session_factory``; otherwise one is built from
    ``settings.database_url``.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Payroll Cycle Engine API",
        description="Payroll cycle calculation, adjustment and finalization",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = None
    if session_factory is None:
        app.state.engine = get_engine(settings.database_url)
        session_factory = create_session_factory(app.state.engine)
    app.state.session_factory = session_factory

    # Audit facts are written after the payroll transaction commits
    emitter = AsyncEventEmitter()
    emitter.on_all(AuditEventRecorder(session_factory))
    app.state.emitter = emitter

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(payroll_cycles_router, prefix="/api/v1")
    app.include_router(payroll_details_router, prefix="/api/v1")
    app.include_router(stats_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
