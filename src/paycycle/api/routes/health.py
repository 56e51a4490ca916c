"""Health, readiness and liveness probes."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from paycycle.api.dependencies import AppSettings, DbSession
from paycycle.models import PayrollCycle

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    database: str
    engine_version: str


class ProbeResponse(BaseModel):
    status: str


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession, settings: AppSettings) -> HealthResponse:
    """Report database connectivity and the running engine version.

    Always answers 200; a failed database ping shows up as ``degraded``.
    """
    try:
        await db.execute(text("SELECT 1"))
        database = "healthy"
    except SQLAlchemyError:
        logger.warning("Database ping failed", exc_info=True)
        database = "unhealthy"

    return HealthResponse(
        status="healthy" if database == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=database,
        engine_version=settings.engine_version,
    )


@router.get(
    "/ready",
    response_model=ProbeResponse,
    responses={503: {"model": ProbeResponse}},
)
async def readiness_check(db: DbSession, response: Response) -> ProbeResponse:
    """Ready once the payroll tables can be queried."""
    try:
        await db.execute(select(func.count()).select_from(PayrollCycle))
    except SQLAlchemyError:
        logger.warning("Payroll schema not reachable", exc_info=True)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ProbeResponse(status="not_ready")
    return ProbeResponse(status="ready")


@router.get("/live", response_model=ProbeResponse)
async def liveness_check() -> ProbeResponse:
    return ProbeResponse(status="alive")
