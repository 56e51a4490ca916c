"""Payroll cycle API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from paycycle.api.dependencies import ActorId, AppSettings, DbSession, Emitter
from paycycle.api.schemas import (
    CalculationResponse,
    CycleSummaryResponse,
    ErrorResponse,
    FinalizationResponse,
    PayrollCycleCreate,
    PayrollCycleListResponse,
    PayrollCycleResponse,
    ResetResponse,
)
from paycycle.services import (
    CalculationService,
    CycleService,
    FinalizationService,
    SummaryService,
)

router = APIRouter(prefix="/payroll-cycles", tags=["payroll-cycles"])


# ============================================================================
# Cycle CRUD
# ============================================================================


@router.post(
    "",
    response_model=PayrollCycleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_payroll_cycle(
    db: DbSession,
    emitter: Emitter,
    settings: AppSettings,
    actor_id: ActorId,
    payload: PayrollCycleCreate,
) -> PayrollCycleResponse:
    """Open a new active payroll cycle."""
    service = CycleService(db, emitter, settings)
    cycle = await service.create_cycle(
        start_date=payload.start_date,
        end_date=payload.end_date,
        name=payload.name,
        pay_date=payload.pay_date,
        actor_user_id=actor_id,
    )
    return PayrollCycleResponse.model_validate(cycle)


@router.get(
    "",
    response_model=PayrollCycleListResponse,
    responses={400: {"model": ErrorResponse}},
)
async def list_payroll_cycles(
    db: DbSession,
    settings: AppSettings,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> PayrollCycleListResponse:
    """List payroll cycles, newest first."""
    cycles = await CycleService(db, settings=settings).list_cycles(status_filter)
    return PayrollCycleListResponse(
        items=[PayrollCycleResponse.model_validate(c) for c in cycles],
        total=len(cycles),
    )


@router.get(
    "/{cycle_id}",
    response_model=PayrollCycleResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_cycle(
    db: DbSession,
    settings: AppSettings,
    cycle_id: Annotated[UUID, Path()],
) -> PayrollCycleResponse:
    """Get a specific payroll cycle by ID."""
    cycle = await CycleService(db, settings=settings).get_cycle(cycle_id)
    return PayrollCycleResponse.model_validate(cycle)


# ============================================================================
# Calculation, reset & finalization
# ============================================================================


@router.post(
    "/{cycle_id}/calculate",
    response_model=CalculationResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def calculate_payroll_cycle(
    db: DbSession,
    emitter: Emitter,
    settings: AppSettings,
    actor_id: ActorId,
    cycle_id: Annotated[UUID, Path()],
) -> CalculationResponse:
    """Calculate base pay for every eligible employee, once."""
    summary = await CalculationService(db, emitter, settings).calculate_cycle(
        cycle_id, actor_user_id=actor_id
    )
    return CalculationResponse.model_validate(summary.to_dict())


@router.delete(
    "/{cycle_id}/details",
    response_model=ResetResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def reset_payroll_cycle(
    db: DbSession,
    emitter: Emitter,
    settings: AppSettings,
    actor_id: ActorId,
    cycle_id: Annotated[UUID, Path()],
) -> ResetResponse:
    """Discard calculated pay details of an active cycle."""
    deleted = await CycleService(db, emitter, settings).reset_cycle(
        cycle_id, actor_user_id=actor_id
    )
    return ResetResponse(payroll_cycle_id=cycle_id, deleted_details=deleted)


@router.get(
    "/{cycle_id}/summary",
    response_model=CycleSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_cycle_summary(
    db: DbSession,
    cycle_id: Annotated[UUID, Path()],
) -> CycleSummaryResponse:
    """Cycle info, totals, validation state and employee details."""
    summary = await SummaryService(db).build_cycle_summary(cycle_id)
    return CycleSummaryResponse.model_validate(summary)


@router.post(
    "/{cycle_id}/finalize",
    response_model=FinalizationResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def finalize_payroll_cycle(
    db: DbSession,
    emitter: Emitter,
    actor_id: ActorId,
    cycle_id: Annotated[UUID, Path()],
) -> FinalizationResponse:
    """Irreversibly close a cycle whose details all pass validation."""
    result = await FinalizationService(db, emitter).finalize_cycle(cycle_id, actor_id)
    return FinalizationResponse.model_validate(result.to_dict())
