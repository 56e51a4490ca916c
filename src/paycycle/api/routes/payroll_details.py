"""Pay detail adjustment endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from paycycle.api.dependencies import ActorId, DbSession, Emitter
from paycycle.api.schemas import AdjustmentRequest, ErrorResponse, PayrollDetailResponse
from paycycle.services import AdjustmentService

router = APIRouter(prefix="/payroll-details", tags=["payroll-details"])

ADJUSTMENT_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


@router.put(
    "/{detail_id}/bonus",
    response_model=PayrollDetailResponse,
    responses=ADJUSTMENT_ERRORS,
)
async def set_bonus(
    db: DbSession,
    emitter: Emitter,
    actor_id: ActorId,
    detail_id: Annotated[UUID, Path()],
    payload: AdjustmentRequest,
) -> PayrollDetailResponse:
    """Set the bonus of a pay detail."""
    detail = await AdjustmentService(db, emitter).set_bonus(
        detail_id, payload.amount, payload.reason, actor_user_id=actor_id
    )
    return PayrollDetailResponse.model_validate(detail)


@router.delete(
    "/{detail_id}/bonus",
    response_model=PayrollDetailResponse,
    responses=ADJUSTMENT_ERRORS,
)
async def clear_bonus(
    db: DbSession,
    emitter: Emitter,
    actor_id: ActorId,
    detail_id: Annotated[UUID, Path()],
) -> PayrollDetailResponse:
    """Remove the bonus of a pay detail."""
    detail = await AdjustmentService(db, emitter).clear_bonus(detail_id, actor_user_id=actor_id)
    return PayrollDetailResponse.model_validate(detail)


@router.put(
    "/{detail_id}/deduction",
    response_model=PayrollDetailResponse,
    responses=ADJUSTMENT_ERRORS,
)
async def set_deduction(
    db: DbSession,
    emitter: Emitter,
    actor_id: ActorId,
    detail_id: Annotated[UUID, Path()],
    payload: AdjustmentRequest,
) -> PayrollDetailResponse:
    """Set the deduction of a pay detail."""
    detail = await AdjustmentService(db, emitter).set_deduction(
        detail_id, payload.amount, payload.reason, actor_user_id=actor_id
    )
    return PayrollDetailResponse.model_validate(detail)


@router.delete(
    "/{detail_id}/deduction",
    response_model=PayrollDetailResponse,
    responses=ADJUSTMENT_ERRORS,
)
async def clear_deduction(
    db: DbSession,
    emitter: Emitter,
    actor_id: ActorId,
    detail_id: Annotated[UUID, Path()],
) -> PayrollDetailResponse:
    """Remove the deduction of a pay detail."""
    detail = await AdjustmentService(db, emitter).clear_deduction(
        detail_id, actor_user_id=actor_id
    )
    return PayrollDetailResponse.model_validate(detail)
