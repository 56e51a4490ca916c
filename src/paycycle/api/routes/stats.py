"""Payroll dashboard statistics."""

from fastapi import APIRouter

from paycycle.api.dependencies import DbSession
from paycycle.api.schemas import PayrollStatsResponse
from paycycle.services import SummaryService

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.get("/stats", response_model=PayrollStatsResponse)
async def get_payroll_stats(db: DbSession) -> PayrollStatsResponse:
    """Active cycles, active employees, this month's paid total, pending finalizations."""
    stats = await SummaryService(db).get_payroll_stats()
    return PayrollStatsResponse.model_validate(stats.to_dict())
