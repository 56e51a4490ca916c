"""API routes."""

from paycycle.api.routes.health import router as health_router
from paycycle.api.routes.payroll_cycles import router as payroll_cycles_router
from paycycle.api.routes.payroll_details import router as payroll_details_router
from paycycle.api.routes.stats import router as stats_router

__all__ = [
    "health_router",
    "payroll_cycles_router",
    "payroll_details_router",
    "stats_router",
]
