"""API endpoint integration tests.

Tests the FastAPI endpoints for payroll cycle operations.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paycycle.models import AuditEvent

from ..conftest import ADMIN_ID, at, unreachable_database

HEADERS = {"X-User-ID": str(ADMIN_ID)}


async def create_cycle(client: AsyncClient, start: str, end: str, **extra) -> dict:
    response = await client.post(
        "/api/v1/payroll-cycles",
        headers=HEADERS,
        json={"start_date": start, "end_date": end, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["engine_version"] == "test"

    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestPayrollCycleEndpoints:
    """Test cycle CRUD endpoints."""

    async def test_create_and_get(self, client: AsyncClient):
        created = await create_cycle(client, "2025-01-01", "2025-01-31")

        assert created["name"] == "Payroll 1-31 Jan 2025"
        assert created["status"] == "active"
        assert created["pay_date"] == "2025-01-31"

        response = await client.get(f"/api/v1/payroll-cycles/{created['payroll_cycle_id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Payroll 1-31 Jan 2025"

    async def test_list(self, client: AsyncClient):
        await create_cycle(client, "2025-01-01", "2025-01-15")
        await create_cycle(client, "2025-01-16", "2025-01-31")

        response = await client.get("/api/v1/payroll-cycles", params={"status": "active"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["items"][0]["start_date"] == "2025-01-16"

    async def test_overlap_is_409(self, client: AsyncClient):
        await create_cycle(client, "2025-01-01", "2025-01-15")

        response = await client.post(
            "/api/v1/payroll-cycles",
            json={"start_date": "2025-01-15", "end_date": "2025-01-31"},
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "CONFLICT"
        assert body["context"]["conflicting"][0]["start_date"] == "2025-01-01"

    async def test_missing_date_is_400(self, client: AsyncClient):
        response = await client.post("/api/v1/payroll-cycles", json={"end_date": "2025-01-31"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert response.json()["context"]["field"] == "start_date"

    async def test_malformed_body_is_400(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/payroll-cycles", json={"start_date": "not-a-date"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_unknown_cycle_is_404(self, client: AsyncClient):
        response = await client.get(f"/api/v1/payroll-cycles/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_bad_actor_header_is_400(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/payroll-cycles",
            headers={"X-User-ID": "admin"},
            json={"start_date": "2025-01-01", "end_date": "2025-01-15"},
        )
        assert response.status_code == 400


class TestPayrollWorkflow:
    """Create, calculate, adjust, finalize over HTTP."""

    async def test_full_workflow(
        self, client: AsyncClient, session_factory, make_employee, make_time_entry
    ):
        employee = await make_employee("Somchai Jaidee", hourly_rate="3750")
        await make_time_entry(employee, at(date(2025, 1, 2), 8), hours=8)
        cycle = await create_cycle(client, "2025-01-01", "2025-01-15")
        cycle_url = f"/api/v1/payroll-cycles/{cycle['payroll_cycle_id']}"

        # Calculate
        response = await client.post(f"{cycle_url}/calculate", headers=HEADERS)
        assert response.status_code == 200, response.text
        calculation = response.json()
        assert calculation["total_employees"] == 1
        assert Decimal(calculation["total_base_pay"]) == Decimal("30000")
        assert calculation["employees"][0]["calculation_method"] == "hourly"

        # Calculating again is a conflict
        response = await client.post(f"{cycle_url}/calculate", headers=HEADERS)
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

        summary = (await client.get(f"{cycle_url}/summary")).json()
        detail_id = summary["employee_details"][0]["payroll_detail_id"]
        detail_url = f"/api/v1/payroll-details/{detail_id}"

        # Adjust
        response = await client.put(
            f"{detail_url}/deduction", headers=HEADERS, json={"amount": "500", "reason": "Uniform"}
        )
        assert response.status_code == 200
        response = await client.put(
            f"{detail_url}/bonus", headers=HEADERS, json={"amount": "2000", "reason": "ผลงานดีเด่น"}
        )
        assert response.status_code == 200
        assert Decimal(response.json()["net_pay"]) == Decimal("31500")

        response = await client.put(
            f"{detail_url}/deduction", headers=HEADERS, json={"amount": "35000", "reason": "Advance"}
        )
        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "INTEGRITY_VIOLATION"
        assert Decimal(body["context"]["employees"][0]["net_pay"]) == Decimal("-3000")

        response = await client.put(f"{detail_url}/bonus", headers=HEADERS, json={"amount": "100"})
        assert response.status_code == 400

        # Summary reflects adjustments
        summary = (await client.get(f"{cycle_url}/summary")).json()
        assert Decimal(summary["totals"]["total_net_pay"]) == Decimal("31500")
        assert summary["validation"]["can_finalize"] is True
        assert summary["employee_details"][0]["daily_breakdown"][0]["date"] == "2025-01-02"

        # Finalize
        response = await client.post(f"{cycle_url}/finalize", headers=HEADERS)
        assert response.status_code == 200, response.text
        finalized = response.json()
        assert finalized["cycle_info"]["status"] == "completed"
        assert finalized["finalized_by"] == str(ADMIN_ID)
        assert Decimal(finalized["totals"]["total_net_pay"]) == Decimal("31500")

        # Closed cycle: adjust is a conflict, finalize/reset are state errors
        response = await client.delete(f"{detail_url}/bonus", headers=HEADERS)
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

        response = await client.post(f"{cycle_url}/finalize", headers=HEADERS)
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATE"

        response = await client.delete(f"{cycle_url}/details", headers=HEADERS)
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATE"

        # Audit trail written after each committed change
        async with session_factory() as session:
            actions = (await session.execute(select(AuditEvent.action))).scalars().all()
        assert sorted(set(actions)) == ["CALCULATE", "CREATE", "FINALIZE", "UPDATE"]

    async def test_reset_then_recalculate(self, client: AsyncClient, make_employee):
        await make_employee("Alice", daily_rate="500")
        cycle = await create_cycle(client, "2025-01-01", "2025-01-15")
        cycle_url = f"/api/v1/payroll-cycles/{cycle['payroll_cycle_id']}"
        await client.post(f"{cycle_url}/calculate", headers=HEADERS)

        response = await client.delete(f"{cycle_url}/details", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["deleted_details"] == 1

        response = await client.post(f"{cycle_url}/calculate", headers=HEADERS)
        assert response.status_code == 200

    async def test_finalize_requires_actor(self, client: AsyncClient, make_employee):
        await make_employee("Alice", daily_rate="500")
        cycle = await create_cycle(client, "2025-01-01", "2025-01-15")
        cycle_url = f"/api/v1/payroll-cycles/{cycle['payroll_cycle_id']}"
        await client.post(f"{cycle_url}/calculate", headers=HEADERS)

        response = await client.post(f"{cycle_url}/finalize")

        assert response.status_code == 400

    async def test_no_eligible_employees(self, client: AsyncClient):
        cycle = await create_cycle(client, "2025-01-01", "2025-01-15")

        response = await client.post(
            f"/api/v1/payroll-cycles/{cycle['payroll_cycle_id']}/calculate", headers=HEADERS
        )

        assert response.status_code == 400


class TestStatsEndpoint:
    async def test_stats(self, client: AsyncClient, make_employee):
        await make_employee("Alice", hourly_rate="50")
        await create_cycle(client, "2025-01-01", "2025-01-15")

        response = await client.get("/api/v1/payroll/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["active_cycles"] == 1
        assert data["active_employees"] == 1
        assert data["pending_finalization"] == 0


class TestStorageFailureResponses:
    """Unreachable storage on reads answers 503 with a retryable code."""

    async def test_list_cycles_is_503(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(AsyncSession, "execute", unreachable_database)

        response = await client.get("/api/v1/payroll-cycles")

        assert response.status_code == 503
        assert response.json()["code"] == "DEPENDENCY_ERROR"
        assert response.json()["context"] == {"operation": "list_cycles"}

    async def test_stats_is_503(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(AsyncSession, "scalar", unreachable_database)

        response = await client.get("/api/v1/payroll/stats")

        assert response.status_code == 503
        assert response.json()["code"] == "DEPENDENCY_ERROR"
