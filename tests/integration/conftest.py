"""Integration test fixtures: the API over the test database."""

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from paycycle.api.app import create_app


@pytest_asyncio.fixture
async def client(settings, session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app using the per-test database."""
    app = create_app(settings=settings, session_factory=session_factory)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
