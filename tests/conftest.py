"""
Shared Test Fixtures
====================

Endpoint tests run the real FastAPI app over httpx's ASGI transport with
the persistence gateway swapped for an in-memory fake.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.dependencies import get_gateway
from app.main import app
from app.services.stats_service import StatsService
from app.services.task_service import TaskService

from tests.fakes import FakeGateway


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def stats_service(gateway: FakeGateway) -> StatsService:
    return StatsService(gateway)


@pytest.fixture
def task_service(gateway: FakeGateway, stats_service: StatsService) -> TaskService:
    return TaskService(gateway, stats=stats_service, duration_unit="minutes")


@pytest.fixture
async def client(gateway: FakeGateway):
    """HTTP client against the app, backed by the fake gateway."""
    app.dependency_overrides[get_gateway] = lambda: gateway
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
