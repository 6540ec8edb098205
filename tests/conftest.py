from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from oncall_reconciler.api.deps import get_calendar_client, get_pagerduty_client
from oncall_reconciler.main import create_application

from .fakes import FakeCalendarService, FakeRosterService


@pytest.fixture()
def roster_service() -> FakeRosterService:
    return FakeRosterService()


@pytest.fixture()
def calendar_service() -> FakeCalendarService:
    return FakeCalendarService()


@pytest.fixture()
async def api_client(
    roster_service: FakeRosterService, calendar_service: FakeCalendarService
) -> AsyncIterator[AsyncClient]:
    """Application client with the roster and calendar collaborators replaced by fakes."""
    app = create_application()
    app.dependency_overrides[get_pagerduty_client] = lambda: roster_service
    app.dependency_overrides[get_calendar_client] = lambda: calendar_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"
