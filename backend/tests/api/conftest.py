"""API test fixtures — ASGI client wired to the test DB, broadcaster and scheduler."""

import pytest
from httpx import ASGITransport, AsyncClient

from crowdchain.api.dependencies import broadcaster_dep, scheduler_dep
from crowdchain.infrastructure.database import get_db
from crowdchain.main import app


@pytest.fixture
async def client(test_session_factory, fake_db_manager, broadcaster, scheduler):
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[broadcaster_dep] = lambda: broadcaster
    app.dependency_overrides[scheduler_dep] = lambda: scheduler

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
