# tests/fixtures/app.py

"""
🧩 App Fixture:
- Builds the real FastAPI app (middleware, exception handlers, routers)
- Points its DB dependency at the per-test SQLite database
- Returns an HTTP client fixture for integration tests
"""

from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from vidcms.db.session import get_async_db
from vidcms.main import create_app
from tests.fixtures.db import get_override_get_db

MAINTENANCE_KEY = "test-maintenance-key"


@pytest.fixture()
def app(session_factory) -> FastAPI:
    app = create_app()
    app.dependency_overrides[get_async_db] = get_override_get_db(session_factory)
    return app


@pytest.fixture()
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
