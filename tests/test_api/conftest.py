"""API test fixtures -- AsyncClient with dependency overrides."""

import pytest
from httpx import ASGITransport, AsyncClient

from quake.api.main import create_app
from quake.common.config import Settings, get_settings


@pytest.fixture
def api_settings(secret):
    return Settings(_env_file=None, table_name="earthquakes", next_token_secret=secret)


@pytest.fixture
def event_store(make_store):
    return make_store({})


@pytest.fixture
def app(api_settings, event_store):
    """Create app with settings overridden and the fake store on app.state."""
    application = create_app()
    application.state.event_store = event_store
    application.dependency_overrides[get_settings] = lambda: api_settings
    return application


@pytest.fixture
async def client(app):
    """Async test client that bypasses lifespan."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
