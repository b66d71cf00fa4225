"""Fixtures for the API tests: in-memory stores and an HTTP client."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import api.accounts as accounts_module
import api.session as session_module
from api.accounts import InMemoryAccountStore
from api.routes import game as game_routes
from api.session import InMemorySessionStore


@pytest.fixture(autouse=True)
def memory_stores():
    """Keep every test off Redis with fresh in-memory stores and no open tables."""
    session_module._redis_checked = True
    session_module._redis_client = None
    session_module._session_store = InMemorySessionStore()
    accounts_module._account_store = InMemoryAccountStore()
    game_routes._games.clear()
    yield
    game_routes._games.clear()


@pytest.fixture
def profile_payload():
    """A registration form that passes validation."""
    return {
        "username": "lucky_ace",
        "email": "lucky@pixelcasino.com",
        "password": "Secret1!x",
        "birthDate": "1990-05-17",
        "phone": "809-555-1234",
    }


@pytest_asyncio.fixture
async def client():
    """Create test client."""
    from api.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
