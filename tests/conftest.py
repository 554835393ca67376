"""
Shared fixtures wiring the app to in-memory stores and a stubbed Google.
"""
import httpx
import pytest
from fastapi.testclient import TestClient

from authrelay.config import Settings
from authrelay.main import create_app
from authrelay.services.oauth_client import GoogleOAuthClient
from authrelay.services.session_store import InMemorySessionStore
from authrelay.services.state_store import InMemoryStateStore
from tests.support import FakeClock, FakeGoogle, make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture
def oauth_client(settings, google) -> GoogleOAuthClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(google))
    return GoogleOAuthClient(settings, http_client=http_client)


@pytest.fixture
def state_store(settings, clock) -> InMemoryStateStore:
    return InMemoryStateStore(ttl_seconds=settings.STATE_TTL_SECONDS, clock=clock)


@pytest.fixture
def session_store(settings, clock) -> InMemorySessionStore:
    return InMemorySessionStore(ttl_seconds=settings.SESSION_TTL_SECONDS, clock=clock)


@pytest.fixture
def app(settings, oauth_client, state_store, session_store):
    return create_app(
        settings=settings,
        oauth_client=oauth_client,
        state_store=state_store,
        session_store=session_store,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
