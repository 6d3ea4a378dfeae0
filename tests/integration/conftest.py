"""Integration test configuration - app wired to fakes through app.state."""

import os

# Set required environment variables BEFORE any app module is imported.
# This prevents pydantic Settings validation from failing.
os.environ.setdefault("OPENROUTER_API_KEY", "test-openrouter-key")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")

import pytest
from httpx import ASGITransport, AsyncClient

from app.errors import Unauthorized
from app.models.schemas import AuthenticatedUser

VALID_TOKEN = "good-token"


class FakeIdentityProvider:
    """Accepts exactly one token and records every verification."""

    def __init__(self, user: AuthenticatedUser):
        self.user = user
        self.verified: list[str] = []

    async def verify(self, token: str) -> AuthenticatedUser:
        self.verified.append(token)
        if token != VALID_TOKEN:
            raise Unauthorized("Invalid token")
        return self.user

    async def close(self) -> None:
        pass


@pytest.fixture
def fake_identity(sample_user):
    return FakeIdentityProvider(sample_user)


@pytest.fixture
def app(fake_identity, mock_search_client, mock_completion_client, test_session_factory):
    """Create a test FastAPI app with fakes in place of the lifespan state."""
    from app.main import create_app

    test_app = create_app()

    test_app.state.identity_provider = fake_identity
    test_app.state.search_client = mock_search_client
    test_app.state.completion_client = mock_completion_client
    test_app.state.db_session_factory = test_session_factory

    return test_app


@pytest.fixture
async def client(app):
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
