"""Test configuration and fixtures for pytest."""

import os

# Set required environment variables BEFORE any app module is imported.
# This prevents pydantic Settings validation from failing.
os.environ.setdefault("OPENROUTER_API_KEY", "test-openrouter-key")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.db_models import Base
from app.models.schemas import AuthenticatedUser, Paper

# In-memory SQLite shared across connections of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables after tests
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def test_session_factory(test_db_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


@pytest_asyncio.fixture
async def test_db_session(test_session_factory):
    """Create test database session."""
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def sample_user():
    """An authenticated user as resolved by the identity provider."""
    return AuthenticatedUser(id="user-123", email="researcher@example.com")


@pytest.fixture
def sample_papers():
    """Papers as parsed from an arXiv feed."""
    return [
        Paper(
            title="Quantum Error Correction Below the Surface Code Threshold",
            authors=["Smith, J.", "Doe, A."],
            abstract="We demonstrate logical qubits with error rates below threshold.",
            link="http://arxiv.org/abs/2408.13687v1",
        ),
        Paper(
            title="Variational Quantum Algorithms",
            authors=["Alice, B."],
            abstract="A review of variational methods for near-term quantum devices.",
            link="http://arxiv.org/abs/2012.09265v2",
        ),
    ]


@pytest.fixture
def arxiv_feed_xml():
    """Atom feed with two entries, one of them missing its summary."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">
  <title type="html">ArXiv Query: search_query=all:quantum computing</title>
  <entry>
    <id>http://arxiv.org/abs/2408.13687v1</id>
    <title>Quantum Error Correction Below the
  Surface Code Threshold</title>
    <summary>  We demonstrate logical qubits with error rates below threshold.
    </summary>
    <author>
      <name>Smith, J.</name>
      <arxiv:affiliation>Example University</arxiv:affiliation>
    </author>
    <author>
      <name> Doe, A. </name>
    </author>
  </entry>
  <entry>
    <id>http://arxiv.org/abs/2012.09265v2</id>
    <title>Variational Quantum Algorithms</title>
    <author>
      <name>Alice, B.</name>
    </author>
  </entry>
</feed>
"""


@pytest.fixture
def empty_feed_xml():
    """Atom feed with no entries."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title type="html">ArXiv Query: search_query=all:zzzz</title>
</feed>
"""


@pytest.fixture
def mock_search_client(sample_papers):
    """Search client double returning the sample papers."""
    client = MagicMock()
    client.search = AsyncMock(return_value=sample_papers)
    return client


@pytest.fixture
def mock_completion_client():
    """Completion client double; set ``complete`` side effects per test."""
    client = MagicMock()
    client.complete = AsyncMock(return_value="Generated text")
    return client
