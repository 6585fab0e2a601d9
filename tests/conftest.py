"""
SocialFeed Backend - Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

The environment is set before anything under `app` is imported: settings,
the engine and the service singletons read it once at import time.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock AsyncSession (no real DB needed)
    ├── database: creates all tables on a throwaway SQLite file, drops them after
    ├── db_session: a real AsyncSession on that database
    ├── temp_storage: Temporary directory for file operations
    ├── sample_image_bytes / sample_png_bytes: real image headers for upload tests
    ├── html_bytes: non-image content for rejected uploads
    ├── test_client: HTTPX AsyncClient wired to the FastAPI app
    └── make_account: signup helper for API tests
"""

import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="socialfeed_test_")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "storage")
os.environ["JWT_SECRET"] = "socialfeed-test-secret-with-enough-length-for-hs256"
os.environ["BCRYPT_ROUNDS"] = "4"  # Fastest cost bcrypt accepts
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["MUTATION_MAX_ATTEMPTS"] = "5"
os.environ["MUTATION_RETRY_MIN_WAIT"] = "0"
os.environ["MUTATION_RETRY_MAX_WAIT"] = "0"

from typing import Callable, Dict  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.database import Base, async_session_factory, engine  # noqa: E402
from app.models.account import Account  # noqa: E402,F401
from app.models.post import Post  # noqa: E402,F401


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = post
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """Smallest valid JPEG: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def sample_png_bytes():
    """A 1x1 transparent PNG."""
    return bytes.fromhex(
        "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
        "1f15c4890000000a49444154789c63000100000500010d0a2db40000000049454e44ae426082"
    )


@pytest.fixture
def html_bytes():
    """Markup that must never be stored as an image, whatever it is named."""
    return b"<html><script>alert(1)</script></html>"


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """
    Fresh schema for one test.

    The engine is disposed afterwards so no pooled connection outlives the
    test's event loop.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with async_session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient routed straight into the app via ASGITransport.

    Usage:
        response = await test_client.get("/api/posts")
    """
    from app.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_account(test_client) -> Callable:
    """Sign up an account through the API and return the JSON body."""

    async def _make(name: str, email: str, password: str = "secret1") -> Dict:
        response = await test_client.post(
            "/api/auth/signup",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make
