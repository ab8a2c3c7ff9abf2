"""
Pytest configuration and fixtures.
"""

import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("STORAGE_BACKEND", "memory")

from api.server import create_app  # noqa: E402
from core.storage.memory import InMemoryUserRepository  # noqa: E402
from core.storage.postgres import PostgresUserRepository  # noqa: E402


def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'users.db'}"


@pytest.fixture
def memory_repository():
    """Fresh in-memory repository."""
    return InMemoryUserRepository()


@pytest_asyncio.fixture
async def sql_repository(tmp_path):
    """SQL repository on a throwaway sqlite file."""
    repository = PostgresUserRepository(async_connection_string=sqlite_url(tmp_path))
    await repository.setup()
    yield repository
    await repository.close()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def repository(request, tmp_path):
    """Repository for API tests; setup/close is left to the app lifespan."""
    if request.param == "memory":
        return InMemoryUserRepository()
    return PostgresUserRepository(async_connection_string=sqlite_url(tmp_path))


async def _client_for(repository):
    app = create_app(repository)
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as client:
            yield client


@pytest_asyncio.fixture
async def client(repository):
    """HTTP client against the app, run once per storage backend."""
    async for c in _client_for(repository):
        yield c


@pytest_asyncio.fixture
async def memory_client(memory_repository):
    """HTTP client against the app backed by the in-memory repository."""
    async for c in _client_for(memory_repository):
        yield c
