"""
Pytest configuration and shared fixtures for unit tests.

This module provides common fixtures for unit testing:
- Mock database session and repositories (no real database)
- Portfolio item factory
- FastAPI test client with the database dependency overridden

Note: Database fixtures are not included because SQLite doesn't support
PostgreSQL schemas. For integration tests with database, use a real
PostgreSQL test database.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.api.main import app
from pokefolio.db.session import get_db
from pokefolio.repositories.activity_log_repository import ActivityLogRepository
from pokefolio.repositories.portfolio_repository import PortfolioRepository

from tests.factories import OWNER_ID, make_item


# ==================== FastAPI App & Client Fixtures ====================

@pytest.fixture
def test_app(mock_db_session):
    """FastAPI application with the database session replaced by a mock."""
    async def override_get_db():
        yield mock_db_session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """
    Create a synchronous test client for API endpoint testing.
    Use this for simple endpoint tests that don't require async.
    """
    with TestClient(test_app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"X-User-Id": OWNER_ID}


@pytest.fixture
def admin_headers():
    return {"X-User-Id": "admin-1", "X-User-Roles": "user, Admin"}


# ==================== Mock Database Fixtures ====================

@pytest.fixture
def mock_db_session():
    """Create a mock AsyncSession for database testing."""
    session = AsyncMock(spec=AsyncSession)
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    return session


@pytest.fixture
def mock_portfolio_repository():
    """Mock PortfolioRepository; ``create`` hands back the item it was given."""
    mock = MagicMock(spec=PortfolioRepository)
    mock.get_by_identity_async = AsyncMock(return_value=None)
    mock.get_owned_async = AsyncMock(return_value=None)
    mock.list_by_owner_async = AsyncMock(return_value=[])
    mock.list_recently_updated_async = AsyncMock(return_value=[])
    mock.list_all_async = AsyncMock(return_value=[])
    mock.owned_card_ids_async = AsyncMock(return_value=set())
    mock.delete_by_owner_async = AsyncMock(return_value=0)
    mock.delete = AsyncMock()

    async def create(item):
        if item.id is None:
            item.id = 1
        return item

    mock.create = AsyncMock(side_effect=create)
    return mock


@pytest.fixture
def mock_activity_logs():
    mock = MagicMock(spec=ActivityLogRepository)
    mock.log_async = AsyncMock()
    mock.find_async = AsyncMock(return_value=([], 0))
    return mock


# ==================== Sample Model Fixtures ====================

@pytest.fixture
def item_factory():
    """Factory fixture returning ``make_item``."""
    return make_item
