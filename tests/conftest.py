"""Shared pytest fixtures."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest

from globetrotter.config import Config
from globetrotter.core.modules.session.tokens import TokenIssuer
from globetrotter.core.modules.user.models import User, UserRole

TEST_SECRET = "test-secret-key"


@pytest.fixture
def config():
    """Configuration with every required setting filled in."""
    return Config(
        database_url="mongodb://localhost:27017/globetrotter_test",
        host="127.0.0.1",
        port=3100,
        debug=True,
        jwt_secret=TEST_SECRET,
        frontend_url="https://globetrotter.test",
        maintenance_enabled=False,
    )


@pytest.fixture
def token_issuer():
    return TokenIssuer(TEST_SECRET)


@pytest.fixture
def mock_user():
    """Create an active, verified user with an empty session ledger."""
    return User(
        id=UUID("87654321-4321-8765-4321-876543218765"),
        email="ada@example.com",
        password_hash="$2b$12$hashed_password_here",
        first_name="Ada",
        last_name="Lovelace",
        is_email_verified=True,
    )


@pytest.fixture
def mock_admin():
    return User(
        id=UUID("12345678-1234-5678-1234-567812345678"),
        email="admin@example.com",
        password_hash="$2b$12$hashed_password_here",
        first_name="Grace",
        last_name="Hopper",
        role=UserRole.ADMIN,
    )


@pytest.fixture
def mock_core(config, token_issuer):
    """Stand-in for Core: real token issuer and config, services replaced by mocks."""
    user_service = AsyncMock()
    user_service.verify_password = MagicMock(return_value=True)
    return SimpleNamespace(
        config=config,
        tokens=token_issuer,
        services=SimpleNamespace(
            user=user_service,
            session=AsyncMock(),
            mail=AsyncMock(),
            trip=AsyncMock(),
        ),
    )


@pytest.fixture
def users_collection():
    """Mocked ``users`` collection with neutral write results."""
    collection = AsyncMock()
    collection.update_one.return_value = MagicMock(matched_count=1, modified_count=1)
    collection.update_many.return_value = MagicMock(matched_count=0, modified_count=0)
    return collection


@pytest.fixture
def mock_database(users_collection):
    database = MagicMock()
    database.get_collection.return_value = users_collection
    return database
