"""Pytest configuration and fixtures."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.helpers import get_client_registry
from api.metrics import get_aggregation_service
from database import Base, get_db
from integrations.provider_protocol import Platform
from main import app
from services.aggregation_service import AggregationService
from services.client_registry import ClientRegistry
from services.token_service import TokenService, get_token_service
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import api_client, linked_user, user  # noqa: F401
from tests.fixtures.mocks import MockProviderClient, MockProviderRegistry

# Keeps password hashing fast in tests
TEST_PASSWORD_ITERATIONS = 1_000


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="token_service")
def token_service_fixture():
    """Token service with a fixed secret."""
    return TokenService("test-secret-0123456789abcdef0123456789", ttl=timedelta(minutes=5))


@pytest.fixture(name="client_registry")
def client_registry_fixture():
    """Client registry with cheap password hashing."""
    return ClientRegistry(password_iterations=TEST_PASSWORD_ITERATIONS)


@pytest.fixture(name="mock_provider_registry")
def mock_provider_registry_fixture():
    """Registry with a mock client answering for every platform."""
    return MockProviderRegistry(
        {
            Platform.FITBIT: MockProviderClient(Platform.FITBIT, value=2020),
            Platform.GOOGLE: MockProviderClient(Platform.GOOGLE, value=500),
            Platform.STRAVA: MockProviderClient(Platform.STRAVA, value=None),
        }
    )


@pytest.fixture(name="client")
def client_fixture(db, token_service, client_registry, mock_provider_registry):
    """Create a test client with the test database and mock platforms."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_aggregation_service():
        return AggregationService(provider_registry=mock_provider_registry, join_timeout=2.0)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_service] = lambda: token_service
    app.dependency_overrides[get_client_registry] = lambda: client_registry
    app.dependency_overrides[get_aggregation_service] = override_get_aggregation_service
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
