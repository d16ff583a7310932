"""Test fixtures and sample data."""
import pytest
from sqlalchemy.orm import Session

from integrations.provider_protocol import Platform
from models import Client, User
from services.client_registry import hash_password
from services.user_service import UserService


def create_client(db: Session, name: str = "test-app", password: str = "hunter2") -> Client:
    """Insert a registered client directly, bypassing the registry."""
    client = Client(name=name, password_hash=hash_password(password, iterations=1_000))
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


def link_platforms(db: Session, user_id: int, platforms: list[Platform]) -> None:
    """Link a user to each platform with a placeholder token."""
    for platform in platforms:
        UserService.link_provider(db, user_id, platform, f"{platform.value}-token")
    db.commit()


@pytest.fixture
def user(db: Session) -> User:
    """A user with no linked platforms."""
    u = User(id=1)
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def linked_user(db: Session) -> User:
    """A user linked to all three platforms."""
    link_platforms(db, 1, [Platform.FITBIT, Platform.GOOGLE, Platform.STRAVA])
    return db.get(User, 1)


@pytest.fixture
def api_client(db: Session) -> Client:
    """A registered API client (name ``test-app``, password ``hunter2``)."""
    return create_client(db)
