"""SQLAlchemy ORM models."""

from .client import Client
from .provider_link import ProviderLink
from .user import User

__all__ = ["Client", "ProviderLink", "User"]
