"""User model - a person whose fitness data is aggregated."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import relationship

from database import Base


class User(Base):
    """A user with zero or more linked fitness platforms."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    provider_links = relationship(
        "ProviderLink",
        back_populates="user",
        cascade="all, delete-orphan",
    )
