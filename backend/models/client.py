"""Client model - a registered API consumer."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from database import Base


class Client(Base):
    """An API client that authenticates with a name and password.

    Clients are distinct from users: a client is the application calling
    this service, a user is the person whose fitness data is aggregated.
    Ids come from an AUTOINCREMENT column so they are never reused.
    """

    __tablename__ = "clients"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)  # pbkdf2_sha256$iterations$salt$hash
    callback = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name={self.name!r})>"
