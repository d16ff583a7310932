"""Database setup and session management."""

import logging
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def _is_memory_url(database_url: str) -> bool:
    """Return True for ``sqlite://`` and ``sqlite:///:memory:`` URLs."""
    if not database_url.startswith("sqlite"):
        return False
    path_part = database_url.split("///", 1)[-1] if "///" in database_url else ""
    return not path_part or path_part == ":memory:"


@lru_cache
def get_engine():
    """Get or create the database engine (cached).

    SQLite connections are shared across the worker threads that FastAPI
    runs sync handlers on, so ``check_same_thread`` is disabled.  An
    in-memory database uses a single static connection so every session
    sees the same tables.
    """
    connect_args = {}
    engine_kwargs = {}
    database_url = settings.DATABASE_URL

    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    if _is_memory_url(database_url):
        engine_kwargs["poolclass"] = StaticPool

    engine = create_engine(
        database_url,
        connect_args=connect_args,
        echo=False,
        **engine_kwargs,
    )
    logger.debug("Database engine created for %s", engine.url.render_as_string(hide_password=True))
    return engine


def get_session_local():
    """Get a sessionmaker bound to the engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def init_db() -> None:
    """Create any missing tables."""
    # Import models so their tables are registered on Base.metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def get_db():
    """Dependency that provides a database session.

    Transaction conventions:
    - Default: services ``flush()``, API layer ``commit()``
    - Exceptions that commit internally:
      - ``ClientRegistry``: commits inside its write lock so the name
        uniqueness check and the insert are atomic
    """
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
