"""Database session configuration."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from expo_poll.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import expo_poll.models  # noqa: E402,F401


def timeout_connect_args(database_url: str, timeout_seconds: float) -> dict[str, Any]:
    """Return driver arguments that bound how long a store call may block.

    SQLite waits on a locked database for at most ``timeout_seconds``;
    PostgreSQL gets the same bound as connect timeout and statement timeout.
    Other dialects are left to their driver defaults.
    """
    backend = make_url(database_url).get_backend_name()
    if backend == "sqlite":
        return {"timeout": timeout_seconds, "check_same_thread": False}
    if backend == "postgresql":
        millis = int(timeout_seconds * 1000)
        return {
            "connect_timeout": max(1, int(timeout_seconds)),
            "options": f"-c statement_timeout={millis}",
        }
    return {}


def engine_options(database_url: str, timeout_seconds: float) -> dict[str, Any]:
    """Return ``create_engine`` keyword arguments for the configured store."""
    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "connect_args": timeout_connect_args(database_url, timeout_seconds),
    }
    # SQLite may run on a singleton pool that rejects a checkout timeout.
    if make_url(database_url).get_backend_name() != "sqlite":
        options["pool_timeout"] = timeout_seconds
    return options


engine = create_engine(
    settings.effective_database_url,
    echo=settings.sql_debug,
    **engine_options(settings.effective_database_url, settings.database_timeout_seconds),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)
