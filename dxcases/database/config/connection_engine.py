"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes database initialization for the application:
- Resolves the SQLAlchemy connection URL from environment-backed settings.
- Creates the Engine (connection pool + SQL execution entry point).
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models.

Notes
-----
- `DATABASE_URL` wins when set (used for SQLite in tests and local runs);
  otherwise the URL is assembled with `URL.create(...)` from the DB_* settings.
- All ORM models must inherit from `declarativeBase` so `init_db()` can create them.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import MetaData
from dxcases.database.config.config import settings


def build_connection_url():
    """Return the URL for the configured database."""
    if settings.DATABASE_URL:
        return make_url(settings.DATABASE_URL)
    return URL.create(
        drivername=settings.DB_DRIVER_NAME,
        username=settings.DB_USERNAME,
        password=settings.DB_PASSWORD,
        host=settings.DB_HOST,
        database=settings.DB_DATABASE_NAME,
    )


connection_url = build_connection_url()
"""SQLAlchemy connection URL resolved from Settings."""

_connect_args = {"check_same_thread": False} if connection_url.get_backend_name() == "sqlite" else {}

connection_engine = create_engine(connection_url, connect_args=_connect_args, pool_pre_ping=True)
"""Engine object: Core interface to the database.
Responsible for managing connections, executing SQL, and pooling.
"""

metadata = MetaData()
"""Stores schema-level information about tables, constraints, indexes, etc. Shared across all models."""

declarativeBase = declarative_base(metadata=metadata)
"""Root class for ORM models."""


def init_db() -> None:
    """Create every table registered on `metadata` that does not exist yet."""
    # entities must be imported so their tables are registered
    from dxcases.database.entities import cases, moderation_logs  # noqa: F401

    metadata.create_all(connection_engine)
