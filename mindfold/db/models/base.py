"""
Shared SQLAlchemy base and helpers.
"""
import uuid  # noqa: F401 - for default factories elsewhere
from sqlalchemy.orm import declarative_base
from datetime import datetime, UTC

# SQLite compilation shims for PostgreSQL-only types when running tests
# under SQLite.
from .. import sqlite_compiler_shims  # noqa: F401


def now_utc():
    """Return an aware UTC datetime for default/updated timestamps."""
    return datetime.now(UTC)


Base = declarative_base()
