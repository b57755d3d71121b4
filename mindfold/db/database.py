"""
Database engine and session management.

Production reads `DATABASE_URL` or the `POSTGRES_*` settings. Test runs get
an in-memory SQLite database unless `MINDFOLD_TEST_DB` or `TEST_DATABASE_URL`
points somewhere else.
"""
import os
import sys
from typing import Any, Dict, Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import URL
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

_POSTGRES_SETTINGS = ("POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_HOST", "POSTGRES_PORT", "POSTGRES_DB")

SQLITE_MEMORY_URL = "sqlite+pysqlite:///:memory:"


def _postgres_url() -> str:
    if os.getenv("DATABASE_URL"):
        return os.environ["DATABASE_URL"]
    missing = [name for name in _POSTGRES_SETTINGS if not os.getenv(name)]
    if missing:
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")
    return URL.create(
        "postgresql",
        username=os.environ["POSTGRES_USER"],
        password=os.environ["POSTGRES_PASSWORD"],
        host=os.environ["POSTGRES_HOST"],
        port=int(os.environ["POSTGRES_PORT"]),
        database=os.environ["POSTGRES_DB"],
    ).render_as_string(hide_password=False)


def _under_pytest() -> bool:
    # pytest is imported before collection, PYTEST_CURRENT_TEST only during a test
    return (
        os.getenv("PYTEST_RUNNING") == "1"
        or "PYTEST_CURRENT_TEST" in os.environ
        or "pytest" in sys.modules
    )


def _engine_settings() -> Tuple[str, Dict[str, Any]]:
    override = os.getenv("MINDFOLD_TEST_DB") or os.getenv("TEST_DATABASE_URL")
    if override:
        if override.startswith("sqlite"):
            return override, {"connect_args": {"check_same_thread": False}}
        return override, {}
    if _under_pytest():
        # One shared connection so every session sees the same in-memory schema
        return SQLITE_MEMORY_URL, {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return _postgres_url(), {"pool_pre_ping": True}


DATABASE_URL, _engine_kwargs = _engine_settings()

engine = create_engine(DATABASE_URL, **_engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_sqlite_schema_ready = False


def _ensure_sqlite_schema() -> None:
    global _sqlite_schema_ready
    if _sqlite_schema_ready:
        return
    if engine.dialect.name == "sqlite":
        from mindfold.db import models  # circular at module load

        models.Base.metadata.create_all(bind=engine)
    _sqlite_schema_ready = True


def get_db():
    """FastAPI dependency yielding a request-scoped session."""
    _ensure_sqlite_schema()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
