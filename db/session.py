"""
db/session.py

Lazily created PostgreSQL engine and session helpers.

Nothing connects at import time: the engine is built on first use so that
tests and tooling can import repositories without a database.
"""

from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url

# (variable, default) for the connection pool.
POOL_SETTINGS: dict[str, tuple[str, int]] = {
    "pool_recycle": ("DB_POOL_RECYCLE", 1800),
    "pool_size": ("DB_POOL_SIZE", 5),
    "max_overflow": ("DB_MAX_OVERFLOW", 10),
}


def _pool_options() -> dict[str, int]:
    options: dict[str, int] = {}
    for option, (variable, default) in POOL_SETTINGS.items():
        raw = (os.getenv(variable) or "").strip()
        options[option] = int(raw) if raw.isdigit() else default
    return options


def create_db_engine() -> Engine:
    """
    Create the engine shared by ingestion runs, media follow-ups and jobs.

    PostgreSQL's default READ COMMITTED isolation is what the duplicate-title
    check relies on; it is not overridden here.
    """

    database_url = resolve_database_url()
    if not database_url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    return create_engine(
        database_url,
        echo=os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"},
        pool_pre_ping=True,
        **_pool_options(),
    )


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def SessionLocal() -> Session:
    """
    New session from the lazily built factory; usable as a `session_factory`.
    """

    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            class_=Session,
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Fresh session for scheduled jobs and startup checks, closed on exit."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
