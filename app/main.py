"""
app/main.py

FastAPI entry point for the content ingestion service.

Startup order: environment validation and logging at import time, then in
the lifespan a database ping, a schema presence check and the lifecycle
scheduler. Any failure aborts startup instead of serving a half-configured
API.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

logger = logging.getLogger(__name__)

ALLOWED_APP_MODES = ("cloud",)
DATABASE_URL_VARIABLES = ("DATABASE_URL", "CLOUD_DATABASE_URL")


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


def _app_mode_errors() -> list[str]:
    app_mode = os.getenv("APP_MODE", "").strip().lower()
    if not app_mode:
        return [f"APP_MODE is not set. Allowed values: {list(ALLOWED_APP_MODES)}."]
    if app_mode not in ALLOWED_APP_MODES:
        return [f"APP_MODE='{app_mode}' is not valid. Allowed values: {list(ALLOWED_APP_MODES)}."]
    return []


def _database_url_errors() -> list[str]:
    if any(os.getenv(name, "").strip() for name in DATABASE_URL_VARIABLES):
        return []
    return [
        f"No database URL configured. Set {' or '.join(DATABASE_URL_VARIABLES)}; "
        "SQLite and local fallbacks are not used by the API."
    ]


def _post_status_errors() -> list[str]:
    from app.domain.content import ALLOWED_POST_STATUSES

    raw = os.getenv("CONTENT_INGEST_DEFAULT_POST_STATUS")
    if raw is None or raw.strip().lower() in ALLOWED_POST_STATUSES:
        return []
    return [
        f"CONTENT_INGEST_DEFAULT_POST_STATUS='{raw.strip()}' is not valid. "
        f"Allowed values: {sorted(ALLOWED_POST_STATUSES)}."
    ]


def _validate_env() -> None:
    """
    Check every required variable and report all problems in one error.
    """

    from db.config import load_env_files

    load_env_files()

    errors = _app_mode_errors() + _database_url_errors() + _post_status_errors()
    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
            + "\n".join(f"  - {error}" for error in errors)
        )


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# ---------------------------------------------------------------------------
# Startup checks
# ---------------------------------------------------------------------------


def _check_db() -> None:
    from sqlalchemy import text

    from db.session import session_scope

    try:
        with session_scope() as db:
            db.execute(text("SELECT 1"))
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Refuse to start until every content table exists (run `alembic upgrade head`).
    """

    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  (registers content, taxonomy and media tables)
    from db.base import Base
    from db.session import get_engine

    present = set(sa_inspect(get_engine()).get_table_names())
    missing = sorted(set(Base.metadata.tables) - present)
    if missing:
        logger.critical(
            "Content schema incomplete missing_tables=%s; run 'alembic upgrade head' and restart",
            ",".join(missing),
        )
        raise RuntimeError(f"Missing content tables: {', '.join(missing)}. Run migrations and restart.")


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _check_db()
    _check_schema()
    logger.info("Database reachable and content schema present")

    from app.scheduler.jobs import build_scheduler

    scheduler = build_scheduler()
    scheduler.start()
    application.state.scheduler = scheduler
    logger.info("Lifecycle scheduler started jobs=%s", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        application.state.scheduler = None
        scheduler.shutdown(wait=True)
        logger.info("Lifecycle scheduler stopped")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Content Ingest API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import content_ingestion_router

    application.include_router(content_ingestion_router)

    @application.get("/health")
    def healthcheck() -> dict[str, object]:
        scheduler = getattr(application.state, "scheduler", None)
        return {
            "status": "ok",
            "scheduler_running": bool(scheduler is not None and scheduler.running),
        }

    return application


app = create_app()
