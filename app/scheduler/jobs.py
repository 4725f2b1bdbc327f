"""
app/scheduler/jobs.py

APScheduler-based scheduler for content lifecycle jobs.

Jobs
----
  call_status_transition: one-shot, 00:00 UTC the day after a Call closes.
                           Registered by the ingestion run through
                           ``APSchedulerJobScheduler``; payload ``{"call_id": id}``.
  expired_call_sweep:     daily cron (``SCHEDULER_SWEEP_HOUR``, default 01:00 UTC).
                           Expires every open Call whose closing date has passed.

Job store
---------
Jobs are kept in a SQLAlchemy job store (``SCHEDULER_JOBSTORE_URL``, falling
back to the application database) so one-shot transitions survive restarts.
Job callables are module-level functions so the store can reference them by
import path.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from apscheduler.jobstores.base import BaseJobStore
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from app.config import get_scheduler_settings, get_taxonomy_settings
from app.domain.content import ContentKind
from app.repositories.category_repository import SqlCategoryRepository
from app.repositories.content_repository import SqlContentRepository
from app.services.lifecycle_scheduler import (
    CALL_STATUS_TRANSITION_JOB,
    sweep_expired_calls,
    transition_call_status,
)
from app.services.taxonomy_resolver import TaxonomyResolver
from db.config import resolve_database_url
from db.session import session_scope

logger = logging.getLogger(__name__)

EXPIRED_CALL_SWEEP_JOB = "expired_call_sweep"
JOBSTORE_TABLE = "apscheduler_jobs"


# ---------------------------------------------------------------------------
# Job: one-shot call status transition
# ---------------------------------------------------------------------------


def run_call_status_transition(call_id: int) -> None:
    """
    Reload one Call in a fresh session and expire it if it is due.
    """
    logger.info("Scheduler: call_status_transition starting call_id=%s", call_id)

    with session_scope() as db:
        taxonomy = TaxonomyResolver(
            categories=SqlCategoryRepository(db),
            settings=get_taxonomy_settings(),
        )
        try:
            changed = transition_call_status(
                call_id=call_id,
                repository=SqlContentRepository(db, ContentKind.CALL),
                taxonomy=taxonomy,
                now=datetime.now(tz=timezone.utc),
            )
            db.commit()
        except Exception as exc:  # noqa: BLE001
            db.rollback()
            logger.warning("Scheduler: call_status_transition failed call_id=%s: %s", call_id, exc)
            return

    logger.info("Scheduler: call_status_transition complete call_id=%s changed=%s", call_id, changed)


# ---------------------------------------------------------------------------
# Job: daily expired call sweep
# ---------------------------------------------------------------------------


def run_expired_call_sweep() -> None:
    """
    Expire every open Call whose closing date is in the past.
    """
    logger.info("Scheduler: expired_call_sweep starting")

    with session_scope() as db:
        taxonomy = TaxonomyResolver(
            categories=SqlCategoryRepository(db),
            settings=get_taxonomy_settings(),
        )
        try:
            changed = sweep_expired_calls(
                repository=SqlContentRepository(db, ContentKind.CALL),
                taxonomy=taxonomy,
                now=datetime.now(tz=timezone.utc),
            )
            db.commit()
        except Exception as exc:  # noqa: BLE001
            db.rollback()
            logger.warning("Scheduler: expired_call_sweep failed: %s", exc)
            return

    logger.info("Scheduler: expired_call_sweep complete changed=%s", changed)


JOB_FUNCTIONS: dict[str, Callable[..., None]] = {
    CALL_STATUS_TRANSITION_JOB: run_call_status_transition,
}


# ---------------------------------------------------------------------------
# Pipeline-facing adapter
# ---------------------------------------------------------------------------


def job_id_for(job_name: str, payload: dict[str, Any]) -> str:
    """
    Deterministic job id, so the same (name, payload) maps to one job.
    """
    arguments = ",".join(f"{key}={payload[key]}" for key in sorted(payload))
    return f"{job_name}:{arguments}"


class APSchedulerJobScheduler:
    """
    One-shot job scheduling backed by an APScheduler instance.
    """

    def __init__(self, scheduler: BaseScheduler, *, misfire_grace_seconds: int | None = None) -> None:
        self._scheduler = scheduler
        self._misfire_grace_seconds = misfire_grace_seconds

    def schedule_once(self, when: datetime, job_name: str, payload: dict[str, Any]) -> str:
        func = JOB_FUNCTIONS.get(job_name)
        if func is None:
            raise ValueError(f"Unknown job name: {job_name}")

        job_id = job_id_for(job_name, payload)
        options: dict[str, Any] = {}
        if self._misfire_grace_seconds is not None:
            options["misfire_grace_time"] = self._misfire_grace_seconds

        self._scheduler.add_job(
            func,
            trigger="date",
            run_date=when,
            kwargs=dict(payload),
            id=job_id,
            name=job_name,
            replace_existing=True,
            **options,
        )
        return job_id

    def is_scheduled(self, job_name: str, payload: dict[str, Any]) -> bool:
        return self._scheduler.get_job(job_id_for(job_name, payload)) is not None


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler(*, jobstores: dict[str, BaseJobStore] | None = None) -> BackgroundScheduler:
    """
    Build the scheduler and register the daily sweep.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """
    settings = get_scheduler_settings()
    if jobstores is None:
        jobstores = {
            "default": SQLAlchemyJobStore(
                url=settings.jobstore_url or resolve_database_url(),
                tablename=JOBSTORE_TABLE,
            )
        }

    scheduler = BackgroundScheduler(
        timezone="UTC",
        jobstores=jobstores,
        job_defaults={"coalesce": True, "misfire_grace_time": settings.misfire_grace_seconds},
    )
    scheduler.add_job(
        run_expired_call_sweep,
        trigger="cron",
        hour=settings.sweep_hour,
        minute=0,
        id=EXPIRED_CALL_SWEEP_JOB,
        name="Daily expired call sweep",
        replace_existing=True,
        misfire_grace_time=3600,
    )

    return scheduler
