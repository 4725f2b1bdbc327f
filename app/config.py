"""
app/config.py

Environment-driven settings for ingestion, media downloads, taxonomy terms
and the lifecycle scheduler.

Every getter is cached; tests construct the dataclasses directly instead of
going through the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, TypeVar

from db.config import load_env_files

_T = TypeVar("_T")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()


def _raw_env(name: str) -> str | None:
    """
    Stripped value of `name`, or None when unset or blank.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parsed_env(name: str, default: _T, parse: Callable[[str], _T]) -> _T:
    raw_value = _raw_env(name)
    if raw_value is None:
        return default
    try:
        return parse(raw_value)
    except ValueError:
        return default


def _get_bool_env(name: str, default: bool) -> bool:
    return _parsed_env(name, default, lambda raw: raw.lower() in _TRUE_VALUES)


def _get_int_env(name: str, default: int) -> int:
    return _parsed_env(name, default, int)


def _get_float_env(name: str, default: float) -> float:
    return _parsed_env(name, default, float)


def _get_str_env(name: str, default: str) -> str:
    return _raw_env(name) or default


def _get_optional_str_env(name: str) -> str | None:
    return _raw_env(name)


@dataclass(frozen=True)
class ContentIngestionSettings:
    """
    Runtime settings for spreadsheet content ingestion.
    """

    upload_storage_dir: str = "data/uploads"
    default_post_status: str = "pending"
    auto_position: bool = False
    highlight_min_body_chars: int = 500
    grid_max_body_chars: int = 200
    log_validation_errors: bool = True


@dataclass(frozen=True)
class MediaHTTPSettings:
    """
    HTTP behaviour for featured-image downloads.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    max_bytes: int = 10 * 1024 * 1024
    user_agent: str = "content-ingest/1.0"


@dataclass(frozen=True)
class TaxonomySettings:
    """
    Display names used when resolving categories.
    """

    status_open_term: str = "Vigente"
    status_expired_term: str = "Caducado"
    newsletter_parent_name: str = "Boletines"
    newsletter_term_format: str = "Boletín {number}"


@dataclass(frozen=True)
class SchedulerSettings:
    """
    Lifecycle scheduler settings.
    """

    jobstore_url: str | None = None
    sweep_hour: int = 1
    misfire_grace_seconds: int = 6 * 3600


@lru_cache(maxsize=1)
def get_content_ingestion_settings() -> ContentIngestionSettings:
    """
    Return cached ingestion settings from environment variables.
    """

    return ContentIngestionSettings(
        upload_storage_dir=_get_str_env("CONTENT_INGEST_UPLOAD_DIR", "data/uploads"),
        default_post_status=_get_str_env("CONTENT_INGEST_DEFAULT_POST_STATUS", "pending").lower(),
        auto_position=_get_bool_env("CONTENT_INGEST_AUTO_POSITION", False),
        highlight_min_body_chars=max(1, _get_int_env("CONTENT_INGEST_HIGHLIGHT_MIN_BODY_CHARS", 500)),
        grid_max_body_chars=max(1, _get_int_env("CONTENT_INGEST_GRID_MAX_BODY_CHARS", 200)),
        log_validation_errors=_get_bool_env("CONTENT_INGEST_LOG_VALIDATION_ERRORS", True),
    )


@lru_cache(maxsize=1)
def get_media_http_settings() -> MediaHTTPSettings:
    """
    Return featured-image download settings from environment variables.
    """

    return MediaHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("MEDIA_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("MEDIA_HTTP_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("MEDIA_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("MEDIA_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        max_bytes=max(1024, _get_int_env("MEDIA_MAX_BYTES", 10 * 1024 * 1024)),
        user_agent=_get_str_env("MEDIA_HTTP_USER_AGENT", "content-ingest/1.0"),
    )


@lru_cache(maxsize=1)
def get_taxonomy_settings() -> TaxonomySettings:
    """
    Return category naming settings from environment variables.
    """

    return TaxonomySettings(
        status_open_term=_get_str_env("TAXONOMY_STATUS_OPEN_TERM", "Vigente"),
        status_expired_term=_get_str_env("TAXONOMY_STATUS_EXPIRED_TERM", "Caducado"),
        newsletter_parent_name=_get_str_env("TAXONOMY_NEWSLETTER_PARENT", "Boletines"),
        newsletter_term_format=_get_str_env("TAXONOMY_NEWSLETTER_TERM_FORMAT", "Boletín {number}"),
    )


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """
    Return lifecycle scheduler settings from environment variables.
    """

    sweep_hour = _get_int_env("SCHEDULER_SWEEP_HOUR", 1)
    return SchedulerSettings(
        jobstore_url=_get_optional_str_env("SCHEDULER_JOBSTORE_URL"),
        sweep_hour=sweep_hour if 0 <= sweep_hour <= 23 else 1,
        misfire_grace_seconds=max(60, _get_int_env("SCHEDULER_MISFIRE_GRACE_SECONDS", 6 * 3600)),
    )
