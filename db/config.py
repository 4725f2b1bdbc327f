"""
db/config.py

Database URL resolution for the API, scheduled jobs and migrations.

Values come from the process environment, topped up from `.env` and
`.env.local` at the project root. The first configured source in
`DATABASE_URL_SOURCES` wins; `CLOUD_DATABASE_URL` is only honoured when
`ENVIRONMENT` names a deployed environment.
"""

from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")
DEPLOYED_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})

# (variable, only when deployed)
DATABASE_URL_SOURCES: tuple[tuple[str, bool], ...] = (
    ("DATABASE_URL", False),
    ("CLOUD_DATABASE_URL", True),
    ("LOCAL_DATABASE_URL", False),
)


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip().removeprefix("export ").strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    """
    Copy KEY=VALUE pairs from the env files into `os.environ`.

    Variables already set in the process are never overwritten.
    """

    for filename in ENV_FILES:
        env_path = root / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def normalize_postgres_url(url: str) -> str:
    """
    Point bare postgres URLs at SQLAlchemy's psycopg 3 driver.
    """

    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix) :]
    return url


def is_deployed_environment() -> bool:
    return os.getenv("ENVIRONMENT", "local").strip().lower() in DEPLOYED_ENVIRONMENTS


def resolve_database_url() -> str:
    load_env_files()

    deployed = is_deployed_environment()
    for variable, deployed_only in DATABASE_URL_SOURCES:
        if deployed_only and not deployed:
            continue
        value = (os.getenv(variable) or "").strip()
        if value:
            return normalize_postgres_url(value)

    names = ", ".join(variable for variable, _ in DATABASE_URL_SOURCES)
    raise RuntimeError(f"No content database URL configured. Set one of: {names}.")
