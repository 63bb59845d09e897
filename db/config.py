"""
db/config.py

Environment-driven database configuration for the stock-management backend.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_FILENAMES: tuple[str, ...] = (".env", ".env.local")
CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})

_POSTGRES_PREFIXES = ("postgres://", "postgresql://")
_PSYCOPG_PREFIX = "postgresql+psycopg://"
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    if line.startswith("export "):
        line = line[len("export "):]
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files(project_root: Path | None = None) -> list[Path]:
    """
    Load KEY=VALUE pairs from ``.env`` and ``.env.local`` in the project root.

    Variables already present in the process environment win. Returns the
    files that were actually read.
    """
    root = project_root or Path(__file__).resolve().parents[1]
    loaded: list[Path] = []
    for filename in ENV_FILENAMES:
        env_path = root / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is None:
                continue
            key, value = parsed
            os.environ.setdefault(key, value)
        loaded.append(env_path)
    if loaded:
        logger.debug("Loaded environment files: %s", ", ".join(str(p) for p in loaded))
    return loaded


def normalize_postgres_url(url: str) -> str:
    """
    Rewrite ``postgres://`` and ``postgresql://`` URLs to the psycopg 3 driver.

    Hosted Postgres providers hand out the bare scheme; SQLAlchemy would
    otherwise pick psycopg2, which is not a dependency.
    """
    for prefix in _POSTGRES_PREFIXES:
        if url.startswith(prefix):
            return _PSYCOPG_PREFIX + url[len(prefix):]
    return url


def is_postgres_url(url: str) -> bool:
    return url.startswith("postgresql")


def resolve_database_url() -> str:
    """
    Resolve the database URL from the environment.

    Priority:
    1) DATABASE_URL
    2) CLOUD_DATABASE_URL when ENVIRONMENT is prod/production/staging/cloud
    3) LOCAL_DATABASE_URL

    Raises
    ------
    RuntimeError
        None of the variables is set.
    """
    load_env_files()

    direct_url = os.getenv("DATABASE_URL")
    if direct_url:
        return normalize_postgres_url(direct_url)

    environment = os.getenv("ENVIRONMENT", "local").strip().lower()
    cloud_url = os.getenv("CLOUD_DATABASE_URL")
    if environment in CLOUD_ENVIRONMENTS and cloud_url:
        return normalize_postgres_url(cloud_url)

    local_url = os.getenv("LOCAL_DATABASE_URL")
    if local_url:
        return normalize_postgres_url(local_url)

    raise RuntimeError(
        "No database URL configured. Set DATABASE_URL, or configure "
        "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )


# ---------------------------------------------------------------------------
# Engine tuning
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """
    Connection pool and logging options for the shared engine.

    Read from ``SQL_ECHO``, ``DB_POOL_SIZE``, ``DB_MAX_OVERFLOW`` and
    ``DB_POOL_RECYCLE``; unset or malformed values keep the defaults.
    """

    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle: int = 1800


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_count(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer.", name, value)
        return default
    return parsed if parsed >= 0 else default


def database_settings() -> DatabaseSettings:
    load_env_files()
    defaults = DatabaseSettings()
    return DatabaseSettings(
        echo=_env_flag("SQL_ECHO", defaults.echo),
        pool_size=_env_count("DB_POOL_SIZE", defaults.pool_size),
        max_overflow=_env_count("DB_MAX_OVERFLOW", defaults.max_overflow),
        pool_recycle=_env_count("DB_POOL_RECYCLE", defaults.pool_recycle),
    )
