"""
db/session.py

Engine and session lifecycle for the stock database.

Nothing connects at import time: the engine is built on first use from
:func:`db.config.resolve_database_url` and :func:`db.config.database_settings`,
and :func:`reset_engine` drops it again (application shutdown, tests that
change the environment).
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from db.config import DatabaseSettings, database_settings, is_postgres_url, resolve_database_url

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def create_db_engine(
    database_url: str | None = None,
    settings: DatabaseSettings | None = None,
) -> Engine:
    """
    Build a pooled PostgreSQL engine.

    Raises
    ------
    RuntimeError
        No URL is configured, or the URL is not a PostgreSQL one.
    """
    url = database_url or resolve_database_url()
    if not is_postgres_url(url):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    options = settings or database_settings()
    engine = create_engine(
        url,
        echo=options.echo,
        pool_pre_ping=True,
        pool_size=options.pool_size,
        max_overflow=options.max_overflow,
        pool_recycle=options.pool_recycle,
    )
    logger.info(
        "Database engine created for %s (pool_size=%d, max_overflow=%d)",
        make_url(url).render_as_string(hide_password=True),
        options.pool_size,
        options.max_overflow,
    )
    return engine


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def reset_engine() -> None:
    """Dispose the shared engine; the next call re-reads the environment."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None


def SessionLocal() -> Session:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Session for work outside a request: committed on success, rolled back
    on any exception, always closed.
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency; request handlers decide when to commit."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
