"""
tests/conftest.py

In-memory SQLite session with the full ORM schema created through
``Base.metadata``.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401  registers ORM models on Base.metadata
from db.base import Base


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    """Fresh in-memory database per test; usable from TestClient threads."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = factory()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
