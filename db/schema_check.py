"""
db/schema_check.py

Compare the ORM metadata with a live database.

Used at startup so the API refuses to serve when migrations are behind:
every table and column declared on ``Base.metadata`` must exist. Extra
tables or columns in the database are ignored.
"""

from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

import db.models  # noqa: F401  registers ORM models on Base.metadata
from db.base import Base


def find_schema_drift(engine: Engine) -> list[str]:
    """
    Return ``"table <name>"`` / ``"column <table>.<column>"`` for every
    declared object missing from the database, sorted. Empty means in sync.
    """
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    drift: list[str] = []

    for name, table in Base.metadata.tables.items():
        if name not in existing_tables:
            drift.append(f"table {name}")
            continue
        existing_columns = {column["name"] for column in inspector.get_columns(name)}
        drift.extend(
            f"column {name}.{column.name}"
            for column in table.columns
            if column.name not in existing_columns
        )
    return sorted(drift)
