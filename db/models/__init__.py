"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.client import Client
from db.models.documents import (
    Expense,
    ExpenseItem,
    StockEntry,
    StockEntryItem,
    StockExit,
    StockExitItem,
)
from db.models.kpi_target import KpiTarget

__all__ = [
    "Client",
    "StockExit",
    "StockExitItem",
    "StockEntry",
    "StockEntryItem",
    "Expense",
    "ExpenseItem",
    "KpiTarget",
]
