"""
Database abstraction layer — blocks, transactions, per-account transaction index.

Uses SQLite via Database and get_database(); backend is swappable for PostgreSQL.
"""

from tx_collector.database.database import (
    Database,
    DatabaseBackend,
    SQLiteBackend,
    get_database,
)
from tx_collector.database.models import (
    AccountTransactionRecord,
    Block,
    TransactionRecord,
)

__all__ = [
    "AccountTransactionRecord",
    "Block",
    "Database",
    "DatabaseBackend",
    "SQLiteBackend",
    "TransactionRecord",
    "get_database",
]
