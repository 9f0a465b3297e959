"""
Database abstraction layer for blocks, transactions and the per-account transaction index.

SQLite implementation; designed so the backend can be swapped to PostgreSQL via a
different Backend implementation. All access goes through the abstract interface;
SQL and placeholders are backend-specific (? for SQLite, %s for PostgreSQL).
"""

from __future__ import annotations

import json
import sqlite3
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator

from tx_collector.collector_logging import get_logger
from tx_collector.core.exceptions import StorageError
from tx_collector.database.models import (
    AccountTransactionRecord,
    Block,
    TransactionRecord,
)
from tx_collector.utils.batching import chunked

logger = get_logger(__name__)

# SQLite caps bound parameters per statement; stay well below the default.
_MAX_IN_PARAMS = 500

# -----------------------------------------------------------------------------
# Schema (SQLite). For PostgreSQL: use BIGSERIAL, TIMESTAMPTZ, JSONB and %s.
# -----------------------------------------------------------------------------

SCHEMA_BLOCKS = """
CREATE TABLE IF NOT EXISTS blocks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chain_id TEXT NOT NULL,
    height INTEGER NOT NULL,
    timestamp TEXT,
    UNIQUE(chain_id, height)
);
"""

SCHEMA_TXS = """
CREATE TABLE IF NOT EXISTS txs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chain_id TEXT NOT NULL,
    hash TEXT NOT NULL,
    data TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    block_id INTEGER REFERENCES blocks(id),
    created_at INTEGER,
    UNIQUE(chain_id, hash)
);
CREATE INDEX IF NOT EXISTS ix_txs_hash ON txs(hash);
CREATE INDEX IF NOT EXISTS ix_txs_block_id ON txs(block_id);
"""

SCHEMA_ACCOUNT_TXS = """
CREATE TABLE IF NOT EXISTS account_txs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    account TEXT NOT NULL,
    chain_id TEXT NOT NULL,
    hash TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    block_id INTEGER,
    UNIQUE(chain_id, hash, account)
);
CREATE INDEX IF NOT EXISTS ix_account_txs_account ON account_txs(account);
CREATE INDEX IF NOT EXISTS ix_account_txs_account_timestamp ON account_txs(account, timestamp);
"""


# -----------------------------------------------------------------------------
# Abstract backend: swap implementation for PostgreSQL later.
# -----------------------------------------------------------------------------


class DatabaseBackend(ABC):
    """Abstract interface for persistence; implement for SQLite or PostgreSQL."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        ...

    @abstractmethod
    def upsert_block(self, chain_id: str, height: int, timestamp: datetime | None) -> Block:
        """Insert the block if missing; return the stored row."""
        ...

    @abstractmethod
    def get_block(self, chain_id: str, height: int) -> Block | None:
        """Return the block for (chain_id, height), or None."""
        ...

    @abstractmethod
    def find_transactions(
        self, identities: Iterable[tuple[str, str]]
    ) -> list[TransactionRecord]:
        """Return stored transactions matching any (chain_id, hash) identity."""
        ...

    @abstractmethod
    def upsert_transactions(self, records: list[TransactionRecord]) -> int:
        """
        Insert or update transactions in one storage transaction, keyed by (chain_id, hash).
        On conflict only timestamp, data and block_id are overwritten. Returns rows written.
        """
        ...

    @abstractmethod
    def insert_account_txs(self, records: list[AccountTransactionRecord]) -> int:
        """
        Insert account transaction rows in one storage transaction.
        Ignores duplicates (chain_id+hash+account). Returns number inserted.
        """
        ...

    @abstractmethod
    def get_account_txs(
        self,
        *,
        account: str | None = None,
        chain_id: str | None = None,
        tx_hash: str | None = None,
        limit: int = 500,
    ) -> list[AccountTransactionRecord]:
        """Return account transaction rows filtered by any of account, chain_id, hash."""
        ...


# -----------------------------------------------------------------------------
# SQLite backend
# -----------------------------------------------------------------------------


class SQLiteBackend(DatabaseBackend):
    """SQLite implementation; single file, one connection per operation."""

    def __init__(self, path: str | Path, *, timeout_sec: float = 5.0) -> None:
        self._path = Path(path)
        self._timeout_sec = timeout_sec

    def _connect(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._path), timeout=self._timeout_sec)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        conn = self._connect()
        try:
            cur = conn.cursor()
            yield cur
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"SQLite operation failed on {self._path}: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self._cursor() as cur:
            for stmt in (SCHEMA_BLOCKS, SCHEMA_TXS, SCHEMA_ACCOUNT_TXS):
                cur.executescript(stmt)

    def upsert_block(self, chain_id: str, height: int, timestamp: datetime | None) -> Block:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO blocks (chain_id, height, timestamp)
                VALUES (?, ?, ?)
                ON CONFLICT(chain_id, height) DO NOTHING
                """,
                (chain_id, height, timestamp.isoformat() if timestamp else None),
            )
            cur.execute(
                "SELECT id, chain_id, height, timestamp FROM blocks WHERE chain_id = ? AND height = ?",
                (chain_id, height),
            )
            row = cur.fetchone()
        return _row_to_block(row)

    def get_block(self, chain_id: str, height: int) -> Block | None:
        with self._cursor() as cur:
            cur.execute(
                "SELECT id, chain_id, height, timestamp FROM blocks WHERE chain_id = ? AND height = ?",
                (chain_id, height),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return _row_to_block(row)

    def find_transactions(
        self, identities: Iterable[tuple[str, str]]
    ) -> list[TransactionRecord]:
        by_chain: dict[str, set[str]] = defaultdict(set)
        for chain_id, tx_hash in identities:
            by_chain[chain_id].add(tx_hash)
        if not by_chain:
            return []
        found: list[TransactionRecord] = []
        with self._cursor() as cur:
            for chain_id, hashes in by_chain.items():
                for part in chunked(sorted(hashes), _MAX_IN_PARAMS):
                    placeholders = ",".join("?" for _ in part)
                    cur.execute(
                        f"""
                        SELECT chain_id, hash, data, timestamp, block_id
                        FROM txs WHERE chain_id = ? AND hash IN ({placeholders})
                        """,
                        [chain_id, *part],
                    )
                    found.extend(_row_to_tx(row) for row in cur.fetchall())
        return found

    def upsert_transactions(self, records: list[TransactionRecord]) -> int:
        if not records:
            return 0
        now = int(time.time())
        rows = [
            (
                r.chain_id,
                r.hash,
                json.dumps(r.data),
                r.timestamp.isoformat(),
                r.block_id,
                now,
            )
            for r in records
        ]
        with self._cursor() as cur:
            cur.executemany(
                """
                INSERT INTO txs (chain_id, hash, data, timestamp, block_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(chain_id, hash) DO UPDATE SET
                    timestamp = excluded.timestamp,
                    data = excluded.data,
                    block_id = excluded.block_id
                """,
                rows,
            )
            return cur.rowcount

    def insert_account_txs(self, records: list[AccountTransactionRecord]) -> int:
        if not records:
            return 0
        rows = [
            (r.account, r.chain_id, r.hash, r.timestamp.isoformat(), r.block_id)
            for r in records
        ]
        with self._cursor() as cur:
            cur.executemany(
                """
                INSERT OR IGNORE INTO account_txs (account, chain_id, hash, timestamp, block_id)
                VALUES (?, ?, ?, ?, ?)
                """,
                rows,
            )
            return cur.rowcount

    def get_account_txs(
        self,
        *,
        account: str | None = None,
        chain_id: str | None = None,
        tx_hash: str | None = None,
        limit: int = 500,
    ) -> list[AccountTransactionRecord]:
        sql = "SELECT account, chain_id, hash, timestamp, block_id FROM account_txs WHERE 1 = 1"
        params: list[object] = []
        if account is not None:
            sql += " AND account = ?"
            params.append(account)
        if chain_id is not None:
            sql += " AND chain_id = ?"
            params.append(chain_id)
        if tx_hash is not None:
            sql += " AND hash = ?"
            params.append(tx_hash)
        sql += " ORDER BY timestamp DESC, id DESC LIMIT ?"
        params.append(limit)
        with self._cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [
            AccountTransactionRecord(
                account=row["account"],
                chain_id=row["chain_id"],
                hash=row["hash"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
                block_id=row["block_id"],
            )
            for row in rows
        ]


def _row_to_block(row: sqlite3.Row) -> Block:
    return Block(
        id=row["id"],
        chain_id=row["chain_id"],
        height=row["height"],
        timestamp=datetime.fromisoformat(row["timestamp"]) if row["timestamp"] else None,
    )


def _row_to_tx(row: sqlite3.Row) -> TransactionRecord:
    return TransactionRecord(
        chain_id=row["chain_id"],
        hash=row["hash"],
        data=json.loads(row["data"]),
        timestamp=datetime.fromisoformat(row["timestamp"]),
        block_id=row["block_id"],
    )


# -----------------------------------------------------------------------------
# Database facade: single entrypoint; backend is swappable.
# -----------------------------------------------------------------------------


class Database:
    """
    Database abstraction: blocks, transactions, per-account transaction index.

    Uses a Backend (SQLite by default); replace with a PostgreSQL backend when upgrading.
    """

    def __init__(self, backend: DatabaseBackend) -> None:
        self._backend = backend

    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        self._backend.ensure_schema()

    # --- Blocks ---

    def upsert_block(
        self, chain_id: str, height: int, timestamp: datetime | None = None
    ) -> Block:
        return self._backend.upsert_block(chain_id, height, timestamp)

    def get_block(self, chain_id: str, height: int) -> Block | None:
        return self._backend.get_block(chain_id, height)

    # --- Transactions ---

    def find_transactions(
        self, identities: Iterable[tuple[str, str]]
    ) -> list[TransactionRecord]:
        """Return stored transactions for the given (chain_id, hash) pairs."""
        return self._backend.find_transactions(identities)

    def get_transaction(self, chain_id: str, tx_hash: str) -> TransactionRecord | None:
        found = self._backend.find_transactions([(chain_id, tx_hash.upper())])
        return found[0] if found else None

    def upsert_transactions(self, records: list[TransactionRecord]) -> int:
        return self._backend.upsert_transactions(records)

    # --- Account transactions ---

    def insert_account_txs(self, records: list[AccountTransactionRecord]) -> int:
        return self._backend.insert_account_txs(records)

    def get_account_txs(
        self,
        *,
        account: str | None = None,
        chain_id: str | None = None,
        tx_hash: str | None = None,
        limit: int = 500,
    ) -> list[AccountTransactionRecord]:
        return self._backend.get_account_txs(
            account=account, chain_id=chain_id, tx_hash=tx_hash, limit=limit
        )


def get_database(path: str | Path | None = None) -> Database:
    """
    Return a Database backed by SQLite with the schema ensured.

    path: Path to the SQLite file. Default: "collector.db" in cwd.
    """
    if path is None:
        path = Path("collector.db")
    backend = SQLiteBackend(path)
    db = Database(backend)
    db.ensure_schema()
    logger.debug("database_ready", path=str(path))
    return db
