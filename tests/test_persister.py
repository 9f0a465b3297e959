"""
Tests for BatchPersister: upsert semantics on SQLite and sequential chunked
writes of derived account rows.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from tx_collector.collector.persister import ACCOUNT_TX_CHUNK_SIZE, BatchPersister
from tx_collector.database.models import AccountTransactionRecord, TransactionRecord

TS = datetime(2021, 10, 5, 12, tzinfo=timezone.utc)


def _record(tx_hash: str, block_id: int | None, *, memo: str = "", ts: datetime = TS) -> TransactionRecord:
    return TransactionRecord(
        chain_id="columbus-5",
        hash=tx_hash,
        data={"txhash": tx_hash, "tx": {"value": {"memo": memo}}},
        timestamp=ts,
        block_id=block_id,
    )


class _SequentialDb:
    """Records chunk writes and fails if a chunk starts while another is open."""

    def __init__(self) -> None:
        self.upserts: list[int] = []
        self.chunks: list[int] = []
        self._open = False

    def upsert_transactions(self, records):
        self.upserts.append(len(records))
        return len(records)

    def insert_account_txs(self, records):
        assert not self._open, "chunk started before previous chunk completed"
        self._open = True
        self.chunks.append(len(records))
        self._open = False
        return len(records)


def test_chunk_size_is_5000():
    assert ACCOUNT_TX_CHUNK_SIZE == 5000


def test_derived_rows_written_in_sequential_chunks():
    """12,000 derived rows -> exactly three writes: 5000, 5000, 2000."""
    db = _SequentialDb()
    tx = _record("AAA", 1)

    def derive(record):
        return [
            AccountTransactionRecord(account=f"acct{i}", chain_id=record.chain_id, hash=record.hash, timestamp=record.timestamp)
            for i in range(12_000)
        ]

    derived = BatchPersister(db, derive).persist([tx])

    assert db.upserts == [1]
    assert db.chunks == [5000, 5000, 2000]
    assert len(derived) == 12_000


def test_derived_rows_from_all_records_flattened():
    db = _SequentialDb()
    records = [_record(f"TX{i}", 1) for i in range(3)]

    def derive(record):
        return [
            AccountTransactionRecord(account=a, chain_id=record.chain_id, hash=record.hash, timestamp=record.timestamp)
            for a in ("a1", "a2")
        ]

    derived = BatchPersister(db, derive, chunk_size=4).persist(records)

    assert db.chunks == [4, 2]
    assert [(d.hash, d.account) for d in derived] == [
        ("TX0", "a1"), ("TX0", "a2"), ("TX1", "a1"), ("TX1", "a2"), ("TX2", "a1"), ("TX2", "a2"),
    ]


def test_empty_input_writes_nothing():
    db = MagicMock()
    assert BatchPersister(db).persist([]) == []
    db.upsert_transactions.assert_not_called()
    db.insert_account_txs.assert_not_called()


def test_upsert_failure_propagates_before_derived_writes():
    db = MagicMock()
    db.upsert_transactions.side_effect = RuntimeError("db down")
    with pytest.raises(RuntimeError, match="db down"):
        BatchPersister(db).persist([_record("AAA", 1)])
    db.insert_account_txs.assert_not_called()


def test_invalid_chunk_size_rejected():
    with pytest.raises(ValueError, match="chunk_size"):
        BatchPersister(MagicMock(), chunk_size=0)


def test_upsert_twice_keeps_one_row_second_wins(db, block):
    other_block = db.upsert_block(block.chain_id, block.height + 1)
    persister = BatchPersister(db, lambda r: [])

    persister.persist([_record("AAA", block.id, memo="first")])
    later = TS + timedelta(minutes=5)
    persister.persist([_record("AAA", other_block.id, memo="second", ts=later)])

    stored = db.find_transactions([("columbus-5", "AAA")])
    assert len(stored) == 1
    assert stored[0].data["tx"]["value"]["memo"] == "second"
    assert stored[0].timestamp == later
    assert stored[0].block_id == other_block.id


def test_upsert_leaves_other_columns_untouched(db, block, tmp_path, monkeypatch):
    """created_at is set on insert and not overwritten on conflict."""
    persister = BatchPersister(db, lambda r: [])
    monkeypatch.setattr("tx_collector.database.database.time.time", lambda: 1_000)
    persister.persist([_record("AAA", block.id)])
    monkeypatch.setattr("tx_collector.database.database.time.time", lambda: 2_000)
    persister.persist([_record("AAA", block.id, memo="again")])

    conn = sqlite3.connect(tmp_path / "collector.db")
    try:
        rows = conn.execute("SELECT created_at FROM txs WHERE hash = 'AAA'").fetchall()
    finally:
        conn.close()
    assert rows == [(1_000,)]


def test_account_rows_stored_once_across_reruns(db, block):
    def derive(record):
        return [
            AccountTransactionRecord(account="acct", chain_id=record.chain_id, hash=record.hash, timestamp=record.timestamp, block_id=record.block_id)
        ]

    persister = BatchPersister(db, derive)
    persister.persist([_record("AAA", block.id)])
    persister.persist([_record("AAA", block.id)])

    assert len(db.get_account_txs(account="acct")) == 1
