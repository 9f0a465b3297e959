"""
Batch persister — upsert transactions, then write derived account rows in chunks.

The transaction upsert is one storage call. Derived rows are written in
fixed-size chunks, one chunk committed before the next starts; no storage
transaction spans chunks.
"""

from __future__ import annotations

from typing import Callable, Iterable

from tx_collector.collector.account_tx import derive_account_txs
from tx_collector.collector_logging import get_logger
from tx_collector.config.settings import DEFAULT_ACCOUNT_TX_CHUNK_SIZE
from tx_collector.database import Database
from tx_collector.database.models import AccountTransactionRecord, TransactionRecord
from tx_collector.utils.batching import chunked

logger = get_logger(__name__)

ACCOUNT_TX_CHUNK_SIZE = DEFAULT_ACCOUNT_TX_CHUNK_SIZE

AccountTxDeriver = Callable[[TransactionRecord], Iterable[AccountTransactionRecord]]


class BatchPersister:
    """Writes surviving transactions and their account index rows."""

    def __init__(
        self,
        db: Database,
        derive: AccountTxDeriver = derive_account_txs,
        *,
        chunk_size: int = ACCOUNT_TX_CHUNK_SIZE,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._db = db
        self._derive = derive
        self._chunk_size = chunk_size

    def persist(self, records: list[TransactionRecord]) -> list[AccountTransactionRecord]:
        """
        Upsert records and insert their derived account rows.

        Returns the derived rows. Storage errors propagate; chunks already
        committed stay committed.
        """
        if records:
            self._db.upsert_transactions(records)

        account_txs = [a for record in records for a in self._derive(record)]

        for index, chunk in enumerate(chunked(account_txs, self._chunk_size)):
            inserted = self._db.insert_account_txs(list(chunk))
            logger.debug(
                "account_tx_chunk_saved",
                chunk=index,
                size=len(chunk),
                inserted=inserted,
            )

        logger.info(
            "collect_txs_persisted",
            txs=len(records),
            account_txs=len(account_txs),
        )
        return account_txs
