"""
Block transaction collection: fetch → reconcile → persist.

Entry point for the block ingestion orchestrator. Given the hashes of one
block, returns the transaction records actually written. Either the whole
call succeeds or it raises; there is no partial result.

Usage: python -m tx_collector.collector.collect --chain-id columbus-5 --height 123 HASH [HASH ...]
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from tx_collector.collector.account_tx import derive_account_txs
from tx_collector.collector.fetcher import TransactionFetcher, parse_tx_timestamp
from tx_collector.collector.persister import AccountTxDeriver, BatchPersister
from tx_collector.collector.reconciler import reconcile
from tx_collector.collector.unwanted_hashes import (
    UnwantedHashStore,
    get_unwanted_hash_store,
)
from tx_collector.collector_logging import bind_block, get_logger
from tx_collector.config import CollectorSettings, get_settings
from tx_collector.config.settings import (
    DEFAULT_ACCOUNT_TX_CHUNK_SIZE,
    DEFAULT_FETCH_CONCURRENCY,
)
from tx_collector.database import Database, get_database
from tx_collector.database.models import Block, TransactionRecord
from tx_collector.lcd.client import LcdClient

logger = get_logger(__name__)


class TransactionCollector:
    """
    Collects the transactions of a block into storage.

    Collaborators are injected so tests can pass an in-memory unwanted store
    and a fake LCD client.
    """

    def __init__(
        self,
        db: Database,
        lcd: LcdClient,
        unwanted: UnwantedHashStore,
        *,
        derive: AccountTxDeriver = derive_account_txs,
        fetch_concurrency: int = DEFAULT_FETCH_CONCURRENCY,
        chunk_size: int = DEFAULT_ACCOUNT_TX_CHUNK_SIZE,
        owns_lcd: bool = False,
    ) -> None:
        self._db = db
        self._lcd = lcd
        self._owns_lcd = owns_lcd
        self._fetcher = TransactionFetcher(lcd, unwanted, concurrency=fetch_concurrency)
        self._persister = BatchPersister(db, derive, chunk_size=chunk_size)

    @classmethod
    def from_settings(
        cls,
        settings: CollectorSettings | None = None,
        *,
        db: Database | None = None,
    ) -> "TransactionCollector":
        """Build a collector wired to the configured LCD node, database and unwanted-hash file."""
        settings = settings or get_settings()
        return cls(
            db or get_database(settings.db_path),
            LcdClient(settings.lcd_url, timeout_sec=settings.lcd_timeout_sec),
            get_unwanted_hash_store(settings.unwanted_hash_file),
            fetch_concurrency=settings.fetch_concurrency,
            chunk_size=settings.account_tx_chunk_size,
            owns_lcd=True,
        )

    def __enter__(self) -> "TransactionCollector":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_lcd:
            self._lcd.close()

    def collect_transactions(
        self, tx_hashes: Iterable[str], block: Block
    ) -> list[TransactionRecord]:
        """Fetch, reconcile and persist the block's transactions; return the records written."""
        log = bind_block(block.chain_id, block.height)
        fresh = self._fetcher.fetch_all(tx_hashes, block)
        existing = self._db.find_transactions(r.identity for r in fresh) if fresh else []
        surviving = reconcile(fresh, existing)
        account_txs = self._persister.persist(surviving)
        log.info(
            "collect_txs_done",
            fetched=len(fresh),
            existing=len(existing),
            txs=len(surviving),
            account_txs=len(account_txs),
        )
        return surviving


def collect_transactions(
    db: Database,
    tx_hashes: Iterable[str],
    block: Block,
    *,
    lcd: LcdClient | None = None,
    unwanted: UnwantedHashStore | None = None,
    derive: AccountTxDeriver = derive_account_txs,
    settings: CollectorSettings | None = None,
) -> list[TransactionRecord]:
    """
    Collect tx_hashes of block into db.

    Missing collaborators are built from settings (default: environment).
    An LCD client created here is closed before returning.
    """
    settings = settings or get_settings()
    owns_lcd = lcd is None
    collector = TransactionCollector(
        db,
        lcd or LcdClient(settings.lcd_url, timeout_sec=settings.lcd_timeout_sec),
        unwanted or get_unwanted_hash_store(settings.unwanted_hash_file),
        derive=derive,
        fetch_concurrency=settings.fetch_concurrency,
        chunk_size=settings.account_tx_chunk_size,
        owns_lcd=owns_lcd,
    )
    with collector:
        return collector.collect_transactions(tx_hashes, block)


def _read_hashes(args: argparse.Namespace) -> list[str]:
    hashes = [h.strip() for h in args.hashes if h.strip()]
    if args.hashes_file:
        text = Path(args.hashes_file).read_text(encoding="utf-8")
        hashes.extend(line.strip() for line in text.splitlines() if line.strip())
    return hashes


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetch and store the transactions of one block."
    )
    parser.add_argument("--chain-id", required=True, help="Chain id of the block")
    parser.add_argument("--height", required=True, type=int, help="Block height")
    parser.add_argument(
        "--block-time",
        default=None,
        help="Block timestamp (ISO 8601); stored only when the block row is new",
    )
    parser.add_argument(
        "--hashes-file",
        default=None,
        help="File with one transaction hash per line",
    )
    parser.add_argument("hashes", nargs="*", help="Transaction hashes")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint: ensure the block row exists, collect, print stored hashes."""
    args = _build_parser().parse_args(argv)
    try:
        hashes = _read_hashes(args)
        block_time: datetime | None = (
            parse_tx_timestamp(args.block_time) if args.block_time else None
        )
        settings = get_settings()
        db = get_database(settings.db_path)
        block = db.upsert_block(args.chain_id, args.height, block_time)
        logger.info(
            "collector_cli_started",
            chain_id=block.chain_id,
            height=block.height,
            hashes=len(hashes),
            lcd_url=settings.lcd_url,
        )
        with TransactionCollector.from_settings(settings, db=db) as collector:
            records = collector.collect_transactions(hashes, block)
        for record in records:
            print(record.hash)
        logger.info("collector_cli_done", stored=len(records))
        return 0
    except KeyboardInterrupt:
        logger.info("collector_cli_interrupted")
        return 1
    except Exception as e:
        logger.exception("collector_cli_fatal", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
