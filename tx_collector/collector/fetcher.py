"""
Transaction fetcher — LCD payload to sanitized TransactionRecord.

Deduplicates the hash list, drops hashes already in the unwanted store, and
fetches the rest with a bounded thread pool. A failed fetch is logged, its
hash blacklisted and the hash skipped for good; it never aborts the batch.
Only an unwanted-store failure (BlacklistStoreError) propagates.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Any, Iterable

from tx_collector.collector.sanitizer import sanitize_payload
from tx_collector.collector.unwanted_hashes import UnwantedHashStore
from tx_collector.collector_logging import get_logger
from tx_collector.config.settings import DEFAULT_FETCH_CONCURRENCY
from tx_collector.database.models import Block, TransactionRecord
from tx_collector.lcd.client import LcdClient

logger = get_logger(__name__)


def parse_tx_timestamp(raw: Any) -> datetime:
    """
    Parse the LCD timestamp field into an aware datetime.

    Accepts ISO 8601 strings (trailing Z allowed) and unix seconds. Naive
    values are taken as UTC. Raises ValueError on anything else.
    """
    if isinstance(raw, bool):
        raise ValueError(f"invalid tx timestamp: {raw!r}")
    if isinstance(raw, (int, float)):
        return datetime.fromtimestamp(raw, tz=timezone.utc)
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"invalid tx timestamp: {raw!r}")
    value = raw.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_tx_record(tx: dict[str, Any], block: Block) -> TransactionRecord:
    """Build the stored record for one LCD transaction within block."""
    return TransactionRecord(
        chain_id=block.chain_id,
        hash=str(tx["txhash"]).upper(),
        data=sanitize_payload(tx),
        timestamp=parse_tx_timestamp(tx.get("timestamp")),
        block_id=block.id,
    )


class TransactionFetcher:
    """
    Fetch and normalize the transactions of one block.

    Results come back in completion order, not input order.
    """

    def __init__(
        self,
        lcd: LcdClient,
        unwanted: UnwantedHashStore,
        *,
        concurrency: int = DEFAULT_FETCH_CONCURRENCY,
    ) -> None:
        """
        Args:
            lcd: Client exposing get_tx(hash) -> dict; raises on any failure.
            unwanted: Store of permanently skipped hashes; shared across threads.
            concurrency: Max LCD requests in flight.
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._lcd = lcd
        self._unwanted = unwanted
        self._concurrency = concurrency

    def fetch_one(self, tx_hash: str, block: Block) -> TransactionRecord | None:
        """Fetch one hash; on failure blacklist it and return None."""
        try:
            tx = self._lcd.get_tx(tx_hash)
            return build_tx_record(tx, block)
        except Exception as e:
            logger.error(
                "tx_fetch_failed",
                tx_hash=tx_hash,
                chain_id=block.chain_id,
                height=block.height,
                error_type=type(e).__name__,
                error=str(e),
            )
        self._unwanted.add(tx_hash)
        return None

    def fetch_all(self, tx_hashes: Iterable[str], block: Block) -> list[TransactionRecord]:
        """Return records for every distinct, non-blacklisted, fetchable hash."""
        unique = list(dict.fromkeys(tx_hashes))
        unwanted = self._unwanted.load()
        pending = [h for h in unique if h not in unwanted]
        if len(pending) < len(unique):
            logger.info(
                "tx_fetch_skipped_unwanted",
                chain_id=block.chain_id,
                height=block.height,
                skipped=len(unique) - len(pending),
            )
        if not pending:
            return []

        records: dict[tuple[str, str], TransactionRecord] = {}
        failed = 0
        workers = min(self._concurrency, len(pending))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self.fetch_one, h, block): h for h in pending}
            for fut in as_completed(futures):
                record = fut.result()
                if record is None:
                    failed += 1
                    continue
                if record.identity in records:
                    logger.warning(
                        "tx_fetch_duplicate_identity",
                        tx_hash=record.hash,
                        requested_hash=futures[fut],
                        chain_id=record.chain_id,
                    )
                    continue
                records[record.identity] = record

        logger.info(
            "tx_fetch_done",
            chain_id=block.chain_id,
            height=block.height,
            requested=len(pending),
            fetched=len(records),
            failed=failed,
        )
        return list(records.values())
