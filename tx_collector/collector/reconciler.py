"""
Reconcile freshly fetched transactions against stored ones.

A stored transaction that succeeded is final: its fresh counterpart is dropped
so a refetch never overwrites it. Stored failures, and transactions never
seen before, pass through and get upserted.
"""

from __future__ import annotations

from typing import Iterable

from tx_collector.collector_logging import get_logger
from tx_collector.core.exceptions import ReconciliationInvariantError
from tx_collector.database.models import TransactionRecord

logger = get_logger(__name__)


def reconcile(
    fresh_records: list[TransactionRecord],
    existing_records: Iterable[TransactionRecord],
) -> list[TransactionRecord]:
    """
    Return the fresh records that should be written.

    existing_records must come from a lookup of the fresh records' identities.

    Raises:
        ReconciliationInvariantError: A successful existing record has no fresh counterpart.
    """
    fresh_identities = {r.identity for r in fresh_records}
    superseded: set[tuple[str, str]] = set()
    for existing in existing_records:
        if not existing.is_successful:
            continue
        if existing.identity not in fresh_identities:
            raise ReconciliationInvariantError(existing.chain_id, existing.hash)
        logger.info(
            "collect_txs_existing_success",
            tx_hash=existing.hash,
            chain_id=existing.chain_id,
        )
        superseded.add(existing.identity)
    return [r for r in fresh_records if r.identity not in superseded]
