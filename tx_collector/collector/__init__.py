"""
Block transaction collector.

Fetches a block's transactions from an LCD node, skips permanently failing
hashes, sanitizes payloads, keeps already-successful stored transactions
untouched, and writes transactions plus per-account index rows.
"""

from tx_collector.collector.collect import TransactionCollector, collect_transactions
from tx_collector.collector.fetcher import TransactionFetcher
from tx_collector.collector.persister import ACCOUNT_TX_CHUNK_SIZE, BatchPersister
from tx_collector.collector.reconciler import reconcile
from tx_collector.collector.sanitizer import sanitize_payload
from tx_collector.collector.unwanted_hashes import (
    InMemoryUnwantedHashStore,
    JsonFileUnwantedHashStore,
    UnwantedHashStore,
    get_unwanted_hash_store,
)

__all__ = [
    "ACCOUNT_TX_CHUNK_SIZE",
    "BatchPersister",
    "InMemoryUnwantedHashStore",
    "JsonFileUnwantedHashStore",
    "TransactionCollector",
    "TransactionFetcher",
    "UnwantedHashStore",
    "collect_transactions",
    "get_unwanted_hash_store",
    "reconcile",
    "sanitize_payload",
]
