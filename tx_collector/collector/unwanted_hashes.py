"""
Unwanted transaction hashes: durable, append-only skip list.

A hash lands here when its LCD fetch failed; the collector never requests it
again. The file-backed store keeps the document shape
{"unwantedHashes": [...]} and is created empty on first access.

Reads may happen from any fetch thread; writes are serialized under one lock
and reach disk (fsync + atomic replace) before add() returns.
"""

from __future__ import annotations

import json
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from tx_collector.collector_logging import get_logger
from tx_collector.config.env import get_unwanted_hash_file
from tx_collector.core.exceptions import BlacklistStoreError

logger = get_logger(__name__)

DOCUMENT_KEY = "unwantedHashes"


class UnwantedHashStore(ABC):
    """Interface for the unwanted-hash set; swap in InMemoryUnwantedHashStore for tests."""

    @abstractmethod
    def load(self) -> set[str]:
        """Return every blacklisted hash, creating an empty store if none exists."""
        ...

    @abstractmethod
    def add(self, tx_hash: str) -> None:
        """Blacklist tx_hash. No-op when already present; otherwise persisted before returning."""
        ...

    def __contains__(self, tx_hash: object) -> bool:
        return tx_hash in self.load()


class InMemoryUnwantedHashStore(UnwantedHashStore):
    """Process-local store; nothing survives the process."""

    def __init__(self, initial: set[str] | list[str] | None = None) -> None:
        self._hashes: list[str] = list(dict.fromkeys(initial or []))
        self._lock = threading.Lock()

    def load(self) -> set[str]:
        with self._lock:
            return set(self._hashes)

    def add(self, tx_hash: str) -> None:
        with self._lock:
            if tx_hash in self._hashes:
                return
            self._hashes.append(tx_hash)
        logger.info("unwanted_hash_added", tx_hash=tx_hash, store="memory")

    @property
    def hashes(self) -> list[str]:
        """Hashes in insertion order."""
        with self._lock:
            return list(self._hashes)


class JsonFileUnwantedHashStore(UnwantedHashStore):
    """JSON-document store; loaded lazily on first access and cached for the process."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._ordered: list[str] | None = None
        self._index: set[str] = set()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> set[str]:
        with self._lock:
            self._ensure_loaded()
            return set(self._index)

    def add(self, tx_hash: str) -> None:
        with self._lock:
            ordered = self._ensure_loaded()
            if tx_hash in self._index:
                return
            updated = [*ordered, tx_hash]
            self._write(updated)
            self._ordered = updated
            self._index.add(tx_hash)
        logger.info("unwanted_hash_added", tx_hash=tx_hash, path=str(self._path))

    def _ensure_loaded(self) -> list[str]:
        """Read the document once; caller must hold the lock."""
        if self._ordered is not None:
            return self._ordered
        if not self._path.exists():
            self._write([])
            logger.info("unwanted_hash_store_created", path=str(self._path))
        ordered = self._read()
        self._ordered = ordered
        self._index = set(ordered)
        return ordered

    def _read(self) -> list[str]:
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise BlacklistStoreError(
                f"Cannot read unwanted hash file {self._path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise BlacklistStoreError(
                f"Unwanted hash file {self._path} must hold a JSON object"
            )
        hashes = data.get(DOCUMENT_KEY) or []
        if not isinstance(hashes, list):
            raise BlacklistStoreError(
                f"'{DOCUMENT_KEY}' in {self._path} must be a list"
            )
        return list(dict.fromkeys(str(h) for h in hashes if h))

    def _write(self, hashes: list[str]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump({DOCUMENT_KEY: hashes}, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise BlacklistStoreError(
                f"Cannot write unwanted hash file {self._path}: {e}"
            ) from e


_stores: dict[Path, JsonFileUnwantedHashStore] = {}
_stores_lock = threading.Lock()


def get_unwanted_hash_store(path: str | Path | None = None) -> JsonFileUnwantedHashStore:
    """
    Return the process-wide store for path (default: UNWANTED_HASH_FILE).

    One instance per resolved path, so every collector in the process shares
    the same writer lock.
    """
    resolved = Path(path or get_unwanted_hash_file()).expanduser().resolve()
    with _stores_lock:
        store = _stores.get(resolved)
        if store is None:
            store = JsonFileUnwantedHashStore(resolved)
            _stores[resolved] = store
        return store
