"""
Application-level exceptions.

Fetch failures (LcdError and subclasses) are recovered inside the collector:
the hash is blacklisted and skipped. Every other CollectorError aborts the
whole collect call and propagates to the caller.
"""

from __future__ import annotations


class CollectorError(Exception):
    """Base exception for all collector failures."""


class ConfigError(CollectorError):
    """Raised for invalid environment configuration."""


class LcdError(CollectorError):
    """Raised when a transaction cannot be fetched from the LCD node."""

    def __init__(self, message: str, *, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class LcdRequestError(LcdError):
    """Transport failure or unexpected HTTP status from the LCD node."""


class LcdNotFoundError(LcdError):
    """The LCD node does not know the transaction (HTTP 404)."""


class LcdResponseError(LcdError):
    """The LCD node answered with a body that is not a valid transaction."""


class BlacklistStoreError(CollectorError):
    """The unwanted-hash document cannot be read or durably written."""


class ReconciliationInvariantError(CollectorError):
    """
    A stored successful transaction has no freshly fetched counterpart.

    Existing records are looked up from the fresh records' identities, so this
    signals a consistency bug rather than a data condition.
    """

    def __init__(self, chain_id: str, tx_hash: str) -> None:
        super().__init__(
            f"existing successful tx {tx_hash} on {chain_id} has no fetched counterpart"
        )
        self.chain_id = chain_id
        self.tx_hash = tx_hash


class StorageError(CollectorError):
    """Raised when a database read or write fails."""
