"""
Domain models for database entities.

Blocks, transactions and per-account transaction index rows.
Used by the repository layer; no ORM coupling so backends stay swappable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Block:
    """Stored block. Created before collection runs; read-only to the collector."""

    id: int
    chain_id: str
    height: int
    timestamp: datetime | None = None


@dataclass
class TransactionRecord:
    """Single transaction row, unique on (chain_id, hash)."""

    chain_id: str
    hash: str
    """Upper-cased transaction hash."""
    data: dict[str, Any]
    """Sanitized LCD payload; string leaves are printable ASCII."""
    timestamp: datetime
    block_id: int | None
    """Reference to Block.id; the transaction does not own the block."""

    @property
    def identity(self) -> tuple[str, str]:
        return (self.chain_id, self.hash)

    @property
    def is_successful(self) -> bool:
        """True when the payload carries no error code."""
        return not self.data.get("code")


@dataclass(frozen=True)
class AccountTransactionRecord:
    """Attribution of one transaction to one account."""

    account: str
    chain_id: str
    hash: str
    timestamp: datetime
    block_id: int | None = None
