"""
Data models for LCD node responses.

Only the fields the collector relies on are declared; every other field of
the transaction payload is kept as-is so the stored record holds the full
LCD document.
"""

from __future__ import annotations

from typing import Annotated, Union

from pydantic import BaseModel, ConfigDict, Field

# ISO 8601 string on current nodes; some archives serve unix seconds.
TxTimestamp = Union[Annotated[str, Field(min_length=1)], int, float]


class LcdTransaction(BaseModel):
    """Transaction document returned by GET /txs/{hash}."""

    model_config = ConfigDict(extra="allow")

    txhash: str = Field(..., min_length=1)
    timestamp: TxTimestamp
    height: str | int | None = None
    code: int | None = None
