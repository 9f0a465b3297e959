"""
Pytest fixtures for collector tests. Uses a temporary SQLite DB, an in-memory
unwanted-hash store and a fake LCD node.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from tx_collector.collector.unwanted_hashes import InMemoryUnwantedHashStore
from tx_collector.core.exceptions import LcdNotFoundError
from tx_collector.database import get_database

CHAIN_ID = "columbus-5"
SENDER = "terra1dcegyrekltswvyy0xy69ydgxn9x8x32zdtapd8"
RECIPIENT = "terra1x46rqay4d3cssq8gxxvqz8xt6nwlz4td20k38v"
VALIDATOR = "terra1jv65s3grqf6v6jl3dp4t6c9t9rk99cd8pm7utl"


def make_lcd_tx(
    tx_hash: str,
    *,
    timestamp: str = "2021-10-05T12:00:00Z",
    code: int | None = None,
    memo: str = "",
    sender: str = SENDER,
    recipient: str = RECIPIENT,
) -> dict[str, Any]:
    """Build a legacy /txs/{hash} document for a single bank send."""
    tx: dict[str, Any] = {
        "height": "4724000",
        "txhash": tx_hash.upper(),
        "raw_log": "[]",
        "logs": [
            {
                "msg_index": 0,
                "events": [
                    {
                        "type": "transfer",
                        "attributes": [
                            {"key": "recipient", "value": recipient},
                            {"key": "sender", "value": sender},
                            {"key": "amount", "value": "1000000uluna"},
                        ],
                    }
                ],
            }
        ],
        "gas_wanted": "200000",
        "gas_used": "81234",
        "tx": {
            "type": "core/StdTx",
            "value": {
                "msg": [
                    {
                        "type": "bank/MsgSend",
                        "value": {
                            "from_address": sender,
                            "to_address": recipient,
                            "amount": [{"denom": "uluna", "amount": "1000000"}],
                        },
                    }
                ],
                "fee": {"amount": [{"denom": "uusd", "amount": "30000"}], "gas": "200000"},
                "memo": memo,
            },
        },
        "timestamp": timestamp,
    }
    if code is not None:
        tx["code"] = code
    return tx


class FakeLcd:
    """
    In-process stand-in for LcdClient.

    txs maps hash -> payload or exception instance; unknown hashes raise
    LcdNotFoundError. Records every requested hash and the peak number of
    concurrent get_tx calls.
    """

    def __init__(self, delay_sec: float = 0.0) -> None:
        self.txs: dict[str, Any] = {}
        self.calls: list[str] = []
        self.max_in_flight = 0
        self.closed = False
        self._in_flight = 0
        self._delay_sec = delay_sec
        self._lock = threading.Lock()

    def get_tx(self, tx_hash: str) -> dict[str, Any]:
        with self._lock:
            self.calls.append(tx_hash)
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self._delay_sec:
                time.sleep(self._delay_sec)
            result = self.txs.get(tx_hash)
            if result is None:
                raise LcdNotFoundError(f"tx {tx_hash} not found", tx_hash=tx_hash)
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            with self._lock:
                self._in_flight -= 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database with schema."""
    return get_database(tmp_path / "collector.db")


@pytest.fixture
def block(db):
    """Stored block the collected transactions belong to."""
    return db.upsert_block(CHAIN_ID, 4724000, datetime(2021, 10, 5, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def unwanted():
    return InMemoryUnwantedHashStore()


@pytest.fixture
def fake_lcd():
    return FakeLcd()


@pytest.fixture
def lcd_tx() -> Callable[..., dict[str, Any]]:
    return make_lcd_tx


@pytest.fixture
def fake_lcd_factory():
    """FakeLcd constructor, for tests that need a slow node."""
    return FakeLcd
