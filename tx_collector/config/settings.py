"""
Application settings.

Loads configuration from environment variables and .env, validates numeric
values and exposes one frozen CollectorSettings object to the collector, the
LCD client and the CLI.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from tx_collector.config.env import (
    get_db_path,
    get_lcd_url,
    get_unwanted_hash_file,
    load_collector_env,
)
from tx_collector.core.exceptions import ConfigError

DEFAULT_LCD_TIMEOUT_SEC = 30.0
DEFAULT_FETCH_CONCURRENCY = 16
DEFAULT_ACCOUNT_TX_CHUNK_SIZE = 5000


@dataclass(frozen=True)
class CollectorSettings:
    """
    Validated collector configuration.

    lcd_url: LCD node base URL, no trailing slash.
    lcd_timeout_sec: HTTP timeout for each LCD request.
    db_path: SQLite database file.
    unwanted_hash_file: JSON document holding blacklisted tx hashes.
    fetch_concurrency: Max parallel LCD fetches per collect call.
    account_tx_chunk_size: Derived account records written per storage transaction.
    """

    lcd_url: str
    lcd_timeout_sec: float = DEFAULT_LCD_TIMEOUT_SEC
    db_path: Path = Path("collector.db")
    unwanted_hash_file: Path = Path("unwanted_hashes.json")
    fetch_concurrency: int = DEFAULT_FETCH_CONCURRENCY
    account_tx_chunk_size: int = DEFAULT_ACCOUNT_TX_CHUNK_SIZE

    def __post_init__(self) -> None:
        if self.lcd_timeout_sec <= 0:
            raise ConfigError("LCD_TIMEOUT_SEC must be positive")
        if self.fetch_concurrency < 1:
            raise ConfigError("FETCH_CONCURRENCY must be at least 1")
        if self.account_tx_chunk_size < 1:
            raise ConfigError("ACCOUNT_TX_CHUNK_SIZE must be at least 1")


def _parse_number(name: str, default: float, cast: type) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return cast(default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(
            f"Invalid {name} value: expected {cast.__name__}, got '{raw}'"
        ) from e


def get_settings() -> CollectorSettings:
    """
    Return the current collector settings built from the environment.

    Raises:
        ConfigError: If a numeric variable cannot be parsed or is out of range.
    """
    load_collector_env()
    return CollectorSettings(
        lcd_url=get_lcd_url(),
        lcd_timeout_sec=_parse_number("LCD_TIMEOUT_SEC", DEFAULT_LCD_TIMEOUT_SEC, float),
        db_path=get_db_path(),
        unwanted_hash_file=get_unwanted_hash_file(),
        fetch_concurrency=_parse_number("FETCH_CONCURRENCY", DEFAULT_FETCH_CONCURRENCY, int),
        account_tx_chunk_size=_parse_number(
            "ACCOUNT_TX_CHUNK_SIZE", DEFAULT_ACCOUNT_TX_CHUNK_SIZE, int
        ),
    )
