"""
Environment variable loading for the collector.

- LCD_URL: LCD node endpoint (read from .env)
- DB_PATH: SQLite database file
- UNWANTED_HASH_FILE: JSON document of permanently skipped tx hashes
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is tx_collector/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_LCD_URL = "http://localhost:1317"
DEFAULT_DB_PATH = "collector.db"
DEFAULT_UNWANTED_HASH_FILE = _PACKAGE_DIR / "collector" / "unwanted_hashes.json"


def load_collector_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides set variables."""
    load_dotenv(_ENV_PATH, override=False)


def get_env_str(name: str, default: str) -> str:
    """Return a stripped env value, or default when unset or blank."""
    raw = (os.getenv(name) or "").strip()
    return raw or default


def get_lcd_url() -> str:
    """LCD_URL from env, trailing slash removed."""
    load_collector_env()
    return get_env_str("LCD_URL", DEFAULT_LCD_URL).rstrip("/")


def get_db_path() -> Path:
    """DB_PATH from env; default collector.db in cwd."""
    load_collector_env()
    return Path(get_env_str("DB_PATH", DEFAULT_DB_PATH)).expanduser()


def get_unwanted_hash_file() -> Path:
    """UNWANTED_HASH_FILE from env; default unwanted_hashes.json beside the collector package."""
    load_collector_env()
    raw = get_env_str("UNWANTED_HASH_FILE", "")
    if raw:
        return Path(raw).expanduser()
    return DEFAULT_UNWANTED_HASH_FILE
