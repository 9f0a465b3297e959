"""
Tests for environment-driven collector settings.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tx_collector.config import CollectorSettings, get_settings
from tx_collector.config.env import DEFAULT_UNWANTED_HASH_FILE
from tx_collector.core.exceptions import ConfigError

_ENV_VARS = (
    "LCD_URL",
    "LCD_TIMEOUT_SEC",
    "DB_PATH",
    "UNWANTED_HASH_FILE",
    "FETCH_CONCURRENCY",
    "ACCOUNT_TX_CHUNK_SIZE",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = get_settings()
    assert settings.lcd_url == "http://localhost:1317"
    assert settings.lcd_timeout_sec == 30.0
    assert settings.db_path == Path("collector.db")
    assert settings.unwanted_hash_file == DEFAULT_UNWANTED_HASH_FILE
    assert settings.fetch_concurrency == 16
    assert settings.account_tx_chunk_size == 5000


def test_env_overrides(clean_env, tmp_path):
    clean_env.setenv("LCD_URL", "https://lcd.terra.dev/")
    clean_env.setenv("LCD_TIMEOUT_SEC", "5.5")
    clean_env.setenv("DB_PATH", str(tmp_path / "x.db"))
    clean_env.setenv("UNWANTED_HASH_FILE", str(tmp_path / "u.json"))
    clean_env.setenv("FETCH_CONCURRENCY", "4")
    clean_env.setenv("ACCOUNT_TX_CHUNK_SIZE", "100")

    settings = get_settings()

    assert settings.lcd_url == "https://lcd.terra.dev"
    assert settings.lcd_timeout_sec == 5.5
    assert settings.db_path == tmp_path / "x.db"
    assert settings.unwanted_hash_file == tmp_path / "u.json"
    assert settings.fetch_concurrency == 4
    assert settings.account_tx_chunk_size == 100


def test_blank_values_fall_back_to_defaults(clean_env):
    clean_env.setenv("LCD_URL", "   ")
    clean_env.setenv("FETCH_CONCURRENCY", "")
    settings = get_settings()
    assert settings.lcd_url == "http://localhost:1317"
    assert settings.fetch_concurrency == 16


@pytest.mark.parametrize(
    "name, value, match",
    [
        ("FETCH_CONCURRENCY", "lots", "Invalid FETCH_CONCURRENCY"),
        ("FETCH_CONCURRENCY", "0", "FETCH_CONCURRENCY must be at least 1"),
        ("ACCOUNT_TX_CHUNK_SIZE", "-5", "ACCOUNT_TX_CHUNK_SIZE must be at least 1"),
        ("LCD_TIMEOUT_SEC", "0", "LCD_TIMEOUT_SEC must be positive"),
        ("LCD_TIMEOUT_SEC", "soon", "Invalid LCD_TIMEOUT_SEC"),
    ],
)
def test_invalid_values(clean_env, name, value, match):
    clean_env.setenv(name, value)
    with pytest.raises(ConfigError, match=match):
        get_settings()


def test_settings_are_frozen():
    settings = CollectorSettings(lcd_url="http://lcd.test")
    with pytest.raises(AttributeError):
        settings.fetch_concurrency = 2
