"""
Configuration management for the transaction collector.

Loads and validates settings from environment variables and an optional
.env file. Exposes a single source of truth for all collector configuration.
"""

from tx_collector.config.settings import CollectorSettings, get_settings

__all__ = ["CollectorSettings", "get_settings"]
