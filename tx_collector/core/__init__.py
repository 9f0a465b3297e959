"""
Core shared definitions: exception hierarchy for the collector.
"""

from tx_collector.core.exceptions import (
    BlacklistStoreError,
    CollectorError,
    ConfigError,
    LcdError,
    LcdNotFoundError,
    LcdRequestError,
    LcdResponseError,
    ReconciliationInvariantError,
    StorageError,
)

__all__ = [
    "BlacklistStoreError",
    "CollectorError",
    "ConfigError",
    "LcdError",
    "LcdNotFoundError",
    "LcdRequestError",
    "LcdResponseError",
    "ReconciliationInvariantError",
    "StorageError",
]
