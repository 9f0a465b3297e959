"""
LCD node client — fetch one transaction by hash.

A single attempt per hash: no retry or backoff. Every failure is raised as an
LcdError subclass so the collector can blacklist the hash and move on.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from tx_collector.collector_logging import get_logger
from tx_collector.core.exceptions import (
    LcdNotFoundError,
    LcdRequestError,
    LcdResponseError,
)
from tx_collector.lcd.models import LcdTransaction

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 30.0


def _unwrap(body: Any) -> Any:
    """Accept both the legacy /txs body and the cosmos {"tx_response": {...}} envelope."""
    if isinstance(body, dict) and isinstance(body.get("tx_response"), dict):
        return body["tx_response"]
    return body


class LcdClient:
    """
    Synchronous HTTP client for an LCD node.

    Safe to share between threads: httpx.Client pools connections and
    supports concurrent requests.
    """

    def __init__(
        self,
        lcd_url: str,
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            lcd_url: LCD base URL (e.g. http://localhost:1317).
            timeout_sec: HTTP timeout for each request.
            transport: Optional httpx transport; tests pass httpx.MockTransport.
        """
        if not lcd_url.strip():
            raise ValueError("lcd_url must be non-empty")
        self._lcd_url = lcd_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self._lcd_url,
            timeout=httpx.Timeout(timeout_sec),
            transport=transport,
        )

    def __enter__(self) -> "LcdClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get_tx(self, tx_hash: str) -> dict[str, Any]:
        """
        Fetch the transaction document for tx_hash.

        Returns:
            The raw LCD transaction payload (validated to carry txhash and timestamp).

        Raises:
            LcdNotFoundError: Node answered 404.
            LcdRequestError: Transport failure or any other non-2xx status.
            LcdResponseError: Body is not JSON or not a transaction document.
        """
        try:
            resp = self._client.get(f"/txs/{tx_hash}")
        except httpx.HTTPError as e:
            raise LcdRequestError(f"LCD request failed: {e}", tx_hash=tx_hash) from e

        if resp.status_code == 404:
            raise LcdNotFoundError(f"tx {tx_hash} not found", tx_hash=tx_hash)
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise LcdRequestError(
                f"LCD returned HTTP {resp.status_code}", tx_hash=tx_hash
            ) from e

        try:
            body = _unwrap(resp.json())
        except ValueError as e:
            raise LcdResponseError("LCD returned non-JSON body", tx_hash=tx_hash) from e
        if not isinstance(body, dict):
            raise LcdResponseError("LCD returned non-object body", tx_hash=tx_hash)
        try:
            LcdTransaction.model_validate(body)
        except ValidationError as e:
            raise LcdResponseError(
                f"LCD returned malformed tx: {e.error_count()} validation errors",
                tx_hash=tx_hash,
            ) from e
        logger.debug("lcd_tx_fetched", tx_hash=tx_hash)
        return body
