"""
Derive per-account index rows from a stored transaction.

Every bech32 account address found in the transaction messages or in the
event attributes of its logs yields one AccountTransactionRecord. Pure: no
I/O, no mutation of the input.
"""

from __future__ import annotations

import re
from typing import Any, Iterator

from tx_collector.database.models import AccountTransactionRecord, TransactionRecord

# hrp + "1" + 20-byte (38 chars) or 32-byte (58 chars) data part
_ACCOUNT_RE = re.compile(r"^[a-z]{1,20}1[02-9ac-hj-np-z]{38}(?:[02-9ac-hj-np-z]{20})?$")


def is_account_address(value: Any) -> bool:
    return isinstance(value, str) and _ACCOUNT_RE.match(value) is not None


def _string_leaves(node: Any) -> Iterator[str]:
    if isinstance(node, dict):
        for value in node.values():
            yield from _string_leaves(value)
    elif isinstance(node, list):
        for item in node:
            yield from _string_leaves(item)
    elif isinstance(node, str):
        yield node


def _messages(data: dict[str, Any]) -> Any:
    tx = data.get("tx")
    if not isinstance(tx, dict):
        return []
    value = tx.get("value")
    if isinstance(value, dict):
        return value.get("msg") or []
    # cosmos-sdk body layout
    body = tx.get("body")
    if isinstance(body, dict):
        return body.get("messages") or []
    return []


def _event_attribute_values(data: dict[str, Any]) -> Iterator[Any]:
    logs = data.get("logs")
    if not isinstance(logs, list):
        return
    for log in logs:
        if not isinstance(log, dict):
            continue
        for event in log.get("events") or []:
            if not isinstance(event, dict):
                continue
            for attr in event.get("attributes") or []:
                if isinstance(attr, dict):
                    yield attr.get("value")


def extract_accounts(data: dict[str, Any]) -> list[str]:
    """Sorted distinct account addresses referenced by the transaction."""
    found = {s for s in _string_leaves(_messages(data)) if is_account_address(s)}
    found.update(v for v in _event_attribute_values(data) if is_account_address(v))
    return sorted(found)


def derive_account_txs(tx: TransactionRecord) -> list[AccountTransactionRecord]:
    return [
        AccountTransactionRecord(
            account=account,
            chain_id=tx.chain_id,
            hash=tx.hash,
            timestamp=tx.timestamp,
            block_id=tx.block_id,
        )
        for account in extract_accounts(tx.data)
    ]
