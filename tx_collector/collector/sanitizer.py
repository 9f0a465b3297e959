"""
Transaction payload sanitizer.

Walks a JSON payload and replaces every string leaf holding a character
outside printable ASCII (0x20-0x7E) with the base64 of its UTF-8 bytes.
Mappings and sequences keep their shape; numbers, booleans and None pass
through untouched. The input is never mutated.
"""

from __future__ import annotations

import base64
import re
from typing import Any, Union

JsonValue = Union[str, int, float, bool, None, list["JsonValue"], dict[str, "JsonValue"]]

_NON_PRINTABLE = re.compile(r"[^\x20-\x7e]")


def has_unicode_or_control(value: str) -> bool:
    """True when value holds any character outside 0x20-0x7E."""
    return _NON_PRINTABLE.search(value) is not None


def encode_leaf(value: str) -> str:
    # Lone surrogates become U+FFFD; paired ones are joined first.
    text = value.encode("utf-16", "surrogatepass").decode("utf-16", "replace")
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def sanitize_payload(payload: JsonValue) -> JsonValue:
    """Return a copy of payload with non-printable string leaves base64-encoded."""
    if isinstance(payload, dict):
        return {key: sanitize_payload(value) for key, value in payload.items()}
    if isinstance(payload, list):
        return [sanitize_payload(item) for item in payload]
    if isinstance(payload, str) and has_unicode_or_control(payload):
        return encode_leaf(payload)
    return payload
