"""Binary Normalizer — one canonical byte sequence for every stored shape.

The payload column has been written through more than one code path, so a
value read back may arrive as any of:

1. a native byte buffer (``bytes``, ``bytearray``, ``memoryview``)
2. a tagged buffer structure ``{"type": "Buffer", "data": [int, ...]}``
3. a bare array of byte values
4. a string that is either base64 or plain UTF-8 text

Cases are tried in that order and the first match wins. Anything else is
an ``UnrecognizedPayloadEncoding``; nothing is ever dropped or truncated.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from configvault.core.errors import CorruptedPayload, UnrecognizedPayloadEncoding


class PayloadShape(str, Enum):
    """The stored representation a payload was recognized as."""

    BYTES = "bytes"
    TAGGED_BUFFER = "tagged_buffer"
    BYTE_ARRAY = "byte_array"
    TEXT = "text"
    UNKNOWN = "unknown"


def _is_tagged_buffer(value: Any) -> bool:
    return (
        isinstance(value, Mapping)
        and value.get("type") == "Buffer"
        and _is_int_array(value.get("data"))
    )


def _is_int_array(value: Any) -> bool:
    if isinstance(value, (str, bytes, bytearray)) or not isinstance(value, Sequence):
        return False
    # bool is an int subclass but never a byte value
    return all(isinstance(v, int) and not isinstance(v, bool) for v in value)


def classify_payload(value: Any) -> PayloadShape:
    """Name the shape *value* will be normalized as, without converting it."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return PayloadShape.BYTES
    if _is_tagged_buffer(value):
        return PayloadShape.TAGGED_BUFFER
    if _is_int_array(value):
        return PayloadShape.BYTE_ARRAY
    if isinstance(value, str):
        return PayloadShape.TEXT
    return PayloadShape.UNKNOWN


def _ints_to_bytes(values: Sequence[int]) -> bytes:
    try:
        return bytes(values)
    except ValueError as exc:
        raise CorruptedPayload(
            "Stored byte array contains values outside 0..255"
        ) from exc


def _decode_text(value: str) -> bytes:
    compact = "".join(value.split())
    try:
        decoded = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        decoded = b""
    if decoded:
        return decoded
    return value.encode("utf-8")


def normalize_payload(value: Any) -> bytes:
    """Convert any historically-valid stored payload into canonical bytes.

    Normalizing canonical bytes returns them unchanged.

    Raises
    ------
    UnrecognizedPayloadEncoding
        If *value* matches none of the known shapes.
    CorruptedPayload
        If an integer array holds values that are not bytes.
    """
    shape = classify_payload(value)
    if shape is PayloadShape.BYTES:
        return bytes(value)
    if shape is PayloadShape.TAGGED_BUFFER:
        return _ints_to_bytes(value["data"])
    if shape is PayloadShape.BYTE_ARRAY:
        return _ints_to_bytes(value)
    if shape is PayloadShape.TEXT:
        return _decode_text(value)
    raise UnrecognizedPayloadEncoding(
        f"Unrecognized payload encoding: {type(value).__name__}"
    )
