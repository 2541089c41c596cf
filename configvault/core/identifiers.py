"""External identifier codec.

Callers never see raw integer ids. Every artifact id is rendered as a
16-wide zero-padded decimal string; incoming identifiers have their
leading zeros stripped and must be purely numeric.
"""

from __future__ import annotations

from configvault.core.errors import InvalidIdFormat

EXTERNAL_ID_WIDTH = 16


def to_external_id(artifact_id: int) -> str:
    """Render an internal id as its zero-padded external form."""
    if artifact_id < 0:
        raise ValueError(f"Artifact ids are non-negative, got {artifact_id}")
    return f"{artifact_id:0{EXTERNAL_ID_WIDTH}d}"


def parse_external_id(external_id: str) -> int:
    """Resolve an external identifier to the internal integer id.

    Raises ``InvalidIdFormat`` before any store lookup when the value is
    empty or contains anything other than ASCII digits. An all-zero value
    resolves to ``0``, which the store never assigns.
    """
    candidate = (external_id or "").strip()
    if not candidate or not (candidate.isascii() and candidate.isdigit()):
        raise InvalidIdFormat(f"Invalid id format: {external_id!r}")
    remainder = candidate.lstrip("0")
    return int(remainder) if remainder else 0
