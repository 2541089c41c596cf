"""Import of the original JSON-file database into the SQLite store.

The earlier server kept every upload in a single document::

    {
        "entries": [
            {"id": "lx3k9...", "name": ..., "description": ..., "category": ...,
             "uploaderName": ..., "uploadDate": "2024-05-01T12:00:00.000Z",
             "dataSize": ..., "pointCount": ..., "configName": ...,
             "version": "0.3.5", "data": "{...}"},
            ...
        ],
        "metadata": {"created": ..., "version": "1.0.0"}
    }

Entries get fresh integer ids; the original string id is kept only in the
returned ``ImportReport``. Entries without a version were created outside
the versioned-update flow and get ``DEFAULT_UPLOAD_VERSION``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from configvault.core.binary import normalize_payload
from configvault.core.entry_store import EntryStore
from configvault.core.errors import ValidationError, VaultError
from configvault.core.identifiers import to_external_id
from configvault.models.artifacts import ArtifactUpload
from configvault.models.versioning import DEFAULT_UPLOAD_VERSION

logger = logging.getLogger(__name__)


class SkippedEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    legacy_id: str | None = None
    reason: str


class ImportReport(BaseModel):
    """Outcome of a legacy import: id mapping plus skipped entries."""

    model_config = ConfigDict(frozen=True)

    source: str
    imported: dict[str, str] = Field(default_factory=dict)  # legacy id -> external id
    skipped: list[SkippedEntry] = Field(default_factory=list)

    @property
    def imported_count(self) -> int:
        return len(self.imported)


class LegacyImportError(RuntimeError):
    """Raised when the legacy database file cannot be read at all."""


def parse_legacy_date(value: Any) -> datetime | None:
    """Parse a JavaScript ``toISOString()`` timestamp, or return None."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def legacy_payload(data: Any) -> bytes:
    """Payload bytes for a legacy ``data`` field.

    The original server stored the JSON text itself, so strings are taken
    verbatim; serialized buffers and byte arrays go through the normalizer.
    """
    if data is None:
        raise ValidationError("Missing required field: data")
    if isinstance(data, str):
        return data.encode("utf-8")
    return normalize_payload(data)


def load_legacy_entries(path: Path) -> list[Any]:
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise LegacyImportError(f"Cannot read legacy database {path}: {exc}") from exc
    entries = document.get("entries") if isinstance(document, dict) else None
    if not isinstance(entries, list):
        raise LegacyImportError(f"Legacy database {path} has no 'entries' list")
    return entries


def import_legacy_database(store: EntryStore, path: Path) -> ImportReport:
    """Copy every valid legacy entry into *store* in one transaction.

    Invalid entries are skipped and reported, never partially imported.
    """
    entries = load_legacy_entries(path)
    imported: dict[str, str] = {}
    skipped: list[SkippedEntry] = []

    with store.database.transaction() as conn:
        for index, raw in enumerate(entries):
            if not isinstance(raw, dict):
                skipped.append(SkippedEntry(index=index, reason="entry is not an object"))
                continue
            legacy_id = str(raw["id"]) if raw.get("id") else None

            fields = {k: v for k, v in raw.items() if k != "data" and v is not None}
            fields.setdefault("version", DEFAULT_UPLOAD_VERSION)
            try:
                metadata = ArtifactUpload.model_validate(fields)
                payload = legacy_payload(raw.get("data"))
                uploaded_at = parse_legacy_date(raw.get("uploadDate"))
                artifact_id, _ = store.create(
                    metadata, payload, uploaded_at=uploaded_at, conn=conn
                )
            except (VaultError, pydantic.ValidationError) as exc:
                reason = str(exc).splitlines()[0]
                logger.warning("Skipping legacy entry %d (%s): %s", index, legacy_id, reason)
                skipped.append(SkippedEntry(index=index, legacy_id=legacy_id, reason=reason))
                continue

            imported[legacy_id or f"#{index}"] = to_external_id(artifact_id)

    logger.info(
        "Imported %d legacy entries from %s (%d skipped)",
        len(imported), path, len(skipped),
    )
    return ImportReport(source=str(path), imported=imported, skipped=skipped)
