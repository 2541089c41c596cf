"""Changelog entry model — one row per successful payload update."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class ChangelogEntry(BaseModel):
    """A single version transition of an artifact.

    ``entry_id`` is the ledger's insertion-order key; synthetic entries
    reconstructed from artifact fields have ``entry_id=None``.
    """

    model_config = ConfigDict(frozen=True)

    artifact_id: int
    version: str | None = None
    date: datetime | None = None
    changes: str | None = None
    entry_id: int | None = None

    @property
    def is_synthetic(self) -> bool:
        return self.entry_id is None

    def to_wire(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "date": self.date.isoformat() if self.date else None,
            "changes": self.changes,
        }
