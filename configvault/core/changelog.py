"""Append-only Changelog Ledger of artifact version transitions.

Design:
- Append-only: ``append()`` is the only write path for history rows.
  Rows disappear only through the delete cascade of their artifact.
- Insertion order is kept in the autoincrement row id for audit;
  presentation order is newest first.
- Artifacts that predate the ledger have no rows; ``reconstruct()``
  derives a single synthetic entry from the artifact's own fields.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime

from configvault.core.database import Database
from configvault.core.entry_store import format_timestamp, parse_timestamp
from configvault.models.artifacts import ArtifactSummary
from configvault.models.changelog import ChangelogEntry

logger = logging.getLogger(__name__)


def reconstruct(artifact: ArtifactSummary) -> ChangelogEntry | None:
    """Synthesize a changelog entry from an artifact with no ledger rows.

    Returns ``None`` when ``version``, ``last_update`` and ``last_changes``
    are all unset, rather than inventing a placeholder.
    """
    if not artifact.version and artifact.last_update is None and not artifact.last_changes:
        return None
    return ChangelogEntry(
        artifact_id=artifact.id,
        version=artifact.version or None,
        date=artifact.last_update,
        changes=artifact.last_changes or None,
    )


class ChangelogLedger:
    """SQLite-backed, append-only history of payload updates.

    Parameters
    ----------
    database:
        Shared ``Database`` owning the ``changelog`` table.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def append(
        self,
        artifact_id: int,
        version: str,
        changes: str,
        timestamp: datetime,
        *,
        conn: sqlite3.Connection | None = None,
    ) -> ChangelogEntry:
        """Record one successful update. This is the ONLY write method."""
        with self._db.connect(conn) as c:
            cursor = c.execute(
                "INSERT INTO changelog (artifact_id, version, date, changes) "
                "VALUES (?, ?, ?, ?)",
                (artifact_id, version, format_timestamp(timestamp), changes),
            )
            entry_id = int(cursor.lastrowid)
        logger.debug("Changelog: artifact %d -> %s", artifact_id, version)
        return ChangelogEntry(
            entry_id=entry_id,
            artifact_id=artifact_id,
            version=version,
            date=timestamp,
            changes=changes,
        )

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def history(self, artifact_id: int) -> list[ChangelogEntry]:
        """Return ledger rows for an artifact, newest first."""
        with self._db.connect() as c:
            rows = c.execute(
                "SELECT id, artifact_id, version, date, changes FROM changelog "
                "WHERE artifact_id = ? ORDER BY date DESC, id DESC",
                (artifact_id,),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def audit_trail(self, artifact_id: int) -> list[ChangelogEntry]:
        """Return ledger rows in insertion order."""
        with self._db.connect() as c:
            rows = c.execute(
                "SELECT id, artifact_id, version, date, changes FROM changelog "
                "WHERE artifact_id = ? ORDER BY id ASC",
                (artifact_id,),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def count(self, artifact_id: int) -> int:
        with self._db.connect() as c:
            row = c.execute(
                "SELECT COUNT(*) FROM changelog WHERE artifact_id = ?", (artifact_id,)
            ).fetchone()
        return int(row[0]) if row else 0

    def history_or_reconstruct(self, artifact: ArtifactSummary) -> list[ChangelogEntry]:
        """Ledger rows if any exist, else the reconstructed single entry (or none)."""
        entries = self.history(artifact.id)
        if entries:
            return entries
        synthetic = reconstruct(artifact)
        return [synthetic] if synthetic is not None else []

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> ChangelogEntry:
        return ChangelogEntry(
            entry_id=row["id"],
            artifact_id=row["artifact_id"],
            version=row["version"],
            date=parse_timestamp(row["date"]),
            changes=row["changes"],
        )
