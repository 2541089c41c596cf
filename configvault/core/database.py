"""SQLite access shared by the Entry Store and the Changelog Ledger.

Design:
- One short-lived connection per operation; no connection is shared
  between threads.
- WAL journal mode for concurrent readers.
- Foreign keys on, so deleting an artifact cascades to its changelog rows.
- ``transaction()`` lets a caller run several component writes atomically.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_ARTIFACTS = """
CREATE TABLE IF NOT EXISTS artifacts (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    filename      TEXT NOT NULL DEFAULT 'data.json',
    mimetype      TEXT NOT NULL DEFAULT 'application/json',
    payload       BLOB NOT NULL,
    name          TEXT NOT NULL,
    description   TEXT NOT NULL,
    category      TEXT NOT NULL DEFAULT 'General',
    uploader_name TEXT NOT NULL,
    point_count   INTEGER NOT NULL DEFAULT 0,
    config_name   TEXT NOT NULL DEFAULT 'Unknown',
    version       TEXT,
    uploaded_at   TEXT NOT NULL,
    last_update   TEXT,
    last_changes  TEXT
);
"""

_CREATE_IDX_UPLOADED = """
CREATE INDEX IF NOT EXISTS idx_artifacts_uploaded ON artifacts(uploaded_at DESC, id DESC);
"""

_CREATE_CHANGELOG = """
CREATE TABLE IF NOT EXISTS changelog (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    artifact_id  INTEGER NOT NULL REFERENCES artifacts(id) ON DELETE CASCADE,
    version      TEXT NOT NULL,
    date         TEXT NOT NULL,
    changes      TEXT NOT NULL DEFAULT ''
);
"""

_CREATE_IDX_CHANGELOG = """
CREATE INDEX IF NOT EXISTS idx_changelog_artifact ON changelog(artifact_id, id);
"""


def _casefold(value: object) -> object:
    return value.casefold() if isinstance(value, str) else value


class Database:
    """Connection factory and schema owner for the configvault SQLite file.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    busy_timeout:
        Seconds sqlite3 waits on a locked database before raising.
    """

    def __init__(self, db_path: Path, *, busy_timeout: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._busy_timeout = busy_timeout
        self._init_schema()

    @property
    def path(self) -> Path:
        return self._db_path

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self._db_path),
            timeout=self._busy_timeout,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _init_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(_CREATE_ARTIFACTS)
            conn.execute(_CREATE_IDX_UPLOADED)
            conn.execute(_CREATE_CHANGELOG)
            conn.execute(_CREATE_IDX_CHANGELOG)
        logger.debug("Schema ready at %s", self._db_path)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; commit on success, roll back on error, always close."""
        conn = self._open()
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def connect(self, conn: sqlite3.Connection | None = None) -> Iterator[sqlite3.Connection]:
        """Join *conn* when given, otherwise run in a fresh transaction."""
        if conn is not None:
            yield conn
            return
        with self.transaction() as own:
            yield own
