"""Entry Store — durable table of artifacts keyed by an integer id.

Ids come from SQLite ``AUTOINCREMENT`` so they increase monotonically and
are never reused, even after a delete. Payload bytes are written once on
``create`` and replaced only by ``replace_payload``, which the token-gated
update flow calls.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone

from configvault.core.binary import classify_payload, normalize_payload
from configvault.core.database import Database
from configvault.core.errors import (
    DataIntegrityError,
    MalformedPayload,
    MalformedVersion,
    NotFound,
    ValidationError,
)
from configvault.models.artifacts import (
    DEFAULT_CATEGORY,
    DEFAULT_CONFIG_NAME,
    DEFAULT_FILENAME,
    DEFAULT_MIMETYPE,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    Artifact,
    ArtifactSummary,
    ArtifactUpload,
)
from configvault.models.versioning import VersionTag, next_version

logger = logging.getLogger(__name__)

# Metadata columns, in the order summaries are built from. Never includes payload.
SUMMARY_COLUMNS = (
    "id, filename, mimetype, name, description, category, uploader_name, "
    "point_count, config_name, version, uploaded_at, last_update, last_changes, "
    "length(payload) AS data_size"
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO text so lexical order equals time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _reject_constant(token: str) -> None:
    raise ValueError(f"{token} is not valid JSON")


def validate_json_payload(payload: bytes) -> None:
    """Raise ``MalformedPayload`` unless *payload* is one JSON document.

    ``NaN`` and ``Infinity`` are rejected; they are not JSON.
    """
    try:
        json.loads(payload, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedPayload("Invalid JSON data") from exc


def validate_upload(upload: ArtifactUpload, payload: bytes) -> ArtifactUpload:
    """Check required fields and bounds; return a trimmed, defaulted copy.

    Raises
    ------
    ValidationError
        If a required field is missing or empty after trimming, a bounded
        field is too long, or the version has a non-numeric component.
    MalformedPayload
        If the payload is not a well-formed JSON document.
    """
    required = {
        "name": upload.name,
        "description": upload.description,
        "uploaderName": upload.uploader_name,
    }
    for field, value in required.items():
        if not value or not value.strip():
            raise ValidationError(f"Missing required field: {field}")
    if not payload or not payload.strip():
        raise ValidationError("Missing required field: data")

    name = upload.name.strip()
    description = upload.description.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name too long (max {MAX_NAME_LENGTH} characters)")
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Description too long (max {MAX_DESCRIPTION_LENGTH} characters)"
        )

    validate_json_payload(payload)

    version = None
    if upload.version and upload.version.strip():
        try:
            version = str(VersionTag.parse(upload.version))
        except MalformedVersion as exc:
            raise ValidationError(f"Invalid version: {upload.version!r}") from exc

    return upload.model_copy(
        update={
            "name": name,
            "description": description,
            "category": upload.category.strip() or DEFAULT_CATEGORY,
            "uploader_name": upload.uploader_name.strip(),
            "config_name": upload.config_name.strip() or DEFAULT_CONFIG_NAME,
            "version": version,
            "filename": upload.filename.strip() or DEFAULT_FILENAME,
            "mimetype": upload.mimetype.strip() or DEFAULT_MIMETYPE,
        }
    )


def row_to_summary(row: sqlite3.Row) -> ArtifactSummary:
    """Build an ``ArtifactSummary`` from a row selected with SUMMARY_COLUMNS."""
    return ArtifactSummary(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        category=row["category"],
        uploader_name=row["uploader_name"],
        filename=row["filename"],
        mimetype=row["mimetype"],
        point_count=row["point_count"],
        config_name=row["config_name"],
        version=row["version"],
        uploaded_at=parse_timestamp(row["uploaded_at"]),
        last_update=parse_timestamp(row["last_update"]),
        last_changes=row["last_changes"],
        data_size=row["data_size"] or 0,
    )


class EntryStore:
    """SQLite-backed artifact table.

    Parameters
    ----------
    database:
        Shared ``Database`` owning the schema and connections.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    @property
    def database(self) -> Database:
        return self._db

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(
        self,
        metadata: ArtifactUpload,
        payload: bytes,
        *,
        uploaded_at: datetime | None = None,
        conn: sqlite3.Connection | None = None,
    ) -> tuple[int, datetime]:
        """Validate and insert a new artifact.

        Returns the assigned id and the creation timestamp. ``uploaded_at``
        is only overridden by the legacy importer.
        """
        clean = validate_upload(metadata, payload)
        created_at = uploaded_at or utc_now()

        with self._db.connect(conn) as c:
            cursor = c.execute(
                """
                INSERT INTO artifacts
                    (filename, mimetype, payload, name, description, category,
                     uploader_name, point_count, config_name, version, uploaded_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    clean.filename,
                    clean.mimetype,
                    sqlite3.Binary(payload),
                    clean.name,
                    clean.description,
                    clean.category,
                    clean.uploader_name,
                    clean.point_count,
                    clean.config_name,
                    clean.version,
                    format_timestamp(created_at),
                ),
            )
            artifact_id = int(cursor.lastrowid)

        logger.info(
            "Stored artifact %d %r from %r (%d bytes)",
            artifact_id, clean.name, clean.uploader_name, len(payload),
        )
        return artifact_id, created_at

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, artifact_id: int, *, conn: sqlite3.Connection | None = None) -> Artifact:
        """Return the artifact with canonical payload bytes.

        Raises ``NotFound`` for unknown ids and a ``DataIntegrityError``
        subclass when the stored payload cannot be normalized.
        """
        with self._db.connect(conn) as c:
            row = c.execute(
                f"SELECT {SUMMARY_COLUMNS}, payload FROM artifacts WHERE id = ?",
                (artifact_id,),
            ).fetchone()
        if row is None:
            raise NotFound(f"Data not found: {artifact_id}")

        raw = row["payload"]
        try:
            payload = normalize_payload(raw)
        except DataIntegrityError:
            logger.error(
                "Artifact %d payload could not be normalized (stored as %s)",
                artifact_id, classify_payload(raw).value,
            )
            raise

        summary = row_to_summary(row)
        return Artifact(**summary.model_dump(), payload=payload)

    def get_summary(self, artifact_id: int) -> ArtifactSummary:
        """Return metadata only, without reading payload bytes into Python."""
        with self._db.connect() as c:
            row = c.execute(
                f"SELECT {SUMMARY_COLUMNS} FROM artifacts WHERE id = ?",
                (artifact_id,),
            ).fetchone()
        if row is None:
            raise NotFound(f"Data not found: {artifact_id}")
        return row_to_summary(row)

    def exists(self, artifact_id: int) -> bool:
        with self._db.connect() as c:
            row = c.execute(
                "SELECT 1 FROM artifacts WHERE id = ?", (artifact_id,)
            ).fetchone()
        return row is not None

    def count(self) -> int:
        with self._db.connect() as c:
            row = c.execute("SELECT COUNT(*) FROM artifacts").fetchone()
        return int(row[0]) if row else 0

    # ------------------------------------------------------------------
    # Mutate
    # ------------------------------------------------------------------

    def replace_payload(
        self,
        artifact_id: int,
        new_payload: bytes,
        change_note: str,
        *,
        conn: sqlite3.Connection | None = None,
    ) -> tuple[str, datetime]:
        """Replace the payload and bump the patch version.

        Only the token-gated update flow calls this. Returns the new version
        and the update timestamp.

        Raises
        ------
        ValidationError
            If the new payload is empty.
        MalformedPayload
            If the new payload is not a JSON document.
        NotFound
            If the artifact does not exist.
        MalformedVersion
            If the stored version has a non-numeric component.
        """
        if not new_payload or not new_payload.strip():
            raise ValidationError("Missing required field: data")
        validate_json_payload(new_payload)

        updated_at = utc_now()
        with self._db.connect(conn) as c:
            row = c.execute(
                "SELECT version FROM artifacts WHERE id = ?", (artifact_id,)
            ).fetchone()
            if row is None:
                raise NotFound(f"Data not found: {artifact_id}")

            new_version = next_version(row["version"])
            c.execute(
                """
                UPDATE artifacts
                   SET payload = ?, version = ?, last_update = ?, last_changes = ?
                 WHERE id = ?
                """,
                (
                    sqlite3.Binary(new_payload),
                    new_version,
                    format_timestamp(updated_at),
                    change_note,
                    artifact_id,
                ),
            )

        logger.info(
            "Artifact %d payload replaced: %s -> %s",
            artifact_id, row["version"] or "(none)", new_version,
        )
        return new_version, updated_at

    def delete(self, artifact_id: int, *, conn: sqlite3.Connection | None = None) -> None:
        """Permanently remove an artifact; changelog rows cascade."""
        with self._db.connect(conn) as c:
            cursor = c.execute("DELETE FROM artifacts WHERE id = ?", (artifact_id,))
            deleted = cursor.rowcount
        if not deleted:
            raise NotFound(f"Data not found: {artifact_id}")
        logger.info("Deleted artifact %d", artifact_id)

