"""ConfigVault — the narrow interface transport layers call into.

The vault wires the Entry Store, Changelog Ledger, Query Engine and
Update-Authorization Manager together and enforces the control flow:

- writes: validation -> (insert | token redemption -> update -> ledger append)
- reads: external id -> store lookup -> normalized payload or metadata only

Every operation takes and returns external (zero-padded) identifiers.
Validation and authorization failures are raised before the store is
touched. Store failures are logged with their cause and surface as
``InternalFailure``; nothing is retried.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import pydantic

from configvault.config import VaultSettings
from configvault.core.changelog import ChangelogLedger
from configvault.core.database import Database
from configvault.core.entry_store import EntryStore, validate_json_payload
from configvault.core.errors import (
    DataIntegrityError,
    InternalFailure,
    Unauthorized,
    ValidationError,
    VaultError,
)
from configvault.core.identifiers import parse_external_id, to_external_id
from configvault.core.production_guard import enforce_production_constraints
from configvault.core.query_engine import QueryEngine
from configvault.core.update_tokens import UpdateTokenManager
from configvault.models.artifacts import (
    Artifact,
    ArtifactSummary,
    ArtifactUpload,
    Download,
    UpdateReceipt,
    UploadReceipt,
)
from configvault.models.changelog import ChangelogEntry
from configvault.models.query import Page, StoreStats

logger = logging.getLogger(__name__)

DEFAULT_CHANGE_NOTE = "No description provided"

_INVALID_TOKEN = "Invalid or expired update token"
_INVALID_PASSWORD = "Invalid password"


def coerce_payload(data: Any) -> bytes:
    """Turn the request's ``data`` field (JSON text) into payload bytes."""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")
    if data is None:
        raise ValidationError("Missing required field: data")
    raise ValidationError("Field data must be a JSON document encoded as a string")


def _secret_matches(expected: str, presented: str | None) -> bool:
    if not expected or not presented:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8"))


class ConfigVault:
    """Versioned artifact store facade.

    Parameters
    ----------
    settings:
        Runtime settings. Uses environment-driven defaults if not provided.
    database_path:
        Overrides ``settings.database_path``.
    token_manager:
        Overrides the default ``UpdateTokenManager`` (e.g. with a fake clock).
    """

    def __init__(
        self,
        settings: VaultSettings | None = None,
        *,
        database_path: Path | None = None,
        token_manager: UpdateTokenManager | None = None,
    ) -> None:
        self.settings = settings or VaultSettings()

        # Fails hard if production constraints are violated
        enforce_production_constraints(self.settings)

        self.database = Database(database_path or self.settings.database_path)
        self.store = EntryStore(self.database)
        self.ledger = ChangelogLedger(self.database)
        self.queries = QueryEngine(
            self.database,
            max_page_size=self.settings.max_page_size,
            search_limit=self.settings.search_limit,
            recent_limit=self.settings.recent_uploads,
        )
        self.tokens = token_manager or UpdateTokenManager(
            ttl_seconds=self.settings.token_ttl_seconds
        )

    # ------------------------------------------------------------------
    # Error boundary
    # ------------------------------------------------------------------

    @contextmanager
    def _store_call(self, operation: str) -> Iterator[None]:
        """Pass taxonomy errors through; wrap anything else as InternalFailure."""
        try:
            yield
        except DataIntegrityError:
            logger.error("%s failed: stored data needs operator investigation", operation)
            raise
        except VaultError:
            raise
        except Exception as exc:
            logger.exception("%s failed in the backing store", operation)
            raise InternalFailure("Internal server error") from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upload(self, body: Mapping[str, Any]) -> UploadReceipt:
        """Create an artifact from a request body.

        *body* uses the wire field names (``name``, ``description``,
        ``category``, ``uploaderName``, ``pointCount``, ``configName``,
        ``version``, ``data``); ``data`` is the JSON document as text.
        """
        logger.info(
            "Upload request received: name=%r uploader=%r category=%r",
            body.get("name"), body.get("uploaderName"), body.get("category"),
        )
        fields = {k: v for k, v in body.items() if k != "data" and v is not None}
        try:
            metadata = ArtifactUpload.model_validate(fields)
        except pydantic.ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise ValidationError(f"Invalid field {location}: {first['msg']}") from exc
        payload = coerce_payload(body.get("data"))

        with self._store_call("upload"):
            artifact_id, uploaded_at = self.store.create(metadata, payload)
        return UploadReceipt(external_id=to_external_id(artifact_id), uploaded_at=uploaded_at)

    def request_update_token(self, external_id: str, password: str | None) -> str:
        """Issue a single-use update token, gated by the shared update secret.

        A new token replaces any earlier one for the same artifact.
        """
        artifact_id = parse_external_id(external_id)
        if not _secret_matches(self.settings.update_password, password):
            logger.warning("Rejected update-token request for %s: bad password", external_id)
            raise Unauthorized(_INVALID_PASSWORD)
        with self._store_call("request_update_token"):
            self.store.get_summary(artifact_id)
        return self.tokens.issue(artifact_id)

    def update(
        self,
        external_id: str,
        token: str | None,
        data: Any,
        changes: str | None = None,
    ) -> UpdateReceipt:
        """Replace an artifact's payload using a single-use token.

        The token is consumed before the store is written, so a replayed
        request fails with ``Unauthorized`` even if this one later fails.
        """
        artifact_id = parse_external_id(external_id)
        payload = coerce_payload(data)
        if not payload.strip():
            raise ValidationError("Missing required field: data")
        validate_json_payload(payload)
        note = (changes or "").strip() or DEFAULT_CHANGE_NOTE

        if not self.tokens.redeem(artifact_id, token):
            logger.warning("Rejected update for %s: invalid or expired token", external_id)
            raise Unauthorized(_INVALID_TOKEN)

        with self._store_call("update"), self.database.transaction() as conn:
            version, updated_at = self.store.replace_payload(
                artifact_id, payload, note, conn=conn
            )
            self.ledger.append(artifact_id, version, note, updated_at, conn=conn)

        return UpdateReceipt(
            external_id=to_external_id(artifact_id),
            version=version,
            last_update=updated_at,
            changes=note,
        )

    def delete(self, external_id: str, password: str | None) -> None:
        """Permanently delete an artifact, gated by the shared delete secret."""
        artifact_id = parse_external_id(external_id)
        if not _secret_matches(self.settings.delete_password, password):
            logger.warning("Rejected delete of %s: bad password", external_id)
            raise Unauthorized(_INVALID_PASSWORD)
        with self._store_call("delete"):
            self.store.delete(artifact_id)
        self.tokens.revoke(artifact_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_artifact(self, external_id: str) -> Artifact:
        """Metadata plus canonical payload bytes."""
        artifact_id = parse_external_id(external_id)
        with self._store_call("get_artifact"):
            return self.store.get(artifact_id)

    def get_metadata(self, external_id: str) -> ArtifactSummary:
        artifact_id = parse_external_id(external_id)
        with self._store_call("get_metadata"):
            return self.store.get_summary(artifact_id)

    def download(self, external_id: str) -> Download:
        """Raw payload plus the filename and MIME type to serve it with."""
        artifact = self.get_artifact(external_id)
        logger.info("Data downloaded: %s (ID: %s)", artifact.name, artifact.external_id)
        return Download(
            external_id=artifact.external_id,
            filename=artifact.filename,
            mimetype=artifact.mimetype,
            payload=artifact.payload,
        )

    def list_entries(
        self,
        page: int = 1,
        limit: int | None = None,
        category: str | None = None,
    ) -> Page:
        with self._store_call("list_entries"):
            return self.queries.list_page(
                page=page,
                page_size=self.settings.default_page_size if limit is None else limit,
                category=category,
            )

    def search(self, term: str) -> list[ArtifactSummary]:
        with self._store_call("search"):
            return self.queries.search(term)

    def stats(self) -> StoreStats:
        with self._store_call("stats"):
            return self.queries.stats()

    def changelog(self, external_id: str) -> list[ChangelogEntry]:
        """Version history newest first, or the reconstructed fallback."""
        artifact_id = parse_external_id(external_id)
        with self._store_call("changelog"):
            artifact = self.store.get_summary(artifact_id)
            return self.ledger.history_or_reconstruct(artifact)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_background_sweeper(self) -> None:
        self.tokens.start_sweeper(self.settings.sweep_interval_seconds)

    def close(self) -> None:
        self.tokens.stop_sweeper()

    def __enter__(self) -> ConfigVault:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ConfigVault(database={str(self.database.path)!r})"
