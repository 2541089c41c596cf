"""Artifact models — uploads, stored artifacts, and payload-free summaries.

``ArtifactSummary`` carries every metadata field but has no ``payload``
field at all, so listings and search results cannot leak payload bytes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from configvault.core.identifiers import to_external_id

DEFAULT_CATEGORY = "General"
DEFAULT_CONFIG_NAME = "Unknown"
DEFAULT_FILENAME = "data.json"
DEFAULT_MIMETYPE = "application/json"

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500


class ArtifactUpload(BaseModel):
    """Client-supplied metadata for a new artifact.

    Accepts both the wire (camelCase) and Python field names. Values are
    not trimmed or bounded here; the Entry Store validates on ``create``.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    name: str = ""
    description: str = ""
    category: str = ""
    uploader_name: str = ""
    point_count: int = 0
    config_name: str = ""
    version: str | None = None
    filename: str = DEFAULT_FILENAME
    mimetype: str = DEFAULT_MIMETYPE


class ArtifactSummary(BaseModel):
    """Artifact metadata without payload bytes."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: int
    name: str
    description: str
    category: str = DEFAULT_CATEGORY
    uploader_name: str
    filename: str = DEFAULT_FILENAME
    mimetype: str = DEFAULT_MIMETYPE
    point_count: int = 0
    config_name: str = DEFAULT_CONFIG_NAME
    version: str | None = None
    uploaded_at: datetime
    last_update: datetime | None = None
    last_changes: str | None = None
    data_size: int = 0

    @property
    def external_id(self) -> str:
        return to_external_id(self.id)

    def to_wire(self) -> dict[str, Any]:
        """Render with camelCase keys and the external id."""
        wire = self.model_dump(mode="json", by_alias=True, exclude={"payload"})
        wire["id"] = self.external_id
        return wire


class Artifact(ArtifactSummary):
    """A stored artifact including its canonical payload bytes."""

    payload: bytes = Field(repr=False)

    def summary(self) -> ArtifactSummary:
        """Drop the payload, keeping every metadata field."""
        return ArtifactSummary(**self.model_dump(exclude={"payload"}))


class UploadReceipt(BaseModel):
    """Result of a successful upload."""

    model_config = ConfigDict(frozen=True)

    external_id: str
    uploaded_at: datetime

    def to_wire(self) -> dict[str, Any]:
        return {
            "success": True,
            "dataId": self.external_id,
            "message": "Data uploaded successfully",
        }


class UpdateReceipt(BaseModel):
    """Result of a successful token-gated payload update."""

    model_config = ConfigDict(frozen=True)

    external_id: str
    version: str
    last_update: datetime
    changes: str

    def to_wire(self) -> dict[str, Any]:
        return {
            "success": True,
            "dataId": self.external_id,
            "version": self.version,
            "lastUpdate": self.last_update.isoformat(),
            "message": "Data updated successfully",
        }


class Download(BaseModel):
    """A raw payload ready to be streamed as a file attachment."""

    model_config = ConfigDict(frozen=True)

    external_id: str
    filename: str
    mimetype: str
    payload: bytes = Field(repr=False)

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'
