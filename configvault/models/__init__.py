"""configvault data models — all Pydantic v2, all frozen (immutable)."""

from configvault.models.artifacts import (
    Artifact,
    ArtifactSummary,
    ArtifactUpload,
    Download,
    UpdateReceipt,
    UploadReceipt,
)
from configvault.models.changelog import ChangelogEntry
from configvault.models.query import ALL_CATEGORIES, Page, Pagination, StoreStats
from configvault.models.versioning import (
    BASELINE_VERSION,
    DEFAULT_UPLOAD_VERSION,
    VersionTag,
)

__all__ = [
    # artifacts
    "Artifact",
    "ArtifactSummary",
    "ArtifactUpload",
    "Download",
    "UpdateReceipt",
    "UploadReceipt",
    # changelog
    "ChangelogEntry",
    # query
    "ALL_CATEGORIES",
    "Page",
    "Pagination",
    "StoreStats",
    # versioning
    "BASELINE_VERSION",
    "DEFAULT_UPLOAD_VERSION",
    "VersionTag",
]
