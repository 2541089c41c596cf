"""Query result models — pagination pages and aggregate statistics."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from configvault.models.artifacts import ArtifactSummary

ALL_CATEGORIES = "All"


class Pagination(BaseModel):
    """Position of a page within the filtered, sorted result set."""

    model_config = ConfigDict(frozen=True)

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    def to_wire(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


class Page(BaseModel):
    """One page of payload-free artifact summaries."""

    model_config = ConfigDict(frozen=True)

    entries: list[ArtifactSummary]
    pagination: Pagination


class StoreStats(BaseModel):
    """Aggregate usage statistics, computed on demand."""

    model_config = ConfigDict(frozen=True)

    total_entries: int = 0
    categories: dict[str, int] = Field(default_factory=dict)
    top_uploaders: dict[str, int] = Field(default_factory=dict)
    recent_uploads: list[ArtifactSummary] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        return {
            "totalEntries": self.total_entries,
            "categories": dict(self.categories),
            "topUploaders": dict(self.top_uploaders),
            "recentUploads": [s.to_wire() for s in self.recent_uploads],
        }
