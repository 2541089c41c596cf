"""Query Engine — pagination, filtering, search and statistics.

Every query reads metadata columns only; payload bytes are never selected.
Aggregates are computed on demand because the dataset is small and
read-mostly.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from configvault.core.database import Database
from configvault.core.entry_store import SUMMARY_COLUMNS, row_to_summary
from configvault.core.errors import ValidationError
from configvault.models.artifacts import ArtifactSummary
from configvault.models.query import ALL_CATEGORIES, Page, Pagination, StoreStats

logger = logging.getLogger(__name__)

_RECENCY = "ORDER BY uploaded_at DESC, id DESC"


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def is_all_categories(category: str | None) -> bool:
    """Whether *category* is the no-filter sentinel (``All``, blank or ``None``)."""
    if not category or not category.strip():
        return True
    return category.strip().casefold() == ALL_CATEGORIES.casefold()


class QueryEngine:
    """Read-only queries over the artifact table.

    Parameters
    ----------
    database:
        Shared ``Database`` holding the ``artifacts`` table.
    max_page_size:
        Upper clamp for ``list_page`` page sizes.
    search_limit:
        Maximum number of search results.
    recent_limit:
        Number of artifacts in ``StoreStats.recent_uploads``.
    """

    def __init__(
        self,
        database: Database,
        *,
        max_page_size: int = 50,
        search_limit: int = 50,
        recent_limit: int = 5,
    ) -> None:
        self._db = database
        self._max_page_size = max_page_size
        self._search_limit = search_limit
        self._recent_limit = recent_limit

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_page(
        self,
        page: int = 1,
        page_size: int = 10,
        category: str | None = None,
    ) -> Page:
        """Return one 1-based page of summaries, newest first.

        ``page`` below 1 is treated as 1; ``page_size`` is clamped to
        ``[1, max_page_size]``. ``category`` compares case-insensitively.
        """
        page = max(1, page)
        limit = min(max(1, page_size), self._max_page_size)

        where = ""
        params: list[Any] = []
        if not is_all_categories(category):
            where = "WHERE casefold(category) = casefold(?)"
            params.append(category.strip())

        with self._db.connect() as c:
            total = int(
                c.execute(f"SELECT COUNT(*) FROM artifacts {where}", params).fetchone()[0]
            )
            rows = c.execute(
                f"SELECT {SUMMARY_COLUMNS} FROM artifacts {where} {_RECENCY} "
                "LIMIT ? OFFSET ?",
                (*params, limit, (page - 1) * limit),
            ).fetchall()

        total_pages = math.ceil(total / limit)
        return Page(
            entries=[row_to_summary(row) for row in rows],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=total_pages,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, term: str) -> list[ArtifactSummary]:
        """Case-insensitive substring search over name, description,
        uploader and category. Capped at ``search_limit``, newest first.
        """
        needle = (term or "").strip().casefold()
        if not needle:
            raise ValidationError("Search query required")

        pattern = f"%{_escape_like(needle)}%"
        with self._db.connect() as c:
            rows = c.execute(
                f"SELECT {SUMMARY_COLUMNS} FROM artifacts "
                "WHERE casefold(name) LIKE ? ESCAPE '\\' "
                "OR casefold(description) LIKE ? ESCAPE '\\' "
                "OR casefold(uploader_name) LIKE ? ESCAPE '\\' "
                "OR casefold(category) LIKE ? ESCAPE '\\' "
                f"{_RECENCY} LIMIT ?",
                (pattern, pattern, pattern, pattern, self._search_limit),
            ).fetchall()
        logger.debug("Search %r matched %d artifact(s)", needle, len(rows))
        return [row_to_summary(row) for row in rows]

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def stats(self) -> StoreStats:
        """Total count, per-category and per-uploader counts, recent uploads."""
        with self._db.connect() as c:
            total = int(c.execute("SELECT COUNT(*) FROM artifacts").fetchone()[0])
            categories = {
                row[0]: int(row[1])
                for row in c.execute(
                    "SELECT category, COUNT(*) FROM artifacts "
                    "GROUP BY category ORDER BY COUNT(*) DESC, category"
                ).fetchall()
            }
            uploaders = {
                row[0]: int(row[1])
                for row in c.execute(
                    "SELECT uploader_name, COUNT(*) FROM artifacts "
                    "GROUP BY uploader_name ORDER BY COUNT(*) DESC, uploader_name"
                ).fetchall()
            }
            recent = c.execute(
                f"SELECT {SUMMARY_COLUMNS} FROM artifacts {_RECENCY} LIMIT ?",
                (self._recent_limit,),
            ).fetchall()

        return StoreStats(
            total_entries=total,
            categories=categories,
            top_uploaders=uploaders,
            recent_uploads=[row_to_summary(row) for row in recent],
        )
