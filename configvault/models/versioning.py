"""Artifact version tags — explicit ``major.minor.patch`` triples.

Parsing fails closed: a genuinely absent component takes its default
(major 1, minor 0, patch 0) but a present, non-numeric component raises
``MalformedVersion`` instead of silently becoming zero.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from configvault.core.errors import MalformedVersion

DEFAULT_UPLOAD_VERSION = "0.3.5"
BASELINE_VERSION = "1.0.0"

_DEFAULTS = (1, 0, 0)


class VersionTag(BaseModel):
    """A three-component numeric version."""

    model_config = ConfigDict(frozen=True)

    major: int = 1
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, raw: str | None) -> VersionTag:
        """Parse a dotted version string.

        ``None`` or a blank string is the baseline ``1.0.0``. Missing
        trailing components default (``"2"`` -> ``2.0.0``, ``"2.4"`` ->
        ``2.4.0``). Raises ``MalformedVersion`` for more than three
        components or any component that is not a non-negative integer.
        """
        text = (raw or "").strip()
        if not text:
            return cls(major=_DEFAULTS[0], minor=_DEFAULTS[1], patch=_DEFAULTS[2])

        parts = text.split(".")
        if len(parts) > 3:
            raise MalformedVersion(f"Version {raw!r} has more than three components")

        values: list[int] = []
        for index, part in enumerate(parts):
            part = part.strip()
            if not (part.isascii() and part.isdigit()):
                raise MalformedVersion(
                    f"Version {raw!r} has a non-numeric component at position {index}"
                )
            values.append(int(part))
        values.extend(_DEFAULTS[len(values):])

        return cls(major=values[0], minor=values[1], patch=values[2])

    def bump_patch(self) -> VersionTag:
        """Return the next version: patch incremented by one."""
        return self.model_copy(update={"patch": self.patch + 1})

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def next_version(current: str | None) -> str:
    """Compute the version that follows *current* in the update flow."""
    return str(VersionTag.parse(current).bump_patch())
