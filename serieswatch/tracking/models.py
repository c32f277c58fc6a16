"""
Pydantic models for tracking records.

TrackedSeries is one user's follow of one local series; NewRelease is a
catalog book surfaced to that user for that follow.
"""

import math
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def sequence_sort_key(sequence: str | None) -> tuple[int, float]:
    """
    Sort key ordering releases by numeric series position.

    Positions that are missing or not numeric sort after every number.
    """
    if sequence:
        try:
            value = float(sequence)
        except ValueError:
            pass
        else:
            if not math.isnan(value):
                return (0, value)
    return (1, 0.0)


class TrackedSeries(BaseModel):
    """A user's follow of a local series."""

    id: str = Field(default_factory=new_id)
    user_id: str
    series_id: str
    series_name: str | None = None
    series_asin: str | None = None  # canonical catalog id, null until resolved
    auto_tracked: bool = False
    region: str = "us"
    last_checked: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def display_name(self) -> str:
        return self.series_name or "Unknown Series"

    @property
    def is_resolved(self) -> bool:
        return bool(self.series_asin)


class NewRelease(BaseModel):
    """A catalog book reported for a tracked series."""

    id: str = Field(default_factory=new_id)
    tracked_series_id: str
    asin: str
    title: str
    author: str | None = None
    narrator: str | None = None
    cover_url: str | None = None
    release_date: str | None = None
    sequence: str | None = None
    provider: str = "audible"
    dismissed: bool = False
    discovered_at: datetime = Field(default_factory=_utcnow)
    created_at: datetime = Field(default_factory=_utcnow)

    def event_payload(self, series_name: str | None, series_id: str) -> dict[str, Any]:
        """
        Notification payload announcing this release.

        Args:
            series_name: Display name of the local series
            series_id: Local series id

        Returns:
            JSON-serializable dict
        """
        return {
            "seriesName": series_name or "Unknown Series",
            "seriesId": series_id,
            "bookTitle": self.title,
            "bookAuthor": self.author or "",
            "bookNarrator": self.narrator or "",
            "sequence": self.sequence or "",
            "releaseDate": self.release_date or "",
            "coverUrl": self.cover_url or "",
            "asin": self.asin,
        }
