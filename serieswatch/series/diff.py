"""
Release diff: which catalog books of a tracked series are new to the user.
"""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from ..catalog.models import CatalogBook
from ..catalog.provider import CatalogProvider
from ..library import LibrarySource
from ..tracking.models import TrackedSeries
from .models import ReleaseCandidate

if TYPE_CHECKING:
    from ..tracking.store import TrackingStore

logger = logging.getLogger(__name__)


def diff_entries(
    entries: Iterable[CatalogBook],
    owned: set[str],
    recorded: set[str],
) -> list[CatalogBook]:
    """
    Catalog entries that are neither owned nor already recorded.

    Comparison is case-insensitive on the identifier; entries without an
    identifier are dropped. Provider order is kept.

    Args:
        entries: Catalog books of the series
        owned: Identifiers held in the library
        recorded: Identifiers already reported for the tracked series

    Returns:
        New entries in input order
    """
    owned_upper = {asin.upper() for asin in owned}
    recorded_upper = {asin.upper() for asin in recorded}

    result = []
    for book in entries:
        if not book.asin:
            continue
        asin = book.asin.upper()
        if asin in owned_upper or asin in recorded_upper:
            continue
        result.append(book)
    return result


class ReleaseDiffEngine:
    """Compute release candidates for a tracked series."""

    def __init__(self, provider: CatalogProvider, library: LibrarySource, store: "TrackingStore"):
        self.provider = provider
        self.library = library
        self.store = store

    async def find_new_releases(self, tracked: TrackedSeries) -> list[ReleaseCandidate]:
        """
        Catalog books of a tracked series the user neither owns nor was told about.

        Args:
            tracked: Tracked series; must carry a series identifier to produce anything

        Returns:
            Candidates in catalog order
        """
        if not tracked.series_asin:
            logger.debug("No series ASIN for tracked series %s", tracked.id)
            return []

        entries = await self.provider.list_series_entries(tracked.series_asin, tracked.region or "us")
        if not entries:
            logger.debug("No catalog books found for series ASIN %s", tracked.series_asin)
            return []

        owned = await self.library.get_owned_asins(tracked.series_id)
        recorded = self.store.get_release_asins(tracked.id)

        new_books = diff_entries(entries, owned, recorded)
        logger.debug(
            'Found %d new books for series "%s" (%d in catalog, %d owned)',
            len(new_books),
            tracked.display_name,
            len(entries),
            len(owned),
        )
        return [ReleaseCandidate.from_catalog_book(book, self.provider.name) for book in new_books]
