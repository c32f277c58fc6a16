"""
Series identity resolution.

Maps a local series to the catalog's series identifier by asking the
catalog, one owned book at a time, which series the book belongs to.
"""

import logging
from collections.abc import Iterator

from ..catalog.models import SeriesInfo
from ..catalog.provider import CatalogProvider
from ..catalog.regions import is_valid_asin
from ..library import LibrarySource, OwnedBook
from ..tracking.models import TrackedSeries
from ..utils.fallback import Attempt, first_result

logger = logging.getLogger(__name__)


class SeriesIdentityResolver:
    """
    Resolve the canonical series identifier of a local series.

    Owned books are tried in the order the library returns them; the first
    book the catalog places in a series wins. Books without a valid
    identifier are skipped without a request.
    """

    def __init__(self, provider: CatalogProvider, library: LibrarySource):
        self.provider = provider
        self.library = library

    def _attempts(self, books: list[OwnedBook], region: str) -> Iterator[Attempt[SeriesInfo]]:
        for book in books:
            if not book.asin or not is_valid_asin(book.asin):
                logger.debug("Skipping library book without a valid ASIN: %s", book.title or book.library_item_id)
                continue
            yield lambda asin=book.asin: self.provider.resolve_series_from_book(asin, region)

    async def resolve_for_series(self, series_id: str, region: str) -> SeriesInfo | None:
        """
        Resolve a local series to its catalog series.

        Args:
            series_id: Local series id
            region: Region code used for catalog requests

        Returns:
            SeriesInfo of the first owned book that names a series, or None
        """
        books = await self.library.get_owned_books_for_series(series_id)
        if not books:
            logger.debug("Series %s has no books in the library", series_id)
            return None

        info = await first_result(self._attempts(books, region), label=f"resolve series {series_id}")
        if info is None:
            logger.debug("Could not find series ASIN for series %s", series_id)
        else:
            logger.debug("Found series ASIN %s for series %s", info.asin, series_id)
        return info

    async def resolve(self, tracked: TrackedSeries) -> str | None:
        """Canonical series identifier for a tracked series, using its stored region."""
        info = await self.resolve_for_series(tracked.series_id, tracked.region or "us")
        return info.asin if info else None
