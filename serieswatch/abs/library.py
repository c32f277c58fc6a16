"""
Audiobookshelf implementation of the library collaborator.
"""

import base64
import logging
import time
from collections.abc import Callable

from pydantic import ValidationError

from ..catalog.regions import region_from_provider
from ..library import LibrarySource, OwnedBook
from .client import ABSNotFoundError, AsyncABSClient
from .models import SeriesResponse

logger = logging.getLogger(__name__)

PAGE_SIZE = 100

# How long a found series (name, library) is reused before it is fetched again
SERIES_TTL_SECONDS = 300.0


def series_filter(series_id: str) -> str:
    """ABS library filter selecting the items of one series."""
    encoded = base64.b64encode(series_id.encode("utf-8")).decode("ascii")
    return f"series.{encoded}"


class AbsLibrary(LibrarySource):
    """
    Library view backed by an Audiobookshelf server.

    Found series are reused for series_ttl seconds so one sweep does not
    fetch the same series repeatedly. Misses are never kept, and item
    listings are always fetched fresh so ownership changes are seen.
    """

    def __init__(
        self,
        client: AsyncABSClient,
        page_size: int = PAGE_SIZE,
        series_ttl: float = SERIES_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.page_size = page_size
        self.series_ttl = series_ttl
        self._clock = clock
        # series_id -> (series, fetched_at)
        self._series: dict[str, tuple[SeriesResponse, float]] = {}

    async def _get_series(self, series_id: str) -> SeriesResponse | None:
        now = self._clock()
        cached = self._series.get(series_id)
        if cached is not None and now - cached[1] < self.series_ttl:
            return cached[0]

        try:
            series = await self.client.get_series(series_id)
        except ABSNotFoundError:
            logger.debug("Series %s not found in Audiobookshelf", series_id)
            self._series.pop(series_id, None)
            return None
        except ValidationError as e:
            logger.warning("Unexpected series payload for %s: %s", series_id, e)
            self._series.pop(series_id, None)
            return None

        # Drop expired entries
        self._series = {sid: entry for sid, entry in self._series.items() if now - entry[1] < self.series_ttl}
        self._series[series_id] = (series, now)
        return series

    async def get_owned_books_for_series(self, series_id: str) -> list[OwnedBook]:
        series = await self._get_series(series_id)
        if series is None or not series.library_id:
            return []

        books: list[OwnedBook] = []
        page = 0
        while True:
            try:
                response = await self.client.get_library_items(
                    series.library_id,
                    filter_str=series_filter(series_id),
                    limit=self.page_size,
                    page=page,
                )
            except ABSNotFoundError:
                logger.debug("Library %s not found", series.library_id)
                return []

            for item in response.results:
                books.append(
                    OwnedBook(
                        asin=item.media.metadata.asin,
                        library_item_id=item.id,
                        library_id=item.library_id or series.library_id,
                        title=item.media.metadata.title,
                    )
                )

            if len(response.results) < self.page_size or len(books) >= response.total:
                break
            page += 1

        logger.debug("Series %s: %d books in library", series.name, len(books))
        return books

    async def get_series_name(self, series_id: str) -> str | None:
        series = await self._get_series(series_id)
        return series.name if series else None

    async def get_region_for_series(self, series_id: str) -> str | None:
        series = await self._get_series(series_id)
        if series is None or not series.library_id:
            return None

        try:
            library = await self.client.get_library(series.library_id)
        except ABSNotFoundError:
            return None

        region = region_from_provider(library.provider)
        if region:
            logger.debug('Using region "%s" from library provider "%s"', region, library.provider)
        return region

    async def close(self) -> None:
        await self.client.close()
