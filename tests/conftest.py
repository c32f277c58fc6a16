"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from pathlib import Path

import pytest

from serieswatch.catalog import BookSeries, CatalogBook, CatalogProvider, ProviderInfo, SeriesInfo
from serieswatch.library import LibrarySource, OwnedBook
from serieswatch.tracking import TrackingStore

# ============================================================================
# Fakes
# ============================================================================


class FakeProvider(CatalogProvider):
    """In-memory catalog provider that records every call."""

    name = "fake"
    label = "Fake Catalog"

    def __init__(self) -> None:
        self.series_entries: dict[str, list[CatalogBook]] = {}
        self.book_series: dict[str, SeriesInfo] = {}
        self.calls: list[tuple[str, str, str | None]] = []
        self.fail_series: set[str] = set()
        self.closed = False

    async def lookup_by_id(self, asin: str, region: str | None = None) -> CatalogBook | None:
        self.calls.append(("lookup_by_id", asin, region))
        for books in self.series_entries.values():
            for book in books:
                if book.asin == asin:
                    return book
        return None

    async def list_series_entries(self, series_asin: str, region: str = "us") -> list[CatalogBook]:
        self.calls.append(("list_series_entries", series_asin, region))
        if series_asin in self.fail_series:
            raise RuntimeError(f"catalog exploded for {series_asin}")
        return list(self.series_entries.get(series_asin, []))

    async def resolve_series_from_book(self, book_asin: str, region: str = "us") -> SeriesInfo | None:
        self.calls.append(("resolve_series_from_book", book_asin, region))
        return self.book_series.get(book_asin)

    @classmethod
    def provider_info(cls, asin: str | None, region: str | None = None) -> ProviderInfo:
        return ProviderInfo(id=cls.name, label=cls.label, color="#123456", url=f"https://fake/{region}/{asin}")

    async def close(self) -> None:
        self.closed = True

    def calls_to(self, method: str) -> list[tuple[str, str, str | None]]:
        return [call for call in self.calls if call[0] == method]


class FakeLibrary(LibrarySource):
    """In-memory library keyed by local series id."""

    def __init__(self) -> None:
        self.books: dict[str, list[OwnedBook]] = {}
        self.names: dict[str, str] = {}
        self.regions: dict[str, str] = {}
        self.closed = False

    async def get_owned_books_for_series(self, series_id: str) -> list[OwnedBook]:
        return list(self.books.get(series_id, []))

    async def get_series_name(self, series_id: str) -> str | None:
        return self.names.get(series_id)

    async def get_region_for_series(self, series_id: str) -> str | None:
        return self.regions.get(series_id)

    async def close(self) -> None:
        self.closed = True


def make_book(asin: str, title: str | None = None, sequence: str = "", **kwargs) -> CatalogBook:
    """Catalog book in a series named "Saga" at the given position."""
    return CatalogBook(
        asin=asin,
        title=title or f"Book {asin}",
        series=[BookSeries(series="Saga", sequence=sequence)],
        **kwargs,
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def store(tmp_path: Path) -> TrackingStore:
    """Fresh tracking database."""
    return TrackingStore(tmp_path / "tracking.db")


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def library() -> FakeLibrary:
    return FakeLibrary()


@pytest.fixture
def book_factory() -> Callable[..., CatalogBook]:
    return make_book
