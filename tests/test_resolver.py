"""Tests for series identity resolution."""

import pytest
from conftest import FakeLibrary, FakeProvider

from serieswatch.catalog import SeriesInfo
from serieswatch.library import OwnedBook
from serieswatch.series import SeriesIdentityResolver
from serieswatch.tracking import TrackedSeries
from serieswatch.utils import first_result


class TestSeriesIdentityResolver:
    """Tests for SeriesIdentityResolver."""

    @pytest.mark.asyncio
    async def test_no_books_makes_no_provider_call(self, provider: FakeProvider, library: FakeLibrary):
        resolver = SeriesIdentityResolver(provider, library)

        assert await resolver.resolve_for_series("series-1", "us") is None
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_first_book_with_a_series_wins(self, provider, library):
        library.books["series-1"] = [
            OwnedBook(asin="B0BOOK0001", title="Lost"),
            OwnedBook(asin="B0BOOK0002", title="Found"),
            OwnedBook(asin="B0BOOK0003", title="Never asked"),
        ]
        provider.book_series["B0BOOK0002"] = SeriesInfo(asin="B0SERIES01", name="Saga", position="2")
        provider.book_series["B0BOOK0003"] = SeriesInfo(asin="B0SERIES99", name="Other")
        resolver = SeriesIdentityResolver(provider, library)

        info = await resolver.resolve_for_series("series-1", "uk")

        assert info.asin == "B0SERIES01"
        assert provider.calls_to("resolve_series_from_book") == [
            ("resolve_series_from_book", "B0BOOK0001", "uk"),
            ("resolve_series_from_book", "B0BOOK0002", "uk"),
        ]

    @pytest.mark.asyncio
    async def test_books_without_valid_asin_are_skipped(self, provider, library):
        library.books["series-1"] = [
            OwnedBook(asin=None, title="No ASIN"),
            OwnedBook(asin="garbage", title="Bad ASIN"),
            OwnedBook(asin="B0BOOK0003", title="Good"),
        ]
        provider.book_series["B0BOOK0003"] = SeriesInfo(asin="B0SERIES01")
        resolver = SeriesIdentityResolver(provider, library)

        info = await resolver.resolve_for_series("series-1", "us")

        assert info.asin == "B0SERIES01"
        assert [c[1] for c in provider.calls] == ["B0BOOK0003"]

    @pytest.mark.asyncio
    async def test_nothing_resolves(self, provider, library):
        library.books["series-1"] = [OwnedBook(asin="B0BOOK0001")]
        resolver = SeriesIdentityResolver(provider, library)

        assert await resolver.resolve_for_series("series-1", "us") is None

    @pytest.mark.asyncio
    async def test_resolve_uses_tracked_region(self, provider, library):
        library.books["series-1"] = [OwnedBook(asin="B0BOOK0001")]
        provider.book_series["B0BOOK0001"] = SeriesInfo(asin="B0SERIES01")
        resolver = SeriesIdentityResolver(provider, library)
        tracked = TrackedSeries(user_id="u1", series_id="series-1", region="de")

        assert await resolver.resolve(tracked) == "B0SERIES01"
        assert provider.calls == [("resolve_series_from_book", "B0BOOK0001", "de")]


class TestFirstResult:
    """Tests for the ordered fallback helper."""

    @pytest.mark.asyncio
    async def test_later_attempts_are_not_called(self):
        called = []

        async def attempt(value):
            called.append(value)
            return value

        result = await first_result([lambda: attempt(None), lambda: attempt(2), lambda: attempt(3)])

        assert result == 2
        assert called == [None, 2]

    @pytest.mark.asyncio
    async def test_all_empty(self):
        async def empty():
            return None

        assert await first_result([empty, empty], label="test") is None

    @pytest.mark.asyncio
    async def test_falsy_results_count(self):
        async def zero():
            return 0

        assert await first_result([zero]) == 0
