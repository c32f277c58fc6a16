"""Tests for the release diff."""

import pytest
from conftest import FakeLibrary, FakeProvider, make_book

from serieswatch.library import OwnedBook
from serieswatch.series import ReleaseDiffEngine, diff_entries
from serieswatch.series.models import ReleaseCandidate


class TestDiffEntries:
    """Tests for the pure set difference."""

    def test_removes_owned_and_recorded(self):
        entries = [make_book("B0BOOK0001"), make_book("B0BOOK0002"), make_book("B0BOOK0003"), make_book("B0BOOK0004")]

        result = diff_entries(entries, owned={"B0BOOK0001"}, recorded={"B0BOOK0003"})

        assert [b.asin for b in result] == ["B0BOOK0002", "B0BOOK0004"]

    def test_comparison_ignores_case(self):
        entries = [make_book("b0book0001"), make_book("B0BOOK0002")]

        result = diff_entries(entries, owned={"B0BOOK0001"}, recorded={"b0book0002"})

        assert result == []

    def test_keeps_provider_order(self):
        entries = [make_book("B0BOOK0009"), make_book("B0BOOK0001"), make_book("B0BOOK0005")]

        assert [b.asin for b in diff_entries(entries, set(), set())] == ["B0BOOK0009", "B0BOOK0001", "B0BOOK0005"]

    def test_entries_without_asin_are_dropped(self):
        entries = [make_book(""), make_book("B0BOOK0002")]

        assert [b.asin for b in diff_entries(entries, set(), set())] == ["B0BOOK0002"]


class TestReleaseDiffEngine:
    """Tests for ReleaseDiffEngine.find_new_releases."""

    @pytest.mark.asyncio
    async def test_unresolved_series_has_no_candidates(self, provider: FakeProvider, library: FakeLibrary, store):
        tracked = store.create_tracked_series("u1", "series-1")
        engine = ReleaseDiffEngine(provider, library, store)

        assert await engine.find_new_releases(tracked) == []
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_finds_unowned_unrecorded_books(self, provider, library, store):
        provider.series_entries["B0SERIES01"] = [
            make_book("B0BOOK0001", sequence="1"),
            make_book("B0BOOK0002", sequence="2", release_date="2024-01-01"),
            make_book("B0BOOK0003", sequence="3", release_date="2025-06-01"),
        ]
        library.books["series-1"] = [OwnedBook(asin="b0book0001")]
        tracked = store.create_tracked_series("u1", "series-1", series_asin="B0SERIES01", region="uk")
        store.create_new_release(tracked.id, ReleaseCandidate(asin="B0BOOK0002", title="Book 2"))
        engine = ReleaseDiffEngine(provider, library, store)

        candidates = await engine.find_new_releases(tracked)

        assert [(c.asin, c.sequence, c.release_date, c.provider) for c in candidates] == [
            ("B0BOOK0003", "3", "2025-06-01", "fake")
        ]
        assert provider.calls == [("list_series_entries", "B0SERIES01", "uk")]

    @pytest.mark.asyncio
    async def test_empty_catalog(self, provider, library, store):
        tracked = store.create_tracked_series("u1", "series-1", series_asin="B0SERIES01")
        engine = ReleaseDiffEngine(provider, library, store)

        assert await engine.find_new_releases(tracked) == []
