"""Tests for the Audible catalog provider (wire level, httpx.MockTransport)."""

from pathlib import Path

import httpx
import pytest

from serieswatch.cache import SQLiteCache
from serieswatch.catalog import AudibleProvider, describe_provider, get_provider_class
from serieswatch.catalog.provider import UNKNOWN_PROVIDER_COLOR, UnknownProviderError


def audnexus_book(asin: str, position: str | None = None, series_asin: str | None = "B0SERIES01") -> dict:
    data: dict = {"asin": asin, "title": f"Title {asin}", "authors": [{"name": "Jane Writer"}]}
    if series_asin:
        data["seriesPrimary"] = {"asin": series_asin, "name": "Saga", "position": position}
    return data


class FakeCatalog:
    """Routes requests the way Audnexus and the Audible catalog answer them."""

    def __init__(self) -> None:
        self.books: dict[str, dict] = {}
        self.products: dict[str, dict] = {}
        self.sims: dict[str, list[dict]] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")

        if request.url.host == "api.audnex.us":
            book = self.books.get(parts[-1])
            return httpx.Response(200, json=book) if book else httpx.Response(404, json={"error": "not found"})

        # /1.0/catalog/products/{asin}[/sims]
        asin = parts[3]
        if parts[-1] == "sims":
            if asin not in self.sims:
                return httpx.Response(404)
            return httpx.Response(200, json={"similar_products": self.sims[asin]})
        product = self.products.get(asin)
        return httpx.Response(200, json={"product": product}) if product else httpx.Response(404)

    def paths(self) -> list[str]:
        return [f"{r.url.host}{r.url.path}" for r in self.requests]


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def audible(catalog: FakeCatalog) -> AudibleProvider:
    return AudibleProvider(transport=httpx.MockTransport(catalog.handler))


class TestLookup:
    """Tests for lookup_by_id."""

    @pytest.mark.asyncio
    async def test_lookup_normalizes_book(self, audible, catalog):
        catalog.books["B0BOOK0001"] = audnexus_book("B0BOOK0001", "Book 1")

        book = await audible.lookup_by_id("B0BOOK0001", "uk")

        assert book.title == "Title B0BOOK0001"
        assert book.sequence == "1"
        assert catalog.requests[0].url.params["region"] == "uk"
        await audible.close()

    @pytest.mark.asyncio
    async def test_lookup_without_region_sends_none(self, audible, catalog):
        catalog.books["B0BOOK0001"] = audnexus_book("B0BOOK0001")

        await audible.lookup_by_id("B0BOOK0001")

        assert "region" not in catalog.requests[0].url.params

    @pytest.mark.asyncio
    async def test_not_found_returns_none(self, audible):
        assert await audible.lookup_by_id("B0MISSING1", "us") is None

    @pytest.mark.asyncio
    async def test_invalid_asin_makes_no_request(self, audible, catalog):
        assert await audible.lookup_by_id("nope", "us") is None
        assert catalog.requests == []

    @pytest.mark.asyncio
    async def test_timeout_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        provider = AudibleProvider(transport=httpx.MockTransport(handler))
        assert await provider.lookup_by_id("B0BOOK0001", "us") is None

    @pytest.mark.asyncio
    async def test_server_error_returns_none(self):
        provider = AudibleProvider(transport=httpx.MockTransport(lambda r: httpx.Response(503)))
        assert await provider.lookup_by_id("B0BOOK0001", "us") is None

    @pytest.mark.asyncio
    async def test_invalid_json_returns_none(self):
        provider = AudibleProvider(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>")))
        assert await provider.lookup_by_id("B0BOOK0001", "us") is None

    @pytest.mark.asyncio
    async def test_lookups_are_cached(self, catalog, tmp_path: Path):
        catalog.books["B0BOOK0001"] = audnexus_book("B0BOOK0001")
        cache = SQLiteCache(tmp_path / "cache.db")
        provider = AudibleProvider(cache=cache, transport=httpx.MockTransport(catalog.handler))

        first = await provider.lookup_by_id("B0BOOK0001", "us")
        second = await provider.lookup_by_id("b0book0001", "us")

        assert first == second
        assert len(catalog.requests) == 1
        assert cache.get("audnexus", "B0BOOK0001_us")["asin"] == "B0BOOK0001"


class TestListSeriesEntries:
    """Tests for list_series_entries."""

    def _series(self, catalog: FakeCatalog) -> None:
        catalog.products["B0SERIES01"] = {
            "asin": "B0SERIES01",
            "relationships": [
                {"asin": "B0PARENT01", "relationship_to_product": "parent", "relationship_type": "series"},
                {"asin": "b0book0002", "relationship_to_product": "child", "relationship_type": "series"},
                {"asin": "B0BOOK0001", "relationship_to_product": "child", "relationship_type": "series"},
            ],
        }
        catalog.sims["B0BOOK0002"] = [{"asin": "B0BOOK0001"}, {"title": "no asin"}, {"asin": "B0BOOK0003"}]
        for asin, position in (("B0BOOK0001", "1"), ("B0BOOK0002", "2"), ("B0BOOK0003", "3")):
            catalog.books[asin] = audnexus_book(asin, position)

    @pytest.mark.asyncio
    async def test_lists_discovered_book_first(self, audible, catalog):
        self._series(catalog)

        books = await audible.list_series_entries("B0SERIES01", "us")

        assert [b.asin for b in books] == ["B0BOOK0002", "B0BOOK0001", "B0BOOK0003"]
        assert catalog.paths()[:2] == [
            "api.audible.com/1.0/catalog/products/B0SERIES01",
            "api.audible.com/1.0/catalog/products/B0BOOK0002/sims",
        ]
        sims = catalog.requests[1]
        assert sims.url.params["similarity_type"] == "InTheSameSeries"
        assert sims.url.params["num_results"] == "50"

    @pytest.mark.asyncio
    async def test_region_picks_domain(self, audible, catalog):
        self._series(catalog)

        await audible.list_series_entries("B0SERIES01", "de")

        assert catalog.requests[0].url.host == "api.audible.de"

    @pytest.mark.asyncio
    async def test_unknown_region_uses_us_domain(self, audible, catalog):
        self._series(catalog)

        await audible.list_series_entries("B0SERIES01", "zz")

        assert catalog.requests[0].url.host == "api.audible.com"

    @pytest.mark.asyncio
    async def test_invalid_series_asin_makes_no_request(self, audible, catalog):
        assert await audible.list_series_entries("short", "us") == []
        assert catalog.requests == []

    @pytest.mark.asyncio
    async def test_no_child_skips_similarity_call(self, audible, catalog):
        catalog.products["B0SERIES01"] = {"asin": "B0SERIES01", "relationships": []}

        assert await audible.list_series_entries("B0SERIES01", "us") == []
        assert len(catalog.requests) == 1

    @pytest.mark.asyncio
    async def test_failed_similarity_call_returns_empty(self, audible, catalog):
        self._series(catalog)
        del catalog.sims["B0BOOK0002"]

        assert await audible.list_series_entries("B0SERIES01", "us") == []

    @pytest.mark.asyncio
    async def test_failed_lookups_are_skipped(self, audible, catalog):
        self._series(catalog)
        del catalog.books["B0BOOK0003"]

        books = await audible.list_series_entries("B0SERIES01", "us")

        assert [b.asin for b in books] == ["B0BOOK0002", "B0BOOK0001"]


class TestResolveSeriesFromBook:
    """Tests for resolve_series_from_book."""

    @pytest.mark.asyncio
    async def test_audnexus_primary_series(self, audible, catalog):
        catalog.books["B0BOOK0001"] = audnexus_book("B0BOOK0001", "Book 1")

        info = await audible.resolve_series_from_book("B0BOOK0001", "us")

        assert (info.asin, info.name, info.position) == ("B0SERIES01", "Saga", "1")
        # No catalog fallback once Audnexus answered
        assert all(r.url.host == "api.audnex.us" for r in catalog.requests)

    @pytest.mark.asyncio
    async def test_secondary_series_when_primary_has_no_asin(self, audible, catalog):
        book = audnexus_book("B0BOOK0001", series_asin=None)
        book["seriesPrimary"] = {"name": "Nameless"}
        book["seriesSecondary"] = {"asin": "B0SERIES02", "name": "Universe", "position": "7"}
        catalog.books["B0BOOK0001"] = book

        info = await audible.resolve_series_from_book("B0BOOK0001", "us")

        assert info.asin == "B0SERIES02"

    @pytest.mark.asyncio
    async def test_falls_back_to_catalog_series(self, audible, catalog):
        catalog.books["B0BOOK0001"] = audnexus_book("B0BOOK0001", series_asin=None)
        catalog.products["B0BOOK0001"] = {
            "asin": "B0BOOK0001",
            "series": [{"asin": "B0SERIES03", "title": "Reihe", "sequence": "Band 2"}],
        }

        info = await audible.resolve_series_from_book("B0BOOK0001", "de")

        assert (info.asin, info.name, info.position) == ("B0SERIES03", "Reihe", "2")
        assert catalog.requests[-1].url.params["response_groups"] == "series,relationships"

    @pytest.mark.asyncio
    async def test_falls_back_to_series_relationship(self, audible, catalog):
        catalog.products["B0BOOK0001"] = {
            "asin": "B0BOOK0001",
            "series": [],
            "relationships": [
                {"asin": "B0OTHER001", "relationship_type": "component"},
                {"asin": "B0SERIES04", "relationship_type": "series", "title": "Saga", "sequence": "5"},
            ],
        }

        info = await audible.resolve_series_from_book("B0BOOK0001", "us")

        assert info.asin == "B0SERIES04"
        assert info.position == "5"

    @pytest.mark.asyncio
    async def test_no_series_anywhere(self, audible, catalog):
        catalog.books["B0BOOK0001"] = audnexus_book("B0BOOK0001", series_asin=None)
        catalog.products["B0BOOK0001"] = {"asin": "B0BOOK0001"}

        assert await audible.resolve_series_from_book("B0BOOK0001", "us") is None

    @pytest.mark.asyncio
    async def test_invalid_book_asin(self, audible, catalog):
        assert await audible.resolve_series_from_book("", "us") is None
        assert catalog.requests == []


class TestProviderRegistry:
    """Tests for provider lookup and descriptors."""

    def test_audible_is_registered(self):
        assert get_provider_class("audible") is AudibleProvider

    def test_unknown_tag_raises(self):
        with pytest.raises(UnknownProviderError, match="Unknown catalog provider 'nope'"):
            get_provider_class("nope")

    def test_describe_audible(self):
        info = describe_provider("audible", "B0BOOK0001", "uk")

        assert info.label == "Audible"
        assert info.color == "#F7991C"
        assert info.url == "https://www.audible.co.uk/pd/B0BOOK0001"

    def test_describe_unknown_tag(self):
        info = describe_provider("libro", "B0BOOK0001", "us")

        assert info.label == "libro"
        assert info.color == UNKNOWN_PROVIDER_COLOR
        assert info.url is None

    @pytest.mark.asyncio
    async def test_async_context_manager_closes_client(self, catalog):
        catalog.books["B0BOOK0001"] = audnexus_book("B0BOOK0001")
        async with AudibleProvider(transport=httpx.MockTransport(catalog.handler)) as provider:
            await provider.lookup_by_id("B0BOOK0001")
            assert provider._client is not None
        assert provider._client is None
