"""
Audible catalog provider.

Book records come from the public Audnexus mirror; series membership comes
from the Audible catalog API (relationships and the "InTheSameSeries"
similarity endpoint). No Audible account is needed.

Usage:
    async with AudibleProvider() as provider:
        books = await provider.list_series_entries("B0SERIES01", region="uk")
        info = await provider.resolve_series_from_book("B0BOOK0001", region="uk")
"""

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from ..utils.fallback import first_result
from .models import AudnexusBook, CatalogBook, CatalogProduct, ProviderInfo, SeriesInfo
from .provider import CatalogProvider, register_provider
from .regions import clean_series_sequence, get_region_tld, is_valid_asin, normalize_region

if TYPE_CHECKING:
    from ..cache import SQLiteCache

logger = logging.getLogger(__name__)

AUDNEXUS_URL = "https://api.audnex.us"
CATALOG_API_URL = "https://api.audible{tld}/1.0/catalog"
STOREFRONT_URL = "https://www.audible{tld}/pd/{asin}"

DEFAULT_TIMEOUT = 10.0
SIMS_NUM_RESULTS = 50
SIMILARITY_TYPE = "InTheSameSeries"

CACHE_NAMESPACE = "audnexus"


@register_provider("audible")
class AudibleProvider(CatalogProvider):
    """
    Catalog provider backed by Audnexus and the Audible catalog API.

    All requests share one httpx.AsyncClient and the configured timeout.
    Failures are logged and reported as empty results.
    """

    name = "audible"
    label = "Audible"
    color = "#F7991C"

    def __init__(
        self,
        audnexus_url: str = AUDNEXUS_URL,
        timeout: float = DEFAULT_TIMEOUT,
        cache: "SQLiteCache | None" = None,
        cache_ttl_hours: float = 12.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the provider.

        Args:
            audnexus_url: Base URL of the Audnexus API
            timeout: Per-request timeout in seconds
            cache: Optional SQLiteCache for book lookups
            cache_ttl_hours: TTL of cached book lookups
            transport: Custom httpx transport (tests)
        """
        self.audnexus_url = audnexus_url.rstrip("/")
        self.timeout = timeout
        self._cache = cache
        self._cache_ttl_seconds = cache_ttl_hours * 3600
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any | None:
        """
        GET a JSON document.

        Returns:
            Decoded JSON, or None on transport error, timeout, non-2xx
            status or an undecodable body
        """
        client = self._ensure_client()
        logger.debug("Catalog request: GET %s %s", url, params or "")

        try:
            response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.error("Catalog request timed out: %s (%s)", url, e)
            return None
        except httpx.HTTPError as e:
            logger.error("Catalog request failed: %s (%s)", url, e)
            return None

        if response.status_code == 404:
            logger.debug("Catalog resource not found: %s", url)
            return None
        if not response.is_success:
            logger.error("Catalog API error %d for %s", response.status_code, url)
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.error("Catalog response was not JSON: %s (%s)", url, e)
            return None

    def _catalog_url(self, region: str | None, path: str) -> str:
        return f"{CATALOG_API_URL.format(tld=get_region_tld(region))}/{path}"

    # -------------------------------------------------------------------------
    # Book lookups
    # -------------------------------------------------------------------------

    async def _fetch_audnexus(self, asin: str, region: str | None) -> AudnexusBook | None:
        """Raw Audnexus record for asin, through the cache when configured."""
        if not is_valid_asin(asin):
            logger.debug("Skipping lookup of invalid ASIN %r", asin)
            return None

        asin = asin.upper()
        cache_key = f"{asin}_{region or ''}"

        data = self._cache.get(CACHE_NAMESPACE, cache_key) if self._cache else None
        cached = data is not None
        if cached:
            logger.debug("Cache hit for ASIN %s", asin)
        else:
            params = {"region": region} if region else None
            data = await self._get_json(f"{self.audnexus_url}/books/{asin}", params=params)
            if not isinstance(data, dict) or not data.get("asin"):
                logger.debug("No Audnexus record for ASIN %s", asin)
                return None

        try:
            book = AudnexusBook.model_validate(data)
        except ValidationError as e:
            logger.error("Invalid Audnexus record for ASIN %s: %s", asin, e)
            return None

        if self._cache and not cached:
            self._cache.set(CACHE_NAMESPACE, cache_key, data, ttl_seconds=self._cache_ttl_seconds)
        return book

    async def lookup_by_id(self, asin: str, region: str | None = None) -> CatalogBook | None:
        """
        Fetch a single book from Audnexus.

        The region is passed through as given; without one, Audnexus uses
        its own default marketplace.

        Args:
            asin: Book identifier
            region: Optional region code

        Returns:
            Normalized book, or None when the lookup failed
        """
        book = await self._fetch_audnexus(asin, region)
        if book is None:
            return None
        return CatalogBook.from_audnexus(book)

    async def _get_product(self, asin: str, region: str, response_groups: str) -> CatalogProduct | None:
        data = await self._get_json(
            self._catalog_url(region, f"products/{asin}"),
            params={"response_groups": response_groups},
        )
        if not isinstance(data, dict) or not isinstance(data.get("product"), dict):
            return None
        try:
            return CatalogProduct.model_validate(data["product"])
        except ValidationError as e:
            logger.error("Invalid catalog product %s: %s", asin, e)
            return None

    # -------------------------------------------------------------------------
    # Series listing
    # -------------------------------------------------------------------------

    async def _first_child_asin(self, series_asin: str, region: str) -> str | None:
        """First book listed as a child of the series product."""
        product = await self._get_product(series_asin, region, "relationships")
        if product is None:
            return None
        for relationship in product.relationships or []:
            if relationship.relationship_to_product == "child" and relationship.asin:
                return relationship.asin.upper()
        return None

    async def list_series_entries(self, series_asin: str, region: str = "us") -> list[CatalogBook]:
        """
        List every book the catalog knows for a series.

        A book of the series is found through the series' relationships, its
        siblings through the similarity endpoint, and each result is then
        looked up one by one. The discovered book comes first.

        Args:
            series_asin: Series identifier
            region: Region code

        Returns:
            Books in provider order; empty on any failure
        """
        if not is_valid_asin(series_asin):
            logger.error("Invalid series ASIN %r", series_asin)
            return []

        series_asin = series_asin.upper()
        region = normalize_region(region)

        book_asin = await self._first_child_asin(series_asin, region)
        if not book_asin:
            logger.debug("No child book found for series %s", series_asin)
            return []

        data = await self._get_json(
            self._catalog_url(region, f"products/{book_asin}/sims"),
            params={"similarity_type": SIMILARITY_TYPE, "num_results": SIMS_NUM_RESULTS},
        )
        products = data.get("similar_products") if isinstance(data, dict) else None
        if not isinstance(products, list):
            logger.debug("No similar products found for ASIN %s", book_asin)
            return []

        books: list[CatalogBook] = []
        for product in products:
            asin = product.get("asin") if isinstance(product, dict) else None
            if not asin:
                continue
            book = await self.lookup_by_id(asin, region)
            if book is not None:
                books.append(book)

        original = await self.lookup_by_id(book_asin, region)
        if original is not None:
            books.insert(0, original)

        logger.debug("Series %s: %d catalog entries", series_asin, len(books))
        return books

    # -------------------------------------------------------------------------
    # Series resolution
    # -------------------------------------------------------------------------

    async def _series_from_audnexus(self, book_asin: str, region: str) -> SeriesInfo | None:
        book = await self._fetch_audnexus(book_asin, region)
        if book is None:
            return None
        for entry in (book.series_primary, book.series_secondary):
            if entry is not None and entry.asin:
                return SeriesInfo(
                    asin=entry.asin,
                    name=entry.name,
                    position=clean_series_sequence(entry.name, entry.position),
                )
        return None

    async def _series_from_catalog(self, book_asin: str, region: str) -> SeriesInfo | None:
        # Audnexus lacks series data for some marketplaces (notably de)
        product = await self._get_product(book_asin.upper(), region, "series,relationships")
        if product is None:
            return None

        if product.series and product.series[0].asin:
            ref = product.series[0]
            return SeriesInfo(
                asin=ref.asin,
                name=ref.title,
                position=clean_series_sequence(ref.title, ref.sequence),
            )

        for relationship in product.relationships or []:
            if relationship.relationship_type == "series" and relationship.asin:
                return SeriesInfo(
                    asin=relationship.asin,
                    name=relationship.title,
                    position=clean_series_sequence(relationship.title, relationship.sequence),
                )
        return None

    async def resolve_series_from_book(self, book_asin: str, region: str = "us") -> SeriesInfo | None:
        """
        Find the series a book belongs to.

        Tries the Audnexus record first and the Audible catalog product
        second; the second request is only made when the first yields nothing.

        Args:
            book_asin: Book identifier
            region: Region code

        Returns:
            SeriesInfo, or None when neither source names a series
        """
        if not is_valid_asin(book_asin):
            return None

        return await first_result(
            (
                lambda: self._series_from_audnexus(book_asin, region),
                lambda: self._series_from_catalog(book_asin, region),
            ),
            label=f"series of {book_asin}",
        )

    @classmethod
    def provider_info(cls, asin: str | None, region: str | None = None) -> ProviderInfo:
        """Audible storefront descriptor for asin."""
        url = STOREFRONT_URL.format(tld=get_region_tld(region), asin=asin) if asin else None
        return ProviderInfo(id=cls.name, label=cls.label, color=cls.color, url=url)
