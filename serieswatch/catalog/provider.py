"""
Catalog provider interface and registry.

A catalog provider knows which books exist in a series. Providers register
themselves under a short tag ("audible") that is stored with every release
they report.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from .models import CatalogBook, ProviderInfo, SeriesInfo

PROVIDERS: dict[str, type["CatalogProvider"]] = {}

# Neutral color for tags without a registered provider
UNKNOWN_PROVIDER_COLOR = "#666666"


class UnknownProviderError(KeyError):
    """Raised when a provider tag has no registered implementation."""

    def __init__(self, tag: str):
        super().__init__(tag)
        self.tag = tag

    def __str__(self) -> str:
        known = ", ".join(sorted(PROVIDERS)) or "none"
        return f"Unknown catalog provider '{self.tag}' (known: {known})"


class CatalogProvider(ABC):
    """
    Source of truth for which books exist in a series.

    Every network-facing method degrades to an empty result instead of
    raising; callers treat "nothing found" and "provider unavailable" alike.
    """

    name: str = ""
    label: str = ""

    @abstractmethod
    async def lookup_by_id(self, asin: str, region: str | None = None) -> CatalogBook | None:
        """Fetch a single book by identifier."""

    @abstractmethod
    async def list_series_entries(self, series_asin: str, region: str = "us") -> list[CatalogBook]:
        """List every known book of a series, in provider order."""

    @abstractmethod
    async def resolve_series_from_book(self, book_asin: str, region: str = "us") -> SeriesInfo | None:
        """Find the series a book belongs to."""

    @classmethod
    @abstractmethod
    def provider_info(cls, asin: str | None, region: str | None = None) -> ProviderInfo:
        """Display descriptor for one of this provider's items."""

    async def close(self) -> None:
        """Release network resources."""

    async def __aenter__(self) -> "CatalogProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def register_provider(tag: str) -> Callable[[type[CatalogProvider]], type[CatalogProvider]]:
    """Class decorator adding a provider to PROVIDERS under tag."""

    def decorator(cls: type[CatalogProvider]) -> type[CatalogProvider]:
        PROVIDERS[tag] = cls
        return cls

    return decorator


def get_provider_class(tag: str) -> type[CatalogProvider]:
    """
    Look up a provider implementation by tag.

    Raises:
        UnknownProviderError: No provider is registered under tag
    """
    try:
        return PROVIDERS[tag]
    except KeyError:
        raise UnknownProviderError(tag) from None


def describe_provider(tag: str, asin: str | None, region: str | None = None) -> ProviderInfo:
    """
    Presentation descriptor for a stored provider tag.

    Unknown tags get a neutral grey descriptor labelled with the tag itself.
    """
    cls = PROVIDERS.get(tag)
    if cls is None:
        return ProviderInfo(id=tag, label=tag, color=UNKNOWN_PROVIDER_COLOR, url=None)
    return cls.provider_info(asin, region)
