"""
Library collaborator interface.

The library is whatever holds the books a user already owns. The tracking
engine only asks it three questions about a local series.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class OwnedBook(BaseModel):
    """A book held in the local library."""

    asin: str | None = None
    library_item_id: str | None = None
    library_id: str | None = None
    title: str | None = None


class LibrarySource(ABC):
    """Read-only view of the local library, keyed by local series id."""

    @abstractmethod
    async def get_owned_books_for_series(self, series_id: str) -> list[OwnedBook]:
        """Books of a series held in the library; empty for an unknown series."""

    @abstractmethod
    async def get_series_name(self, series_id: str) -> str | None:
        """Display name of a series, or None if unknown."""

    @abstractmethod
    async def get_region_for_series(self, series_id: str) -> str | None:
        """Region implied by the library the series lives in, if any."""

    async def get_owned_asins(self, series_id: str) -> set[str]:
        """Upper-cased identifiers of every owned book of a series."""
        books = await self.get_owned_books_for_series(series_id)
        return {book.asin.upper() for book in books if book.asin}

    async def close(self) -> None:
        """Release network resources."""
