"""
Pydantic models for release detection.
"""

from pydantic import BaseModel

from ..catalog.models import CatalogBook


class ReleaseCandidate(BaseModel):
    """A catalog book of a tracked series that the user neither owns nor was told about."""

    asin: str
    title: str
    author: str | None = None
    narrator: str | None = None
    cover_url: str | None = None
    release_date: str | None = None
    sequence: str | None = None
    provider: str = "audible"

    model_config = {"extra": "ignore"}

    @classmethod
    def from_catalog_book(cls, book: CatalogBook, provider: str) -> "ReleaseCandidate":
        """Project a normalized catalog book onto the fields a release keeps."""
        return cls(
            asin=book.asin,
            title=book.title,
            author=book.author,
            narrator=book.narrator,
            cover_url=book.cover,
            release_date=book.release_date or book.published_year,
            sequence=book.sequence,
            provider=provider,
        )
