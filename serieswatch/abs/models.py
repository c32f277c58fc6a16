"""
Pydantic models for the Audiobookshelf responses the library adapter reads.
"""

from pydantic import BaseModel, Field


class Library(BaseModel):
    """ABS library."""

    id: str
    name: str = ""
    media_type: str = Field(default="book", alias="mediaType")
    provider: str | None = None

    model_config = {"extra": "ignore", "populate_by_name": True}


class SeriesResponse(BaseModel):
    """Response from GET /series/:id."""

    id: str
    name: str
    description: str | None = None
    library_id: str | None = Field(default=None, alias="libraryId")

    model_config = {"extra": "ignore", "populate_by_name": True}


class BookMetadata(BaseModel):
    """Subset of book metadata."""

    title: str | None = None
    asin: str | None = None
    author_name: str | None = Field(default=None, alias="authorName")

    model_config = {"extra": "ignore", "populate_by_name": True}


class BookMedia(BaseModel):
    metadata: BookMetadata = Field(default_factory=BookMetadata)

    model_config = {"extra": "ignore"}


class LibraryItem(BaseModel):
    """Minified library item."""

    id: str
    library_id: str | None = Field(default=None, alias="libraryId")
    media_type: str = Field(default="book", alias="mediaType")
    media: BookMedia = Field(default_factory=BookMedia)

    model_config = {"extra": "ignore", "populate_by_name": True}


class LibraryItemsResponse(BaseModel):
    """Response from the library items endpoint."""

    results: list[LibraryItem] = Field(default_factory=list)
    total: int = 0
    limit: int = 0
    page: int = 0

    model_config = {"extra": "ignore"}
