"""
Pydantic models for catalog provider responses.

Raw payload models mirror what the Audnexus and Audible catalog endpoints
return; CatalogBook is the normalized record the rest of the package uses.
"""

from pydantic import BaseModel, Field

from .regions import clean_series_sequence

# =============================================================================
# Audnexus payloads
# =============================================================================


class AudnexusPerson(BaseModel):
    """Author or narrator entry."""

    asin: str | None = None
    name: str

    model_config = {"extra": "ignore"}


class AudnexusGenre(BaseModel):
    """Genre or tag entry."""

    asin: str | None = None
    name: str
    type: str | None = None

    model_config = {"extra": "ignore"}


class AudnexusSeries(BaseModel):
    """Primary or secondary series association."""

    asin: str | None = None
    name: str | None = None
    position: str | None = None

    model_config = {"extra": "ignore"}


class AudnexusBook(BaseModel):
    """Book record from the Audnexus /books/{asin} endpoint."""

    asin: str
    title: str = ""
    subtitle: str | None = None
    authors: list[AudnexusPerson] = Field(default_factory=list)
    narrators: list[AudnexusPerson] = Field(default_factory=list)
    publisher_name: str | None = Field(default=None, alias="publisherName")
    summary: str | None = None
    release_date: str | None = Field(default=None, alias="releaseDate")
    image: str | None = None
    genres: list[AudnexusGenre] = Field(default_factory=list)
    series_primary: AudnexusSeries | None = Field(default=None, alias="seriesPrimary")
    series_secondary: AudnexusSeries | None = Field(default=None, alias="seriesSecondary")
    language: str | None = None
    runtime_length_min: int | float | str | None = Field(default=None, alias="runtimeLengthMin")
    format_type: str | None = Field(default=None, alias="formatType")
    isbn: str | None = None
    region: str | None = None
    rating: str | None = None

    model_config = {"extra": "ignore", "populate_by_name": True}


# =============================================================================
# Audible catalog payloads
# =============================================================================


class CatalogRelationship(BaseModel):
    """Entry of a catalog product's relationships response group."""

    asin: str | None = None
    relationship_to_product: str | None = None  # "child" or "parent"
    relationship_type: str | None = None  # "series", "component", ...
    sequence: str | None = None
    sort: str | None = None
    title: str | None = None
    url: str | None = None

    model_config = {"extra": "ignore"}


class CatalogSeriesRef(BaseModel):
    """Entry of a catalog product's series response group."""

    asin: str | None = None
    title: str | None = None
    sequence: str | None = None
    url: str | None = None

    model_config = {"extra": "ignore"}


class CatalogProduct(BaseModel):
    """Minimal Audible catalog product with series and relationship data."""

    asin: str
    title: str | None = None
    series: list[CatalogSeriesRef] | None = Field(default_factory=list)
    relationships: list[CatalogRelationship] | None = Field(default_factory=list)

    model_config = {"extra": "ignore"}


# =============================================================================
# Normalized records
# =============================================================================


class BookSeries(BaseModel):
    """A series a book belongs to, with its cleaned position."""

    series: str | None = None
    sequence: str = ""


class CatalogBook(BaseModel):
    """Normalized book record shared by every catalog provider."""

    asin: str
    title: str
    subtitle: str | None = None
    author: str | None = None
    narrator: str | None = None
    publisher: str | None = None
    published_year: str | None = None
    release_date: str | None = None
    description: str | None = None
    cover: str | None = None
    isbn: str | None = None
    genres: list[str] | None = None
    tags: str | None = None
    series: list[BookSeries] | None = None
    language: str | None = None
    duration: float = 0
    region: str | None = None
    rating: str | None = None
    abridged: bool = False

    @property
    def sequence(self) -> str | None:
        """Position within the first listed series."""
        if self.series:
            return self.series[0].sequence or None
        return None

    @classmethod
    def from_audnexus(cls, item: AudnexusBook) -> "CatalogBook":
        """
        Normalize an Audnexus book payload.

        Args:
            item: Raw Audnexus book

        Returns:
            CatalogBook
        """
        series: list[BookSeries] = []
        for entry in (item.series_primary, item.series_secondary):
            if entry is None:
                continue
            series.append(
                BookSeries(
                    series=entry.name,
                    sequence=clean_series_sequence(entry.name, entry.position or ""),
                )
            )

        genres = [g.name for g in item.genres if g.type == "genre"]
        tags = [g.name for g in item.genres if g.type == "tag"]

        duration: float = 0
        if item.runtime_length_min is not None:
            try:
                duration = float(item.runtime_length_min)
            except (TypeError, ValueError):
                duration = 0

        return cls(
            asin=item.asin,
            title=item.title,
            subtitle=item.subtitle or None,
            author=", ".join(a.name for a in item.authors) if item.authors else None,
            narrator=", ".join(n.name for n in item.narrators) if item.narrators else None,
            publisher=item.publisher_name,
            published_year=item.release_date.split("-")[0] if item.release_date else None,
            release_date=item.release_date[:10] if item.release_date else None,
            description=item.summary or None,
            cover=item.image,
            isbn=item.isbn,
            genres=genres or None,
            tags=", ".join(tags) if tags else None,
            series=series or None,
            language=item.language[:1].upper() + item.language[1:] if item.language else None,
            duration=duration,
            region=item.region or None,
            rating=item.rating or None,
            abridged=item.format_type == "abridged",
        )


class SeriesInfo(BaseModel):
    """Series identity resolved from a single book."""

    asin: str
    name: str | None = None
    position: str = ""


class ProviderInfo(BaseModel):
    """Display descriptor for a catalog provider and one of its items."""

    id: str
    label: str
    color: str = "#666666"
    url: str | None = None
