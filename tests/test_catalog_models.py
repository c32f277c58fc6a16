"""Tests for catalog payload models and normalization."""

from serieswatch.catalog.models import AudnexusBook, CatalogBook, CatalogProduct
from serieswatch.series import ReleaseCandidate


def audnexus_payload(**overrides) -> dict:
    data = {
        "asin": "B0BOOK0004",
        "title": "The Fourth Book",
        "subtitle": "",
        "authors": [{"asin": "B0AUTHOR01", "name": "Jane Writer"}, {"name": "Co Author"}],
        "narrators": [{"name": "Sam Reader"}],
        "publisherName": "Big Audio",
        "summary": "<p>More adventures.</p>",
        "releaseDate": "2025-03-04T00:00:00.000Z",
        "image": "https://m.media-amazon.com/images/I/cover.jpg",
        "genres": [
            {"asin": "1", "name": "Fantasy", "type": "genre"},
            {"asin": "2", "name": "Epic", "type": "tag"},
            {"asin": "3", "name": "Magic", "type": "tag"},
        ],
        "seriesPrimary": {"asin": "B0SERIES01", "name": "Saga", "position": "Book 4"},
        "seriesSecondary": {"asin": "B0SERIES02", "name": "Saga Universe", "position": "10"},
        "language": "english",
        "runtimeLengthMin": 612,
        "formatType": "unabridged",
        "region": "us",
        "rating": "4.7",
    }
    data.update(overrides)
    return data


class TestCatalogBook:
    """Tests for CatalogBook.from_audnexus."""

    def test_from_audnexus(self):
        book = CatalogBook.from_audnexus(AudnexusBook.model_validate(audnexus_payload()))

        assert book.asin == "B0BOOK0004"
        assert book.title == "The Fourth Book"
        assert book.subtitle is None
        assert book.author == "Jane Writer, Co Author"
        assert book.narrator == "Sam Reader"
        assert book.publisher == "Big Audio"
        assert book.published_year == "2025"
        assert book.release_date == "2025-03-04"
        assert book.genres == ["Fantasy"]
        assert book.tags == "Epic, Magic"
        assert book.language == "English"
        assert book.duration == 612
        assert book.abridged is False

    def test_series_positions_are_cleaned(self):
        book = CatalogBook.from_audnexus(AudnexusBook.model_validate(audnexus_payload()))

        assert [(s.series, s.sequence) for s in book.series] == [("Saga", "4"), ("Saga Universe", "10")]
        assert book.sequence == "4"

    def test_minimal_payload(self):
        book = CatalogBook.from_audnexus(AudnexusBook.model_validate({"asin": "B0BOOK0001", "title": "Solo"}))

        assert book.series is None
        assert book.sequence is None
        assert book.author is None
        assert book.release_date is None
        assert book.duration == 0

    def test_abridged(self):
        book = CatalogBook.from_audnexus(AudnexusBook.model_validate(audnexus_payload(formatType="abridged")))
        assert book.abridged is True


class TestCatalogProduct:
    def test_relationships_and_series(self):
        product = CatalogProduct.model_validate(
            {
                "asin": "B0BOOK0001",
                "series": [{"asin": "B0SERIES01", "title": "Saga", "sequence": "1"}],
                "relationships": [
                    {"asin": "B0SERIES01", "relationship_to_product": "parent", "relationship_type": "series"},
                ],
                "unused_field": True,
            }
        )
        assert product.series[0].asin == "B0SERIES01"
        assert product.relationships[0].relationship_type == "series"


class TestReleaseCandidate:
    def test_from_catalog_book(self):
        book = CatalogBook.from_audnexus(AudnexusBook.model_validate(audnexus_payload()))
        candidate = ReleaseCandidate.from_catalog_book(book, "audible")

        assert candidate.asin == "B0BOOK0004"
        assert candidate.sequence == "4"
        assert candidate.release_date == "2025-03-04"
        assert candidate.cover_url == "https://m.media-amazon.com/images/I/cover.jpg"
        assert candidate.provider == "audible"

    def test_release_date_falls_back_to_year(self):
        book = CatalogBook(asin="B0BOOK0001", title="Old", published_year="1999")
        assert ReleaseCandidate.from_catalog_book(book, "audible").release_date == "1999"
