"""
Catalog CLI commands.

Direct provider calls for diagnosing what the catalog reports:
- lookup: Book metadata by ASIN
- series: Books of a series by series ASIN
- resolve: Series a book belongs to
"""

import typer

from serieswatch.catalog import CatalogBook, SeriesInfo, normalize_region
from serieswatch.cli.common import Icons, cli_errors, console, open_provider, run_async, ui

# Create catalog sub-app
catalog_app = typer.Typer(help="🔍 Catalog provider lookups")

REGION_OPTION = typer.Option("us", "--region", "-r", help="Catalog region code")


@catalog_app.command("lookup")
def catalog_lookup(
    asin: str = typer.Argument(..., help="Book ASIN"),
    region: str = REGION_OPTION,
):
    """Show catalog metadata of a book."""

    async def _lookup() -> CatalogBook | None:
        async with open_provider() as provider:
            return await provider.lookup_by_id(asin, normalize_region(region))

    with cli_errors("Lookup"), ui.spinner(f"Looking up {asin}..."):
        book = run_async(_lookup())

    if book is None:
        ui.error(f"Book {asin} not found")
        raise typer.Exit(1)

    series = ", ".join(f"{s.series} #{s.sequence}" if s.sequence else str(s.series) for s in book.series or [])
    console.print(
        ui.key_value_table(
            {
                "ASIN": book.asin,
                "Title": book.title,
                "Subtitle": book.subtitle,
                "Author": book.author,
                "Narrator": book.narrator,
                "Series": series or None,
                "Release date": book.release_date,
                "Language": book.language,
                "Publisher": book.publisher,
                "Region": book.region,
            },
            title=f"{Icons.AUDIOBOOK} {book.title}",
        )
    )


@catalog_app.command("series")
def catalog_series(
    series_asin: str = typer.Argument(..., help="Series ASIN"),
    region: str = REGION_OPTION,
):
    """List the books the catalog knows for a series."""

    async def _entries() -> list[CatalogBook]:
        async with open_provider() as provider:
            return await provider.list_series_entries(series_asin, normalize_region(region))

    with cli_errors("Series listing"), ui.spinner(f"Listing series {series_asin}..."):
        books = run_async(_entries())

    if not books:
        ui.warning(f"No books found for series {series_asin}")
        return

    table = ui.create_table(title=f"{Icons.BOOK} Series {series_asin} ({len(books)} books)")
    table.add_column("#", style="sequence", justify="right")
    table.add_column("Title", style="title")
    table.add_column("Author", style="author")
    table.add_column("Release", justify="right")
    table.add_column("ASIN", style="asin")
    for book in books:
        table.add_row(book.sequence or "-", book.title, book.author or "-", book.release_date or "-", book.asin)
    console.print(table)


@catalog_app.command("resolve")
def catalog_resolve(
    book_asin: str = typer.Argument(..., help="Book ASIN"),
    region: str = REGION_OPTION,
):
    """Find the series a book belongs to."""

    async def _resolve() -> SeriesInfo | None:
        async with open_provider() as provider:
            return await provider.resolve_series_from_book(book_asin, normalize_region(region))

    with cli_errors("Resolve"), ui.spinner(f"Resolving series of {book_asin}..."):
        info = run_async(_resolve())

    if info is None:
        ui.warning(f"No series found for {book_asin}")
        raise typer.Exit(1)

    position = f" (book {info.position})" if info.position else ""
    ui.success(f"[bold]{info.name or 'Unknown Series'}[/bold]{position}", details=f"series ASIN: {info.asin}")
