"""
Rich console output for the serieswatch CLI.

Usage:
    from serieswatch.utils.ui import console, ui

    ui.success("Following [bold]The Expanse[/bold]", details="region: us")
    ui.error("Sweep failed", details="Connection refused")

    with ui.spinner("Checking series..."):
        run()

    console.print(ui.releases_table(releases, title="New releases"))
"""

from collections.abc import Generator, Iterable
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any

from rich.box import ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.status import Status
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

if TYPE_CHECKING:
    from ..catalog.provider import ProviderInfo
    from ..tracking.models import NewRelease

# =============================================================================
# Theme & Console
# =============================================================================

SERIESWATCH_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "muted": "dim white",
        # Release fields
        "asin": "cyan",
        "title": "bold white",
        "author": "italic white",
        "sequence": "yellow",
        "pending": "yellow",
    }
)

console = Console(theme=SERIESWATCH_THEME, highlight=True, emoji=True)


class Icons:
    """Glyphs prefixed to messages and titles."""

    SUCCESS = "✓"
    ERROR = "✗"
    WARNING = "⚠"
    INFO = "ℹ"

    BOOK = "📚"
    AUDIOBOOK = "🎧"
    NEW = "🆕"
    SYNC = "🔄"
    DATABASE = "🗄️"


# =============================================================================
# UI Helper
# =============================================================================


class UIHelper:
    """Message, table and panel builders sharing one console."""

    def __init__(self, console: Console):
        self.console = console

    def _message(self, style: str, prefix: str, message: str, details: str | None) -> None:
        text = Text(f"{prefix} ", style=style)
        text.append_text(Text.from_markup(message))
        if details:
            text.append(f"\n   {details}", style="muted")
        self.console.print(text)

    def success(self, message: str, details: str | None = None) -> None:
        self._message("success", Icons.SUCCESS, message, details)

    def error(self, message: str, details: str | None = None) -> None:
        self._message("error", Icons.ERROR, f"[error]{message}[/error]", details)

    def warning(self, message: str, details: str | None = None) -> None:
        self._message("warning", Icons.WARNING, message, details)

    def info(self, message: str, details: str | None = None) -> None:
        self._message("info", Icons.INFO, message, details)

    def muted(self, message: str) -> None:
        self.console.print(f"[muted]{message}[/muted]")

    @contextmanager
    def spinner(self, message: str) -> Generator[Status]:
        """Show a spinner while the block runs."""
        with self.console.status(f"[info]{message}[/info]", spinner="dots") as status:
            yield status

    # -------------------------------------------------------------------------
    # Tables & Panels
    # -------------------------------------------------------------------------

    def create_table(self, title: str | None = None) -> Table:
        return Table(
            title=title,
            box=ROUNDED,
            header_style="bold cyan",
            border_style="dim",
            row_styles=["", "dim"],
        )

    def key_value_table(self, data: dict[str, Any], title: str | None = None) -> Table:
        """Two-column table; None values render as a dim N/A."""
        table = Table(title=title, show_header=False, box=SIMPLE, padding=(0, 1))
        table.add_column("Key", style="bold cyan", no_wrap=True)
        table.add_column("Value")
        for key, value in data.items():
            if value is None:
                value = Text("N/A", style="dim")
            table.add_row(key, value if isinstance(value, Text) else str(value))
        return table

    def stats_panel(self, stats: dict[str, Any], title: str, icon: str | None = None) -> Panel:
        lines = [f"[bold]{key}:[/bold] {value}" for key, value in stats.items()]
        return Panel(
            "\n".join(lines),
            title=f"{icon} {title}" if icon else title,
            border_style="cyan",
            box=ROUNDED,
            padding=(1, 2),
        )

    def releases_table(
        self,
        releases: Iterable["NewRelease"],
        title: str,
        series_names: dict[str, str] | None = None,
        providers: dict[str, "ProviderInfo"] | None = None,
    ) -> Table:
        """
        Table of releases in the given order.

        Args:
            releases: Releases to list
            title: Table title
            series_names: Tracked series id -> name; adds ID and Series columns
            providers: Release id -> provider descriptor; adds a Provider column
        """
        table = self.create_table(title)
        if series_names is not None:
            table.add_column("ID", style="muted", no_wrap=True)
            table.add_column("Series")
        table.add_column("#", style="sequence", justify="right")
        table.add_column("Title", style="title")
        table.add_column("Author", style="author")
        table.add_column("Release", justify="right")
        if providers is not None:
            table.add_column("Provider")
        else:
            table.add_column("ASIN", style="asin")

        for release in releases:
            row: list[Any] = []
            if series_names is not None:
                row += [release.id, series_names.get(release.tracked_series_id, "Unknown Series")]
            row += [
                release.sequence or "-",
                Text(release.title, style="dim") if release.dismissed else release.title,
                release.author or "-",
                release.release_date or "-",
            ]
            row.append(self.provider_badge(providers[release.id]) if providers is not None else release.asin)
            table.add_row(*row)
        return table

    @staticmethod
    def provider_badge(info: "ProviderInfo") -> Text:
        """Provider label in its color, linked to the store page when there is one."""
        style = info.color
        if info.url:
            style = f"{style} link {info.url}"
        return Text(info.label, style=style)

    @staticmethod
    def timestamp(dt: datetime | None) -> Text:
        if dt is None:
            return Text("never", style="dim")
        return Text(dt.strftime("%Y-%m-%d %H:%M"), style="muted")


ui = UIHelper(console)

__all__ = ["console", "ui", "Icons", "UIHelper", "SERIESWATCH_THEME"]
