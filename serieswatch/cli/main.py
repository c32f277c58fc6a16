"""
serieswatch command line.

Assembles the subcommands from the serieswatch.cli modules and adds the
scheduler commands (run, sweep) and cache maintenance.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from serieswatch import __version__
from serieswatch.cli.catalog import catalog_app
from serieswatch.cli.common import Icons, cli_errors, console, get_cache, open_runtime, run_async, ui
from serieswatch.cli.releases import releases_app
from serieswatch.cli.tracking import track_app
from serieswatch.config import reload_settings
from serieswatch.scheduler import SweepResult
from serieswatch.utils.logging import PACKAGE_LOGGER_NAME, configure_logging, log_success

# Create main app
app = typer.Typer(
    name="serieswatch",
    help="🎧 New release detection for followed audiobook series",
    rich_markup_mode="rich",
)

# Register sub-apps
app.add_typer(track_app, name="track")
app.add_typer(releases_app, name="releases")
app.add_typer(catalog_app, name="catalog")

logger = logging.getLogger(__name__)

# Options of the current invocation, set by the app callback
_state: dict[str, Any] = {}


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"serieswatch {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    debug: bool = typer.Option(False, "--debug", help="Debug logging"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Info logging"),
    log_file: Path | None = typer.Option(None, "--log-file", help="Also log to this file"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Load settings and configure logging for every command."""
    try:
        settings = reload_settings(config)
    except ValidationError as e:
        ui.error("Invalid configuration", details=str(e))
        raise typer.Exit(2) from e

    debug = debug or settings.debug
    verbose = verbose or settings.verbose
    level = "debug" if debug else "info" if verbose else "warning"
    _state["log_file"] = log_file or settings.log_file

    configure_logging(
        level=level,
        file_path=_state["log_file"],
        file_level="debug" if debug else "info",
        rich_tracebacks=debug,
        show_path=debug,
    )


def _print_sweep(result: SweepResult) -> None:
    if result.skipped:
        ui.warning("A sweep is already running")
        return
    console.print(
        ui.stats_panel(
            {
                "Checked": result.checked,
                "New releases": result.new_releases,
                "Failed": result.failed,
            },
            title="Sweep",
            icon=Icons.SYNC,
        )
    )


@app.command()
def sweep():
    """Check every series due for a check, now."""

    async def _sweep() -> SweepResult:
        async with open_runtime() as runtime:
            return await runtime.scheduler.run_once()

    with cli_errors("Sweep"), ui.spinner("Checking tracked series..."):
        result = run_async(_sweep())

    _print_sweep(result)
    if result.failed:
        raise typer.Exit(1)


@app.command()
def run(
    sweep_now: bool = typer.Option(False, "--sweep-now", help="Run one sweep before waiting for the schedule"),
):
    """Arm the daily schedule and keep running until interrupted."""
    if logging.getLogger(PACKAGE_LOGGER_NAME).getEffectiveLevel() > logging.INFO:
        configure_logging(level="info", file_path=_state.get("log_file"))

    async def _serve() -> None:
        async with open_runtime() as runtime:
            scheduler = runtime.scheduler
            if sweep_now:
                _print_sweep(await scheduler.run_once())
            scheduler.start()
            log_success("Schedule armed (%s), next check at %s", scheduler.cron, scheduler.next_run())
            try:
                await asyncio.Event().wait()
            finally:
                scheduler.stop()
                await scheduler.wait_for_sweeps()

    try:
        with cli_errors("Scheduler"):
            run_async(_serve())
    except KeyboardInterrupt:
        ui.info("Stopped")


@app.command("cache")
def cache_command(
    clear: bool = typer.Option(False, "--clear", help="Clear cached catalog lookups"),
    cleanup: bool = typer.Option(False, "--cleanup", help="Remove expired entries"),
):
    """Show or maintain the catalog lookup cache."""
    cache = get_cache()
    if cache is None:
        ui.warning("Caching is disabled in settings")
        raise typer.Exit(1)

    with cli_errors("Cache"):
        if clear:
            count = cache.clear()
            ui.success(f"Cleared {count} cached items")
            return
        if cleanup:
            count = cache.cleanup_expired()
            ui.success(f"Removed {count} expired items")
            return

        stats = cache.get_stats()
        console.print(
            ui.stats_panel(
                {
                    "DB path": stats.db_path,
                    "DB size": f"{stats.db_size_mb:.2f} MB",
                    "Entries": stats.total_entries,
                    "In memory": stats.memory_entries,
                    "Expired": stats.expired_entries,
                    **{f"  {ns}": count for ns, count in stats.namespaces.items()},
                },
                title="Cache",
                icon=Icons.DATABASE,
            )
        )


if __name__ == "__main__":
    app()
