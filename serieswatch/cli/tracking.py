"""
Series tracking CLI commands.

Commands:
- follow: Start tracking a series
- unfollow: Stop tracking a series
- list: List tracked series
- status: Show whether a series is tracked
- check: Check a tracked series for new releases now
"""

import typer

from serieswatch.cli.common import USER_OPTION, Icons, cli_errors, console, open_runtime, run_async, ui
from serieswatch.tracking import NewRelease, TrackedSeries

# Create tracking sub-app
track_app = typer.Typer(help="🔔 Follow series and check them for new releases")


def _print_releases(releases: list[NewRelease]) -> None:
    console.print(ui.releases_table(releases, title=f"{Icons.NEW} New releases ({len(releases)})"))


@track_app.command("follow")
def track_follow(
    series_id: str = typer.Argument(..., help="Library series ID"),
    user: str = USER_OPTION,
    region: str | None = typer.Option(None, "--region", "-r", help="Region when the library implies none"),
):
    """Start tracking a series and run a first check."""

    async def _follow() -> tuple[TrackedSeries, list[NewRelease]]:
        async with open_runtime() as runtime:
            tracked = await runtime.service.follow(user, series_id, region)
            await runtime.service.wait_for_background()
            releases = runtime.service.get_series_releases(user, series_id) or []
            return tracked, releases

    with cli_errors("Follow"), ui.spinner("Resolving series..."):
        tracked, releases = run_async(_follow())

    ui.success(f"Following [bold]{tracked.display_name}[/bold]", details=f"region: {tracked.region}")
    if not tracked.is_resolved:
        ui.warning("Series not found in the catalog yet", details="It will be retried on the next sweep")
    elif releases:
        _print_releases(releases)
    else:
        ui.info("No new releases")


@track_app.command("unfollow")
def track_unfollow(
    series_id: str = typer.Argument(..., help="Library series ID"),
    user: str = USER_OPTION,
):
    """Stop tracking a series."""

    async def _unfollow() -> bool:
        async with open_runtime() as runtime:
            return await runtime.service.unfollow(user, series_id)

    with cli_errors("Unfollow"):
        removed = run_async(_unfollow())

    if not removed:
        ui.warning(f"Not tracking series {series_id}")
        raise typer.Exit(1)
    ui.success(f"Stopped tracking series {series_id}")


@track_app.command("list")
def track_list(user: str = USER_OPTION):
    """List tracked series, most recently followed first."""

    async def _list() -> list[tuple[TrackedSeries, int]]:
        async with open_runtime() as runtime:
            rows = []
            for tracked in runtime.service.get_tracked_series(user):
                releases = runtime.store.get_releases_for_tracked_series(tracked.id)
                rows.append((tracked, len(releases)))
            return rows

    with cli_errors("List"):
        rows = run_async(_list())

    if not rows:
        ui.muted("Not tracking any series")
        return

    table = ui.create_table(title=f"{Icons.BOOK} Tracked series ({len(rows)})")
    table.add_column("Series", style="title")
    table.add_column("Series ID", style="muted")
    table.add_column("Series ASIN", style="asin")
    table.add_column("Region")
    table.add_column("Last checked")
    table.add_column("Pending", justify="right", style="pending")

    for tracked, pending in rows:
        table.add_row(
            tracked.display_name,
            tracked.series_id,
            tracked.series_asin or "[dim]unresolved[/dim]",
            tracked.region,
            ui.timestamp(tracked.last_checked),
            str(pending),
        )
    console.print(table)


@track_app.command("status")
def track_status(
    series_id: str = typer.Argument(..., help="Library series ID"),
    user: str = USER_OPTION,
):
    """Show whether a series is tracked."""

    async def _status() -> dict:
        async with open_runtime() as runtime:
            return runtime.service.get_tracking_status(user, series_id)

    with cli_errors("Status"):
        status = run_async(_status())

    tracked: TrackedSeries | None = status["tracked_series"]
    if tracked is None:
        ui.muted(f"Not tracking series {series_id}")
        return

    console.print(
        ui.key_value_table(
            {
                "Series": tracked.display_name,
                "Series ID": tracked.series_id,
                "Series ASIN": tracked.series_asin,
                "Region": tracked.region,
                "Auto-tracked": "yes" if tracked.auto_tracked else "no",
                "Last checked": ui.timestamp(tracked.last_checked),
                "Following since": ui.timestamp(tracked.created_at),
            },
            title=f"{Icons.SUCCESS} Tracking",
        )
    )


@track_app.command("check")
def track_check(
    series_id: str = typer.Argument(..., help="Library series ID"),
    user: str = USER_OPTION,
):
    """Check a tracked series for new releases now."""

    async def _check() -> list[NewRelease] | None:
        async with open_runtime() as runtime:
            return await runtime.service.check_series_for_user(user, series_id)

    with cli_errors("Check"), ui.spinner("Checking series..."):
        releases = run_async(_check())

    if releases is None:
        ui.warning(f"Not tracking series {series_id}")
        raise typer.Exit(1)
    if releases:
        _print_releases(releases)
    else:
        ui.info("No new releases")
