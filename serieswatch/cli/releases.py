"""
Release CLI commands.

Commands:
- list: Pending (undismissed) releases, newest first
- dismiss: Dismiss one release
- dismiss-all: Dismiss every pending release
"""

import typer

from serieswatch.catalog import ProviderInfo
from serieswatch.cli.common import USER_OPTION, Icons, cli_errors, console, open_runtime, run_async, ui
from serieswatch.tracking import NewRelease

# Create releases sub-app
releases_app = typer.Typer(help="🆕 New releases of tracked series")


@releases_app.command("list")
def releases_list(
    user: str = USER_OPTION,
    series_id: str | None = typer.Option(None, "--series", "-s", help="Only releases of this series"),
    limit: int = typer.Option(50, "--limit", "-n", help="Max releases to show"),
    all_: bool = typer.Option(False, "--all", "-a", help="Include dismissed releases (with --series)"),
):
    """List new releases."""

    async def _list() -> tuple[list[NewRelease], dict[str, str], dict[str, ProviderInfo], int] | None:
        async with open_runtime() as runtime:
            service = runtime.service
            if series_id:
                releases = service.get_series_releases(user, series_id, include_dismissed=all_)
                if releases is None:
                    return None
                total = len(releases)
            else:
                pending = service.get_pending_releases(user, limit)
                releases, total = pending["releases"], pending["total"]

            names: dict[str, str] = {}
            for release in releases:
                if release.tracked_series_id not in names:
                    tracked = runtime.store.get_tracked_series(release.tracked_series_id)
                    names[release.tracked_series_id] = tracked.display_name if tracked else "Unknown Series"
            providers = {release.id: service.describe_release(release) for release in releases}
            return releases, names, providers, total

    with cli_errors("List releases"):
        result = run_async(_list())

    if result is None:
        ui.warning(f"Not tracking series {series_id}")
        raise typer.Exit(1)

    releases, names, providers, total = result
    if not releases:
        ui.muted("No new releases")
        return

    console.print(
        ui.releases_table(
            releases,
            title=f"{Icons.NEW} New releases ({len(releases)} of {total})",
            series_names=names,
            providers=providers,
        )
    )


@releases_app.command("dismiss")
def releases_dismiss(
    release_id: str = typer.Argument(..., help="Release ID"),
    user: str = USER_OPTION,
):
    """Dismiss one release."""

    async def _dismiss() -> bool:
        async with open_runtime() as runtime:
            return runtime.service.dismiss_release(user, release_id)

    with cli_errors("Dismiss"):
        dismissed = run_async(_dismiss())

    if not dismissed:
        ui.error(f"Release {release_id} not found")
        raise typer.Exit(1)
    ui.success("Release dismissed")


@releases_app.command("dismiss-all")
def releases_dismiss_all(user: str = USER_OPTION):
    """Dismiss every pending release."""

    async def _dismiss_all() -> int:
        async with open_runtime() as runtime:
            return runtime.service.dismiss_all(user)

    with cli_errors("Dismiss"):
        count = run_async(_dismiss_all())

    ui.success(f"Dismissed {count} releases")
