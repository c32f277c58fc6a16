"""
Series tracking operations for a user-facing layer (CLI, HTTP, ...).
"""

import asyncio
import logging

from .catalog.models import ProviderInfo
from .catalog.provider import describe_provider
from .catalog.regions import DEFAULT_REGION, normalize_region
from .library import LibrarySource
from .scheduler import ReleaseScheduler
from .series.resolver import SeriesIdentityResolver
from .tracking.models import NewRelease, TrackedSeries
from .tracking.store import TrackingStore

logger = logging.getLogger(__name__)


class SeriesNotFoundError(LookupError):
    """The library has no series with this id."""

    def __init__(self, series_id: str):
        super().__init__(series_id)
        self.series_id = series_id

    def __str__(self) -> str:
        return f"Series not found: {self.series_id}"


class SeriesTrackingService:
    """
    Follow, unfollow, inspect and dismiss.

    Following a series resolves its catalog identity straight away and, when
    that works, starts a first check in the background.
    """

    def __init__(
        self,
        store: TrackingStore,
        scheduler: ReleaseScheduler,
        resolver: SeriesIdentityResolver,
        library: LibrarySource,
    ):
        self.store = store
        self.scheduler = scheduler
        self.resolver = resolver
        self.library = library
        self._background: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Follow / unfollow
    # -------------------------------------------------------------------------

    async def follow(self, user_id: str, series_id: str, region: str | None = None) -> TrackedSeries:
        """
        Start tracking a series for a user.

        Idempotent: following an already tracked series returns the existing
        record untouched.

        Args:
            user_id: User id
            series_id: Local series id
            region: Region to use when the library does not imply one

        Returns:
            The tracked series

        Raises:
            SeriesNotFoundError: The library does not know the series
        """
        series_name = await self.library.get_series_name(series_id)
        if series_name is None:
            logger.warning("Series not found: %s", series_id)
            raise SeriesNotFoundError(series_id)

        existing = self.store.get_by_user_and_series(user_id, series_id)
        if existing is not None:
            return existing

        library_region = await self.library.get_region_for_series(series_id)
        region = normalize_region(library_region or region or DEFAULT_REGION)

        info = await self.resolver.resolve_for_series(series_id, region)

        tracked = self.store.create_tracked_series(
            user_id,
            series_id,
            series_asin=info.asin if info else None,
            auto_tracked=False,
            region=region,
            series_name=series_name,
        )
        logger.info('User %s started following series "%s"', user_id, tracked.display_name)

        if tracked.series_asin:
            self._spawn_check(tracked.id)
        return tracked

    def _spawn_check(self, tracked_series_id: str) -> None:
        task = asyncio.create_task(self.scheduler.manual_check(tracked_series_id))
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Failed to check releases for series: %s", error)

    async def wait_for_background(self) -> None:
        """Wait for follow-triggered checks still in flight."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def unfollow(self, user_id: str, series_id: str) -> bool:
        """Stop tracking; False when the user was not tracking the series."""
        removed = self.store.remove_tracking(user_id, series_id)
        if removed:
            logger.info("User %s stopped following series %s", user_id, series_id)
        return removed

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    async def manual_check(self, tracked_series_id: str) -> list[NewRelease]:
        return await self.scheduler.manual_check(tracked_series_id)

    async def check_series_for_user(self, user_id: str, series_id: str) -> list[NewRelease] | None:
        """
        Check one of a user's tracked series now.

        Returns:
            New releases, or None when the user is not tracking the series
        """
        tracked = self.store.get_by_user_and_series(user_id, series_id)
        if tracked is None:
            return None
        return await self.scheduler.manual_check(tracked.id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_tracked_series(self, user_id: str) -> list[TrackedSeries]:
        return self.store.get_tracked_series_for_user(user_id)

    def get_tracking_status(self, user_id: str, series_id: str) -> dict:
        """Whether the user tracks a series, with the tracked record if so."""
        tracked = self.store.get_by_user_and_series(user_id, series_id)
        return {"is_tracking": tracked is not None, "tracked_series": tracked}

    def get_pending_releases(self, user_id: str, limit: int = 50) -> dict:
        """Undismissed releases, newest first, plus the total pending count."""
        return {
            "releases": self.store.get_pending_for_user(user_id, limit),
            "total": self.store.get_pending_count_for_user(user_id),
        }

    def get_series_releases(
        self, user_id: str, series_id: str, include_dismissed: bool = False
    ) -> list[NewRelease] | None:
        """Releases of one tracked series in series order; None when not tracking."""
        tracked = self.store.get_by_user_and_series(user_id, series_id)
        if tracked is None:
            return None
        return self.store.get_releases_for_tracked_series(tracked.id, include_dismissed=include_dismissed)

    def describe_release(self, release: NewRelease, region: str | None = None) -> ProviderInfo:
        """Provider descriptor (label, color, link) for a release."""
        if region is None:
            tracked = self.store.get_tracked_series(release.tracked_series_id)
            region = tracked.region if tracked else DEFAULT_REGION
        return describe_provider(release.provider, release.asin, region)

    # -------------------------------------------------------------------------
    # Dismissal
    # -------------------------------------------------------------------------

    def dismiss_release(self, user_id: str, release_id: str) -> bool:
        """Dismiss one release; False when it does not exist or is not the user's."""
        release = self.store.get_release_for_user(release_id, user_id)
        if release is None:
            return False
        return self.store.dismiss_release(release.id)

    def dismiss_all(self, user_id: str) -> int:
        count = self.store.dismiss_all_for_user(user_id)
        logger.info("User %s dismissed %d releases", user_id, count)
        return count
