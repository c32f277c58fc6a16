"""
Scheduled new-release detection.

A daily sweep walks the tracked series that are due for a check, one at a
time with a pause between series, and records what is new. Manual checks
run the same per-series work on demand.

Usage:
    scheduler = ReleaseScheduler(store, resolver, diff_engine, notifier, events)
    scheduler.start()          # arm the daily schedule
    await scheduler.run_once() # or sweep right now
"""

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytz
from croniter import croniter

from .notify.events import ReleaseEvents
from .notify.notifier import Notifier
from .series.diff import ReleaseDiffEngine
from .series.resolver import SeriesIdentityResolver
from .tracking.models import NewRelease, TrackedSeries
from .tracking.store import TrackingStore

logger = logging.getLogger(__name__)

DEFAULT_CRON = "0 4 * * *"
DEFAULT_BATCH_SIZE = 100
DEFAULT_STALE_AFTER = timedelta(hours=24)
DEFAULT_ITEM_DELAY = 2.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SweepResult:
    """Outcome of one sweep."""

    checked: int = 0
    new_releases: int = 0
    failed: int = 0
    skipped: bool = False  # another sweep was already running


class ReleaseScheduler:
    """
    Daily, single-flight sweep over due tracked series.

    Only one sweep runs at a time; a sweep triggered while another is in
    progress returns immediately without touching anything. Manual checks
    bypass that guard.
    """

    def __init__(
        self,
        store: TrackingStore,
        resolver: SeriesIdentityResolver,
        diff_engine: ReleaseDiffEngine,
        notifier: Notifier,
        events: ReleaseEvents,
        *,
        cron: str = DEFAULT_CRON,
        batch_size: int = DEFAULT_BATCH_SIZE,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        item_delay: float = DEFAULT_ITEM_DELAY,
        timezone: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize the scheduler.

        Args:
            store: Tracking store
            resolver: Series identity resolver
            diff_engine: Release diff engine
            notifier: Release notifier
            events: Release update signal
            cron: Schedule expression for the daily sweep
            batch_size: Maximum series checked per sweep
            stale_after: A series is due once its last check is older than this
            item_delay: Pause in seconds between two series of a sweep
            timezone: Timezone the cron expression is read in (None = local time)
            clock: Source of the current UTC time

        Raises:
            ValueError: Invalid cron expression or timezone
        """
        if not croniter.is_valid(cron):
            raise ValueError(f"Invalid cron schedule '{cron}'")

        self.store = store
        self.resolver = resolver
        self.diff_engine = diff_engine
        self.notifier = notifier
        self.events = events

        self.cron = cron
        self.batch_size = batch_size
        self.stale_after = stale_after
        self.item_delay = item_delay
        self._clock = clock

        try:
            self._tz = pytz.timezone(timezone) if timezone else None
        except pytz.exceptions.UnknownTimeZoneError as e:
            raise ValueError(f"Unknown timezone '{timezone}'") from e

        self.is_running = False
        self._schedule_task: asyncio.Task | None = None
        self._sweeps: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Schedule
    # -------------------------------------------------------------------------

    @property
    def armed(self) -> bool:
        return self._schedule_task is not None and not self._schedule_task.done()

    def _local_now(self) -> datetime:
        if self._tz is None:
            return datetime.now().astimezone()
        return datetime.now(self._tz)

    def next_run(self) -> datetime:
        """Next time the schedule fires."""
        return croniter(self.cron, self._local_now()).get_next(datetime)

    def start(self) -> None:
        """Arm the daily schedule. Must be called from a running event loop."""
        if self.armed:
            return
        logger.info("Initializing new release detection (schedule: %s)", self.cron)
        self._schedule_task = asyncio.create_task(self._schedule_loop(), name="serieswatch-schedule")

    def stop(self) -> None:
        """Disarm the schedule. A sweep already in progress keeps running."""
        if self._schedule_task is not None:
            self._schedule_task.cancel()
            self._schedule_task = None

    async def _schedule_loop(self) -> None:
        cron = croniter(self.cron, self._local_now())
        while True:
            next_run = cron.get_next(datetime)
            delay = max(0.0, (next_run - self._local_now()).total_seconds())
            logger.info("Next new release check at %s", next_run.strftime("%Y-%m-%d %H:%M:%S %Z"))
            await asyncio.sleep(delay)

            # Sweeps run as their own tasks so disarming never cancels one midway
            task = asyncio.create_task(self.run_once(), name="serieswatch-sweep")
            self._sweeps.add(task)
            task.add_done_callback(self._sweeps.discard)

    async def wait_for_sweeps(self) -> None:
        """Wait for schedule-triggered sweeps that are still in flight."""
        if self._sweeps:
            await asyncio.gather(*self._sweeps, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Sweep
    # -------------------------------------------------------------------------

    async def run_once(self) -> SweepResult:
        """
        Check every due tracked series, one after another.

        Returns:
            SweepResult; skipped=True when another sweep was already running
        """
        if self.is_running:
            logger.warning("New release check already running, skipping")
            return SweepResult(skipped=True)

        self.is_running = True
        result = SweepResult()
        logger.info("Starting scheduled new release check")

        try:
            threshold = self._clock() - self.stale_after
            due = self.store.get_due_for_check(threshold, self.batch_size)
            logger.info("Found %d series due for check", len(due))

            for index, tracked in enumerate(due):
                if index and self.item_delay > 0:
                    await asyncio.sleep(self.item_delay)
                created, ok = await self._check(tracked)
                result.checked += 1
                result.new_releases += len(created)
                if not ok:
                    result.failed += 1

            logger.info(
                "Scheduled check completed: %d checked, %d new releases, %d failed",
                result.checked,
                result.new_releases,
                result.failed,
            )
        except Exception:
            logger.exception("Error during scheduled new release check")
        finally:
            self.is_running = False

        return result

    # -------------------------------------------------------------------------
    # Per-series check
    # -------------------------------------------------------------------------

    async def check_series(self, tracked: TrackedSeries) -> list[NewRelease]:
        """
        Resolve, diff and record new releases for one tracked series.

        Never raises; a failed check is logged and still counts as checked.

        Returns:
            Releases created by this check
        """
        created, _ = await self._check(tracked)
        return created

    async def manual_check(self, tracked_series_id: str) -> list[NewRelease]:
        """
        Check one tracked series now.

        Runs outside the sweep's single-flight guard, batch limit and
        inter-series delay.
        """
        tracked = self.store.get_tracked_series(tracked_series_id)
        if tracked is None:
            logger.warning("Tracked series not found: %s", tracked_series_id)
            return []
        return await self.check_series(tracked)

    async def _check(self, tracked: TrackedSeries) -> tuple[list[NewRelease], bool]:
        name = tracked.display_name
        logger.debug('Checking series "%s" for new releases', name)

        try:
            if not tracked.series_asin:
                series_asin = await self.resolver.resolve(tracked)
                if not series_asin:
                    logger.debug('Could not find series ASIN for "%s"', name)
                    self.store.update_last_checked(tracked.id)
                    return [], True
                self.store.update_series_asin(tracked.id, series_asin)
                tracked = tracked.model_copy(update={"series_asin": series_asin})

            candidates = await self.diff_engine.find_new_releases(tracked)

            created: list[NewRelease] = []
            for candidate in candidates:
                release = self.store.create_new_release(tracked.id, candidate)
                if release is None:
                    logger.debug("Release already exists: %s", candidate.asin)
                    continue
                created.append(release)
                logger.info('New release found: "%s" in series "%s"', release.title, name)

            self.store.update_last_checked(tracked.id)

            if created:
                await self._announce(tracked, created)

            return created, True

        except Exception:
            logger.exception('Error checking series "%s"', name)
            try:
                self.store.update_last_checked(tracked.id)
            except sqlite3.Error:
                logger.exception("Could not update last check time of %s", tracked.id)
            return [], False

    async def _announce(self, tracked: TrackedSeries, releases: list[NewRelease]) -> None:
        try:
            await self.notifier.notify(tracked, releases)
        except Exception:
            logger.exception('Notification failed for series "%s"', tracked.display_name)

        try:
            self.events.emit_releases_updated(tracked.user_id)
        except Exception:
            logger.exception("Release update event failed for user %s", tracked.user_id)
