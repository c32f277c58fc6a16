"""
Common utilities shared across CLI commands.

This module provides:
- Factory functions for the cache, store, catalog provider and library
- The assembled runtime (service + scheduler) used by commands
- Error mapping to exit codes
"""

import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass
from datetime import timedelta

import typer

from serieswatch.abs import ABSError, AbsLibrary, AsyncABSClient
from serieswatch.cache import SQLiteCache
from serieswatch.catalog import CatalogProvider, UnknownProviderError, get_provider_class
from serieswatch.config import get_settings
from serieswatch.library import LibrarySource
from serieswatch.notify import CompositeNotifier, LogNotifier, Notifier, ReleaseEvents, WebhookNotifier
from serieswatch.scheduler import ReleaseScheduler
from serieswatch.series import ReleaseDiffEngine, SeriesIdentityResolver
from serieswatch.service import SeriesNotFoundError, SeriesTrackingService
from serieswatch.tracking import TrackingStore
from serieswatch.utils.ui import Icons, console, ui

from .async_utils import run_async

__all__ = [
    "Icons",
    "Runtime",
    "USER_OPTION",
    "cli_errors",
    "console",
    "get_cache",
    "get_library",
    "get_notifier",
    "get_provider",
    "get_store",
    "logger",
    "open_provider",
    "open_runtime",
    "run_async",
    "ui",
]

logger = logging.getLogger(__name__)

USER_OPTION = typer.Option("local", "--user", "-u", envvar="SERIESWATCH_USER", help="User the command acts for")

# Global cache instance (lazy-loaded)
_cache: SQLiteCache | None = None


def get_cache() -> SQLiteCache | None:
    """Get shared SQLite cache instance.

    Returns:
        SQLiteCache instance if caching is enabled, else None
    """
    global _cache
    settings = get_settings()

    if not settings.cache.enabled:
        return None

    if _cache is None or _cache.db_path != settings.cache.db_path:
        _cache = SQLiteCache(
            db_path=settings.cache.db_path,
            default_ttl_hours=settings.catalog.cache_ttl_hours,
            max_memory_entries=settings.cache.max_memory_entries,
        )

    return _cache


def get_store() -> TrackingStore:
    return TrackingStore(get_settings().store.db_path)


def get_provider() -> CatalogProvider:
    """Get the configured catalog provider.

    Raises:
        UnknownProviderError: The configured provider tag is not registered
    """
    settings = get_settings()
    provider_cls = get_provider_class(settings.catalog.provider)
    return provider_cls(
        audnexus_url=settings.catalog.audnexus_url,
        timeout=settings.catalog.timeout,
        cache=get_cache(),
        cache_ttl_hours=settings.catalog.cache_ttl_hours,
    )


def get_library() -> LibrarySource:
    """Get the Audiobookshelf-backed library collaborator."""
    settings = get_settings()
    client = AsyncABSClient(
        host=settings.abs.host,
        api_key=settings.abs.api_key,
        timeout=settings.abs.timeout,
        rate_limit_delay=settings.abs.rate_limit_delay,
    )
    return AbsLibrary(client)


def get_notifier() -> Notifier:
    """Build the notifier chain from settings (log and/or webhook)."""
    settings = get_settings()
    notifiers: list[Notifier] = []
    if settings.notify.log_releases:
        notifiers.append(LogNotifier())
    if settings.notify.webhook_url:
        notifiers.append(WebhookNotifier(settings.notify.webhook_url, timeout=settings.notify.timeout))
    return CompositeNotifier(notifiers)


@dataclass
class Runtime:
    """Everything a command needs, wired from settings."""

    store: TrackingStore
    provider: CatalogProvider
    library: LibrarySource
    notifier: Notifier
    events: ReleaseEvents
    scheduler: ReleaseScheduler
    service: SeriesTrackingService

    async def close(self) -> None:
        self.scheduler.stop()
        await self.service.wait_for_background()
        await self.notifier.close()
        await self.library.close()
        await self.provider.close()


def build_runtime() -> Runtime:
    settings = get_settings()

    store = get_store()
    provider = get_provider()
    library = get_library()
    notifier = get_notifier()
    events = ReleaseEvents()

    resolver = SeriesIdentityResolver(provider, library)
    diff_engine = ReleaseDiffEngine(provider, library, store)
    scheduler = ReleaseScheduler(
        store,
        resolver,
        diff_engine,
        notifier,
        events,
        cron=settings.scheduler.cron,
        batch_size=settings.scheduler.batch_size,
        stale_after=timedelta(hours=settings.scheduler.stale_hours),
        item_delay=settings.scheduler.item_delay,
        timezone=settings.scheduler.timezone,
    )
    service = SeriesTrackingService(store, scheduler, resolver, library)

    return Runtime(
        store=store,
        provider=provider,
        library=library,
        notifier=notifier,
        events=events,
        scheduler=scheduler,
        service=service,
    )


@asynccontextmanager
async def open_runtime() -> AsyncIterator[Runtime]:
    runtime = build_runtime()
    try:
        yield runtime
    finally:
        await runtime.close()


@asynccontextmanager
async def open_provider() -> AsyncIterator[CatalogProvider]:
    provider = get_provider()
    try:
        yield provider
    finally:
        await provider.close()


@contextmanager
def cli_errors(action: str) -> Iterator[None]:
    """Turn failures of a command into an error line and exit code 1.

    Args:
        action: What the command was doing, for the error line
    """
    try:
        yield
    except typer.Exit:
        raise
    except (ABSError, SeriesNotFoundError, UnknownProviderError, ValueError) as e:
        # Expected errors - friendly message only, no traceback
        ui.error(f"{action} failed", details=str(e))
        logger.debug("%s failed: %s", action, e)
        raise typer.Exit(1) from e
    except Exception as e:
        ui.error(f"{action} failed", details=str(e))
        logger.exception("Unexpected error: %s", action)
        raise typer.Exit(1) from e
