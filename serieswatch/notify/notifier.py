"""
Delivery of new-release notifications.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

import httpx

from ..tracking.models import NewRelease, TrackedSeries

logger = logging.getLogger(__name__)

RELEASE_EVENT = "new_series_release"


class Notifier(ABC):
    """Announces releases recorded for a tracked series."""

    @abstractmethod
    async def notify(self, tracked: TrackedSeries, releases: Sequence[NewRelease]) -> None:
        """Deliver one notification per release."""

    async def close(self) -> None:
        """Release network resources."""


class LogNotifier(Notifier):
    """Writes one log line per release."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    async def notify(self, tracked: TrackedSeries, releases: Sequence[NewRelease]) -> None:
        for release in releases:
            position = f" #{release.sequence}" if release.sequence else ""
            logger.log(
                self.level,
                '[bold green]New release[/bold green] in "%s"%s: [bold]%s[/bold] ([cyan]%s[/cyan])',
                tracked.display_name,
                position,
                release.title,
                release.asin,
            )


class WebhookNotifier(Notifier):
    """
    POSTs a JSON event per release to a webhook URL.

    Delivery failures are logged and dropped; a release is never
    re-announced.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def notify(self, tracked: TrackedSeries, releases: Sequence[NewRelease]) -> None:
        client = self._ensure_client()
        for release in releases:
            payload = {"event": RELEASE_EVENT, **release.event_payload(tracked.series_name, tracked.series_id)}
            try:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.error("Webhook delivery failed for %s: %s", release.asin, e)
                continue
            logger.debug("Webhook delivered for %s", release.asin)


class CompositeNotifier(Notifier):
    """Fans out to several notifiers; one failing does not stop the others."""

    def __init__(self, notifiers: Sequence[Notifier]):
        self.notifiers = list(notifiers)

    async def notify(self, tracked: TrackedSeries, releases: Sequence[NewRelease]) -> None:
        for notifier in self.notifiers:
            try:
                await notifier.notify(tracked, releases)
            except Exception:
                logger.exception("Notifier %s failed", type(notifier).__name__)

    async def close(self) -> None:
        for notifier in self.notifiers:
            await notifier.close()
