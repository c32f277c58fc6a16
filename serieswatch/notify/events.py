"""
In-process signal telling listeners that a user's pending releases changed.
"""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

RELEASES_UPDATED = "new_releases_updated"

Subscriber = Callable[[str, str], None]


class ReleaseEvents:
    """Synchronous publish/subscribe for release updates."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        """Register callback(event_name, user_id)."""
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def emit_releases_updated(self, user_id: str) -> None:
        """Tell every subscriber that user_id has new pending releases."""
        for callback in list(self._subscribers):
            try:
                callback(RELEASES_UPDATED, user_id)
            except Exception:
                logger.exception("Release event subscriber failed")
