"""
Release notifications and update events.
"""

from .events import RELEASES_UPDATED, ReleaseEvents
from .notifier import RELEASE_EVENT, CompositeNotifier, LogNotifier, Notifier, WebhookNotifier

__all__ = [
    "Notifier",
    "LogNotifier",
    "WebhookNotifier",
    "CompositeNotifier",
    "ReleaseEvents",
    "RELEASE_EVENT",
    "RELEASES_UPDATED",
]
