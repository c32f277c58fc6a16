"""
Durable records of followed series and surfaced releases.
"""

from .models import NewRelease, TrackedSeries, sequence_sort_key
from .store import TrackingStore

__all__ = ["TrackedSeries", "NewRelease", "TrackingStore", "sequence_sort_key"]
