"""
Series identity resolution and release detection.
"""

from .diff import ReleaseDiffEngine, diff_entries
from .models import ReleaseCandidate
from .resolver import SeriesIdentityResolver

__all__ = [
    "ReleaseCandidate",
    "ReleaseDiffEngine",
    "SeriesIdentityResolver",
    "diff_entries",
]
