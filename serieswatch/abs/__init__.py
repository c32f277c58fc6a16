"""
Audiobookshelf library collaborator.
"""

from .client import ABSAuthError, ABSConnectionError, ABSError, ABSNotFoundError, AsyncABSClient
from .library import AbsLibrary, series_filter
from .models import Library, LibraryItem, LibraryItemsResponse, SeriesResponse

__all__ = [
    "AsyncABSClient",
    "AbsLibrary",
    "series_filter",
    # Exceptions
    "ABSError",
    "ABSAuthError",
    "ABSConnectionError",
    "ABSNotFoundError",
    # Models
    "Library",
    "LibraryItem",
    "LibraryItemsResponse",
    "SeriesResponse",
]
