"""
Caching module for catalog responses.

Provides SQLite-based caching with TTL expiration and namespaces.
"""

from .sqlite_cache import CacheStats, SQLiteCache

__all__ = ["CacheStats", "SQLiteCache"]
