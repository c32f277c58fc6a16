"""
SQLite-backed cache for catalog payloads.

Entries live in namespaces ("audnexus", ...) and expire after a TTL. The
most recently used entries are also held in memory, least recently used
evicted first.
"""

import sqlite3
import time
from collections import OrderedDict
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import orjson


@dataclass
class CacheStats:
    db_path: Path
    db_size_bytes: int
    total_entries: int
    expired_entries: int
    memory_entries: int
    namespaces: dict[str, int] = field(default_factory=dict)

    @property
    def db_size_mb(self) -> float:
        return round(self.db_size_bytes / (1024 * 1024), 2)


class SQLiteCache:
    """
    Namespaced TTL cache over a single SQLite file.

    Example:
        cache = SQLiteCache("./data/cache/cache.db")

        cache.set("audnexus", "B08XYZ1234_us", payload, ttl_seconds=3600)
        data = cache.get("audnexus", "B08XYZ1234_us")
    """

    def __init__(
        self,
        db_path: Path | str,
        default_ttl_hours: float = 12.0,
        max_memory_entries: int = 500,
    ):
        """
        Args:
            db_path: SQLite file; parent directories are created
            default_ttl_hours: TTL of entries stored without an explicit one
            max_memory_entries: Size of the in-memory LRU layer
        """
        self.db_path = Path(db_path)
        self.default_ttl_seconds = default_ttl_hours * 3600
        self.max_memory_entries = max_memory_entries

        # (namespace, key) -> (data, expires_at)
        self._memory: OrderedDict[tuple[str, str], tuple[Any, float]] = OrderedDict()

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS entries (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    data BLOB NOT NULL,
                    stored_at REAL NOT NULL,
                    expires_at REAL NOT NULL,
                    PRIMARY KEY (namespace, key)
                ) WITHOUT ROWID
            """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_entries_expires ON entries(expires_at)")

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        try:
            yield conn
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Memory layer
    # -------------------------------------------------------------------------

    def _remember(self, slot: tuple[str, str], data: Any, expires_at: float) -> None:
        self._memory[slot] = (data, expires_at)
        self._memory.move_to_end(slot)
        while len(self._memory) > self.max_memory_entries:
            self._memory.popitem(last=False)

    def _forget(self, predicate) -> None:
        for slot in [slot for slot, entry in self._memory.items() if predicate(slot, entry)]:
            del self._memory[slot]

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    def get(self, namespace: str, key: str) -> Any | None:
        """Cached data, or None when missing or expired."""
        slot = (namespace, key)
        now = time.time()

        entry = self._memory.get(slot)
        if entry is not None:
            data, expires_at = entry
            if expires_at > now:
                self._memory.move_to_end(slot)
                return data
            del self._memory[slot]

        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT data, expires_at FROM entries WHERE namespace = ? AND key = ? AND expires_at > ?",
                (namespace, key, now),
            ).fetchone()
        if row is None:
            return None

        data = orjson.loads(row["data"])
        self._remember(slot, data, row["expires_at"])
        return data

    def set(self, namespace: str, key: str, data: Any, ttl_seconds: float | None = None) -> None:
        """
        Store data, replacing any previous entry under the same key.

        Pydantic models are stored as their dumped dict.

        Args:
            namespace: Entry namespace
            key: Key within the namespace
            data: JSON-serializable data
            ttl_seconds: Lifetime; defaults to the cache-wide TTL
        """
        if hasattr(data, "model_dump"):
            data = data.model_dump()

        now = time.time()
        expires_at = now + (self.default_ttl_seconds if ttl_seconds is None else ttl_seconds)

        with self._get_connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO entries (namespace, key, data, stored_at, expires_at) VALUES (?, ?, ?, ?, ?)",
                (namespace, key, orjson.dumps(data), now, expires_at),
            )
        self._remember((namespace, key), data, expires_at)

    def delete(self, namespace: str, key: str) -> bool:
        """Remove one entry; True if it existed."""
        self._memory.pop((namespace, key), None)
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM entries WHERE namespace = ? AND key = ?", (namespace, key))
            return cursor.rowcount > 0

    def clear_namespace(self, namespace: str) -> int:
        self._forget(lambda slot, _entry: slot[0] == namespace)
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM entries WHERE namespace = ?", (namespace,))
            return cursor.rowcount

    def clear(self) -> int:
        """Remove every entry of every namespace."""
        self._memory.clear()
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM entries")
            return cursor.rowcount

    def cleanup_expired(self) -> int:
        """Remove expired entries; returns how many were stored on disk."""
        now = time.time()
        self._forget(lambda _slot, entry: entry[1] <= now)
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM entries WHERE expires_at <= ?", (now,))
            return cursor.rowcount

    def get_stats(self) -> CacheStats:
        now = time.time()
        with self._get_connection() as conn:
            namespaces = {
                row["namespace"]: row["count"]
                for row in conn.execute("SELECT namespace, COUNT(*) AS count FROM entries GROUP BY namespace")
            }
            expired = conn.execute("SELECT COUNT(*) FROM entries WHERE expires_at <= ?", (now,)).fetchone()[0]

        return CacheStats(
            db_path=self.db_path,
            db_size_bytes=self.db_path.stat().st_size if self.db_path.exists() else 0,
            total_entries=sum(namespaces.values()),
            expired_entries=expired,
            memory_entries=len(self._memory),
            namespaces=namespaces,
        )
