"""
SQLite persistence for tracked series and new releases.

Identity and dedup rules live in the schema:
- one tracked_series row per (user_id, series_id)
- one new_releases row per (tracked_series_id, asin)
- deleting a tracked series deletes its releases

Timestamps are stored as UTC epoch seconds.
"""

import logging
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from ..series.models import ReleaseCandidate
from .models import NewRelease, TrackedSeries, new_id, sequence_sort_key

logger = logging.getLogger(__name__)


def _to_epoch(value: datetime | None) -> float | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def _from_epoch(value: float | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


class TrackingStore:
    """
    SQLite store for TrackedSeries and NewRelease records.

    Example:
        store = TrackingStore("./data/serieswatch.db")
        tracked = store.create_tracked_series("user-1", "series-1", region="uk")
        due = store.get_due_for_check(threshold)
    """

    def __init__(self, db_path: Path | str):
        """
        Initialize the store, creating the schema if needed.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS tracked_series (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    series_id TEXT NOT NULL,
                    series_name TEXT,
                    series_asin TEXT,
                    auto_tracked INTEGER NOT NULL DEFAULT 0,
                    region TEXT NOT NULL DEFAULT 'us',
                    last_checked REAL,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL,
                    UNIQUE(user_id, series_id)
                );

                CREATE INDEX IF NOT EXISTS idx_tracked_user
                    ON tracked_series(user_id);
                CREATE INDEX IF NOT EXISTS idx_tracked_series
                    ON tracked_series(series_id);
                CREATE INDEX IF NOT EXISTS idx_tracked_last_checked
                    ON tracked_series(last_checked);

                CREATE TABLE IF NOT EXISTS new_releases (
                    id TEXT PRIMARY KEY,
                    tracked_series_id TEXT NOT NULL,
                    asin TEXT NOT NULL,
                    title TEXT NOT NULL,
                    author TEXT,
                    narrator TEXT,
                    cover_url TEXT,
                    release_date TEXT,
                    sequence TEXT,
                    provider TEXT NOT NULL DEFAULT 'audible',
                    dismissed INTEGER NOT NULL DEFAULT 0,
                    discovered_at REAL NOT NULL,
                    created_at REAL NOT NULL,
                    UNIQUE(tracked_series_id, asin),
                    FOREIGN KEY(tracked_series_id) REFERENCES tracked_series(id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_releases_dismissed
                    ON new_releases(dismissed);
                CREATE INDEX IF NOT EXISTS idx_releases_tracked
                    ON new_releases(tracked_series_id);
            """
            )

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper settings."""
        conn = sqlite3.connect(
            self.db_path,
            timeout=30.0,
            isolation_level=None,  # Autocommit mode
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
        finally:
            conn.close()

    @staticmethod
    def _row_to_tracked(row: sqlite3.Row) -> TrackedSeries:
        return TrackedSeries(
            id=row["id"],
            user_id=row["user_id"],
            series_id=row["series_id"],
            series_name=row["series_name"],
            series_asin=row["series_asin"],
            auto_tracked=bool(row["auto_tracked"]),
            region=row["region"],
            last_checked=_from_epoch(row["last_checked"]),
            created_at=_from_epoch(row["created_at"]),
            updated_at=_from_epoch(row["updated_at"]),
        )

    @staticmethod
    def _row_to_release(row: sqlite3.Row) -> NewRelease:
        return NewRelease(
            id=row["id"],
            tracked_series_id=row["tracked_series_id"],
            asin=row["asin"],
            title=row["title"],
            author=row["author"],
            narrator=row["narrator"],
            cover_url=row["cover_url"],
            release_date=row["release_date"],
            sequence=row["sequence"],
            provider=row["provider"],
            dismissed=bool(row["dismissed"]),
            discovered_at=_from_epoch(row["discovered_at"]),
            created_at=_from_epoch(row["created_at"]),
        )

    # -------------------------------------------------------------------------
    # Tracked Series
    # -------------------------------------------------------------------------

    def create_tracked_series(
        self,
        user_id: str,
        series_id: str,
        series_asin: str | None = None,
        auto_tracked: bool = False,
        region: str = "us",
        series_name: str | None = None,
    ) -> TrackedSeries:
        """
        Start tracking a series for a user.

        Idempotent: when the user already tracks the series, the existing
        row is returned unchanged.

        Returns:
            The tracked series row
        """
        now = time.time()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO tracked_series
                    (id, user_id, series_id, series_name, series_asin, auto_tracked, region,
                     last_checked, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, NULL, ?, ?)
                ON CONFLICT(user_id, series_id) DO NOTHING
            """,
                (new_id(), user_id, series_id, series_name, series_asin, int(auto_tracked), region or "us", now, now),
            )
            if cursor.rowcount:
                logger.debug("Created tracked series for user %s, series %s", user_id, series_id)
            row = conn.execute(
                "SELECT * FROM tracked_series WHERE user_id = ? AND series_id = ?",
                (user_id, series_id),
            ).fetchone()
        return self._row_to_tracked(row)

    def get_tracked_series(self, tracked_series_id: str) -> TrackedSeries | None:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM tracked_series WHERE id = ?", (tracked_series_id,)).fetchone()
        return self._row_to_tracked(row) if row else None

    def get_by_user_and_series(self, user_id: str, series_id: str) -> TrackedSeries | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM tracked_series WHERE user_id = ? AND series_id = ?",
                (user_id, series_id),
            ).fetchone()
        return self._row_to_tracked(row) if row else None

    def is_tracking(self, user_id: str, series_id: str) -> bool:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM tracked_series WHERE user_id = ? AND series_id = ?",
                (user_id, series_id),
            ).fetchone()
        return row is not None

    def get_tracked_series_for_user(self, user_id: str) -> list[TrackedSeries]:
        """All series a user tracks, most recently followed first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM tracked_series WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_tracked(row) for row in rows]

    def get_due_for_check(self, threshold: datetime, limit: int = 100) -> list[TrackedSeries]:
        """
        Tracked series never checked or last checked before threshold.

        Never-checked rows come first, then the longest-unchecked.

        Args:
            threshold: Rows checked at or after this instant are not due
            limit: Maximum rows returned

        Returns:
            Due rows in check order
        """
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM tracked_series
                WHERE last_checked IS NULL OR last_checked < ?
                ORDER BY last_checked IS NOT NULL, last_checked ASC, created_at ASC
                LIMIT ?
            """,
                (_to_epoch(threshold), limit),
            ).fetchall()
        return [self._row_to_tracked(row) for row in rows]

    def remove_tracking(self, user_id: str, series_id: str) -> bool:
        """Stop tracking; returns True if a row was removed."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM tracked_series WHERE user_id = ? AND series_id = ?",
                (user_id, series_id),
            )
            return cursor.rowcount > 0

    def update_last_checked(self, tracked_series_id: str, when: datetime | None = None) -> None:
        checked = _to_epoch(when) if when else time.time()
        with self._get_connection() as conn:
            conn.execute(
                "UPDATE tracked_series SET last_checked = ?, updated_at = ? WHERE id = ?",
                (checked, time.time(), tracked_series_id),
            )

    def update_series_asin(self, tracked_series_id: str, series_asin: str) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "UPDATE tracked_series SET series_asin = ?, updated_at = ? WHERE id = ?",
                (series_asin, time.time(), tracked_series_id),
            )

    def remove_user(self, user_id: str) -> int:
        """Delete every tracked series of a deleted user (releases cascade)."""
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM tracked_series WHERE user_id = ?", (user_id,))
            return cursor.rowcount

    def remove_series(self, series_id: str) -> int:
        """Delete every tracked series pointing at a deleted local series (releases cascade)."""
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM tracked_series WHERE series_id = ?", (series_id,))
            return cursor.rowcount

    # -------------------------------------------------------------------------
    # New Releases
    # -------------------------------------------------------------------------

    def create_new_release(self, tracked_series_id: str, candidate: ReleaseCandidate) -> NewRelease | None:
        """
        Record a release for a tracked series.

        Returns:
            The new row, or None when this asin was already recorded for the
            tracked series
        """
        release = NewRelease(
            tracked_series_id=tracked_series_id,
            asin=candidate.asin.upper(),
            title=candidate.title,
            author=candidate.author or None,
            narrator=candidate.narrator or None,
            cover_url=candidate.cover_url or None,
            release_date=candidate.release_date or None,
            sequence=candidate.sequence or None,
            provider=candidate.provider or "audible",
        )
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO new_releases
                    (id, tracked_series_id, asin, title, author, narrator, cover_url, release_date,
                     sequence, provider, dismissed, discovered_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
                ON CONFLICT(tracked_series_id, asin) DO NOTHING
            """,
                (
                    release.id,
                    release.tracked_series_id,
                    release.asin,
                    release.title,
                    release.author,
                    release.narrator,
                    release.cover_url,
                    release.release_date,
                    release.sequence,
                    release.provider,
                    _to_epoch(release.discovered_at),
                    _to_epoch(release.created_at),
                ),
            )
            if cursor.rowcount == 0:
                return None
        return release

    def release_exists(self, tracked_series_id: str, asin: str) -> bool:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM new_releases WHERE tracked_series_id = ? AND asin = ?",
                (tracked_series_id, asin.upper()),
            ).fetchone()
        return row is not None

    def get_release_asins(self, tracked_series_id: str) -> set[str]:
        """Every asin ever recorded for a tracked series, dismissed or not."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT asin FROM new_releases WHERE tracked_series_id = ?",
                (tracked_series_id,),
            ).fetchall()
        return {row["asin"].upper() for row in rows}

    def get_releases_for_tracked_series(
        self, tracked_series_id: str, include_dismissed: bool = False
    ) -> list[NewRelease]:
        """Releases of a tracked series ordered by series position."""
        query = "SELECT * FROM new_releases WHERE tracked_series_id = ?"
        if not include_dismissed:
            query += " AND dismissed = 0"
        query += " ORDER BY discovered_at ASC"

        with self._get_connection() as conn:
            rows = conn.execute(query, (tracked_series_id,)).fetchall()
        releases = [self._row_to_release(row) for row in rows]
        return sorted(releases, key=lambda r: sequence_sort_key(r.sequence))

    def get_pending_for_user(self, user_id: str, limit: int = 50) -> list[NewRelease]:
        """Undismissed releases across a user's tracked series, newest first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT r.* FROM new_releases r
                JOIN tracked_series t ON t.id = r.tracked_series_id
                WHERE t.user_id = ? AND r.dismissed = 0
                ORDER BY r.discovered_at DESC, r.rowid DESC
                LIMIT ?
            """,
                (user_id, limit),
            ).fetchall()
        return [self._row_to_release(row) for row in rows]

    def get_pending_count_for_user(self, user_id: str) -> int:
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) as count FROM new_releases r
                JOIN tracked_series t ON t.id = r.tracked_series_id
                WHERE t.user_id = ? AND r.dismissed = 0
            """,
                (user_id,),
            ).fetchone()
        return row["count"]

    def get_release_for_user(self, release_id: str, user_id: str) -> NewRelease | None:
        """A release, only if it belongs to one of the user's tracked series."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT r.* FROM new_releases r
                JOIN tracked_series t ON t.id = r.tracked_series_id
                WHERE r.id = ? AND t.user_id = ?
            """,
                (release_id, user_id),
            ).fetchone()
        return self._row_to_release(row) if row else None

    def dismiss_release(self, release_id: str) -> bool:
        """Mark a release dismissed; returns True if the release exists."""
        with self._get_connection() as conn:
            cursor = conn.execute("UPDATE new_releases SET dismissed = 1 WHERE id = ?", (release_id,))
            return cursor.rowcount > 0

    def dismiss_all_for_user(self, user_id: str) -> int:
        """Dismiss every pending release of a user; returns the number dismissed."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE new_releases SET dismissed = 1
                WHERE dismissed = 0 AND tracked_series_id IN (
                    SELECT id FROM tracked_series WHERE user_id = ?
                )
            """,
                (user_id,),
            )
            return cursor.rowcount
