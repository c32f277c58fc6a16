"""Tests for the SQLite tracking store."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from serieswatch.series import ReleaseCandidate
from serieswatch.tracking import TrackingStore, sequence_sort_key

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def candidate(asin: str, sequence: str | None = None, title: str | None = None) -> ReleaseCandidate:
    return ReleaseCandidate(asin=asin, title=title or f"Book {asin}", sequence=sequence)


class TestTrackedSeries:
    """Tests for tracked series rows."""

    def test_create_and_get(self, store: TrackingStore):
        tracked = store.create_tracked_series("u1", "s1", series_name="Saga", region="uk")

        assert tracked.user_id == "u1"
        assert tracked.series_asin is None
        assert tracked.last_checked is None
        assert tracked.region == "uk"
        assert store.get_tracked_series(tracked.id) == tracked
        assert store.get_by_user_and_series("u1", "s1") == tracked
        assert store.is_tracking("u1", "s1")
        assert not store.is_tracking("u2", "s1")

    def test_follow_is_idempotent(self, store):
        first = store.create_tracked_series("u1", "s1", series_name="Saga")
        second = store.create_tracked_series("u1", "s1", series_name="Renamed", series_asin="B0SERIES01")

        assert second.id == first.id
        assert second.series_name == "Saga"
        assert second.series_asin is None
        assert len(store.get_tracked_series_for_user("u1")) == 1

    def test_same_series_for_different_users(self, store):
        a = store.create_tracked_series("u1", "s1")
        b = store.create_tracked_series("u2", "s1")

        assert a.id != b.id

    def test_list_for_user_newest_first(self, store):
        store.create_tracked_series("u1", "s1")
        store.create_tracked_series("u1", "s2")
        store.create_tracked_series("u2", "s3")

        assert [t.series_id for t in store.get_tracked_series_for_user("u1")] == ["s2", "s1"]

    def test_remove_tracking(self, store):
        store.create_tracked_series("u1", "s1")

        assert store.remove_tracking("u1", "s1") is True
        assert store.remove_tracking("u1", "s1") is False
        assert store.get_by_user_and_series("u1", "s1") is None

    def test_update_series_asin_and_last_checked(self, store):
        tracked = store.create_tracked_series("u1", "s1")

        store.update_series_asin(tracked.id, "B0SERIES01")
        store.update_last_checked(tracked.id, NOW)

        updated = store.get_tracked_series(tracked.id)
        assert updated.series_asin == "B0SERIES01"
        assert updated.last_checked == NOW


class TestDueForCheck:
    """Tests for get_due_for_check ordering and filtering."""

    def test_never_checked_first_then_oldest(self, store):
        threshold = NOW - timedelta(hours=24)
        recent = store.create_tracked_series("u1", "recent")
        stale = store.create_tracked_series("u1", "stale")
        staler = store.create_tracked_series("u1", "staler")
        never = store.create_tracked_series("u1", "never")
        store.update_last_checked(recent.id, NOW - timedelta(hours=12))
        store.update_last_checked(stale.id, NOW - timedelta(hours=30))
        store.update_last_checked(staler.id, NOW - timedelta(hours=48))

        due = store.get_due_for_check(threshold)

        assert [t.id for t in due] == [never.id, staler.id, stale.id]

    def test_limit(self, store):
        for i in range(5):
            store.create_tracked_series("u1", f"s{i}")

        assert len(store.get_due_for_check(NOW, limit=3)) == 3

    def test_checked_exactly_at_threshold_is_not_due(self, store):
        tracked = store.create_tracked_series("u1", "s1")
        store.update_last_checked(tracked.id, NOW)

        assert store.get_due_for_check(NOW) == []


class TestNewReleases:
    """Tests for release rows."""

    def test_create_release(self, store):
        tracked = store.create_tracked_series("u1", "s1")

        release = store.create_new_release(tracked.id, candidate("b0book0001", "3"))

        assert release.asin == "B0BOOK0001"
        assert release.dismissed is False
        assert store.release_exists(tracked.id, "b0book0001")
        assert store.get_release_asins(tracked.id) == {"B0BOOK0001"}

    def test_duplicate_release_is_a_no_op(self, store):
        tracked = store.create_tracked_series("u1", "s1")

        assert store.create_new_release(tracked.id, candidate("B0BOOK0001")) is not None
        assert store.create_new_release(tracked.id, candidate("b0book0001", title="Again")) is None
        assert len(store.get_releases_for_tracked_series(tracked.id)) == 1

    def test_concurrent_inserts_create_one_row(self, store):
        tracked = store.create_tracked_series("u1", "s1")

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: store.create_new_release(tracked.id, candidate("B0BOOK0001")), range(8)))

        assert sum(r is not None for r in results) == 1
        assert store.get_release_asins(tracked.id) == {"B0BOOK0001"}

    def test_same_asin_for_two_tracked_series(self, store):
        a = store.create_tracked_series("u1", "s1")
        b = store.create_tracked_series("u2", "s1")

        assert store.create_new_release(a.id, candidate("B0BOOK0001")) is not None
        assert store.create_new_release(b.id, candidate("B0BOOK0001")) is not None

    def test_releases_sorted_by_sequence(self, store):
        tracked = store.create_tracked_series("u1", "s1")
        for asin, sequence in (("B0BOOK0010", "10"), ("B0BOOK0000", None), ("B0BOOK0002", "2"), ("B0BOOK0015", "1.5")):
            store.create_new_release(tracked.id, candidate(asin, sequence))

        releases = store.get_releases_for_tracked_series(tracked.id)

        assert [r.sequence for r in releases] == ["1.5", "2", "10", None]

    def test_dismissal_is_one_way_and_blocks_rediscovery(self, store):
        tracked = store.create_tracked_series("u1", "s1")
        release = store.create_new_release(tracked.id, candidate("B0BOOK0001"))

        assert store.dismiss_release(release.id) is True
        assert store.get_pending_for_user("u1") == []
        assert store.create_new_release(tracked.id, candidate("B0BOOK0001")) is None
        assert "B0BOOK0001" in store.get_release_asins(tracked.id)
        assert len(store.get_releases_for_tracked_series(tracked.id, include_dismissed=True)) == 1

    def test_dismiss_unknown_release(self, store):
        assert store.dismiss_release("missing") is False

    def test_pending_for_user_newest_first(self, store):
        a = store.create_tracked_series("u1", "s1")
        b = store.create_tracked_series("u1", "s2")
        other = store.create_tracked_series("u2", "s1")
        store.create_new_release(a.id, candidate("B0BOOK0001"))
        store.create_new_release(b.id, candidate("B0BOOK0002"))
        store.create_new_release(other.id, candidate("B0BOOK0003"))

        pending = store.get_pending_for_user("u1")

        assert [r.asin for r in pending] == ["B0BOOK0002", "B0BOOK0001"]
        assert store.get_pending_count_for_user("u1") == 2
        assert len(store.get_pending_for_user("u1", limit=1)) == 1

    def test_release_for_user_checks_ownership(self, store):
        tracked = store.create_tracked_series("u1", "s1")
        release = store.create_new_release(tracked.id, candidate("B0BOOK0001"))

        assert store.get_release_for_user(release.id, "u1").id == release.id
        assert store.get_release_for_user(release.id, "u2") is None

    def test_dismiss_all_for_user(self, store):
        a = store.create_tracked_series("u1", "s1")
        other = store.create_tracked_series("u2", "s1")
        store.create_new_release(a.id, candidate("B0BOOK0001"))
        store.create_new_release(a.id, candidate("B0BOOK0002"))
        store.create_new_release(other.id, candidate("B0BOOK0003"))

        assert store.dismiss_all_for_user("u1") == 2
        assert store.dismiss_all_for_user("u1") == 0
        assert store.get_pending_count_for_user("u2") == 1


class TestCascades:
    """Deleting tracked series deletes their releases."""

    def test_unfollow_deletes_releases(self, store):
        tracked = store.create_tracked_series("u1", "s1")
        store.create_new_release(tracked.id, candidate("B0BOOK0001"))

        store.remove_tracking("u1", "s1")

        assert store.get_releases_for_tracked_series(tracked.id, include_dismissed=True) == []

    def test_remove_user(self, store):
        tracked = store.create_tracked_series("u1", "s1")
        store.create_tracked_series("u1", "s2")
        store.create_tracked_series("u2", "s1")
        store.create_new_release(tracked.id, candidate("B0BOOK0001"))

        assert store.remove_user("u1") == 2
        assert store.get_pending_count_for_user("u1") == 0
        assert store.is_tracking("u2", "s1")

    def test_remove_series(self, store):
        store.create_tracked_series("u1", "s1")
        store.create_tracked_series("u2", "s1")
        store.create_tracked_series("u2", "s2")

        assert store.remove_series("s1") == 2
        assert [t.series_id for t in store.get_tracked_series_for_user("u2")] == ["s2"]


class TestSequenceSortKey:
    @pytest.mark.parametrize(
        "sequence,expected",
        [("2", (0, 2.0)), ("1.5", (0, 1.5)), (None, (1, 0.0)), ("", (1, 0.0)), ("Prequel", (1, 0.0)), ("nan", (1, 0.0))],
    )
    def test_values(self, sequence, expected):
        assert sequence_sort_key(sequence) == expected
