"""Tests for the free-space history."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from diskmap.core.history import DiskSpaceHistory, compact
from diskmap.models.snapshot import DiskSpaceSnapshot

pytestmark = pytest.mark.usefixtures("isolate_storage")

NOW = datetime(2026, 6, 17, 12, 30, tzinfo=timezone.utc)


def _snap(delta: timedelta, free: int) -> DiskSpaceSnapshot:
    return DiskSpaceSnapshot(date=NOW - delta, free_bytes=free)


class TestCompact:
    def test_recent_points_are_kept(self):
        snaps = [_snap(timedelta(minutes=m), m) for m in range(0, 600, 10)]
        assert len(compact(snaps, NOW)) == len(snaps)

    def test_hourly_buckets_after_a_day(self):
        base = timedelta(days=2)
        snaps = [_snap(base + timedelta(minutes=m), 100 * (i + 1)) for i, m in enumerate((0, 5, 10, 20))]

        result = compact(snaps, NOW)

        assert len(result) == 1
        assert result[0].free_bytes == 250
        assert result[0].date == snaps[1].date

    def test_daily_buckets_after_a_week(self):
        snaps = [_snap(timedelta(days=10, hours=h), 1000) for h in (1, 3, 5)]
        snaps += [_snap(timedelta(days=12, hours=h), 2000) for h in (1, 3)]

        result = compact(snaps, NOW)

        assert [s.free_bytes for s in result] == [2000, 1000]

    def test_weekly_buckets_after_a_month(self):
        # 2026-03-02 is a Monday
        monday = datetime(2026, 3, 2, 8, tzinfo=timezone.utc)
        snaps = [DiskSpaceSnapshot(date=monday + timedelta(days=d), free_bytes=10 * d) for d in range(7)]
        snaps.append(DiskSpaceSnapshot(date=monday + timedelta(days=7), free_bytes=999))

        result = compact(snaps, NOW)

        assert [s.free_bytes for s in result] == [30, 999]

    def test_monthly_and_yearly_buckets(self):
        snaps = [
            DiskSpaceSnapshot(date=datetime(2023, 5, d, tzinfo=timezone.utc), free_bytes=d)
            for d in (1, 10, 20)
        ]
        snaps += [
            DiskSpaceSnapshot(date=datetime(2010, m, 1, tzinfo=timezone.utc), free_bytes=m)
            for m in (1, 6, 12)
        ]

        result = compact(snaps, NOW)

        assert [(s.date.year, s.free_bytes) for s in result] == [(2010, 6), (2023, 10)]

    def test_mixed_ages_sorted_oldest_first(self):
        snaps = [
            _snap(timedelta(minutes=5), 1),
            _snap(timedelta(days=400), 2),
            _snap(timedelta(days=3), 3),
            _snap(timedelta(days=40), 4),
        ]

        result = compact(snaps, NOW)

        dates = [s.date for s in result]
        assert dates == sorted(dates)
        assert len(result) == 4

    def test_empty(self):
        assert compact([], NOW) == []


class TestDiskSpaceHistory:
    def test_starts_empty(self):
        assert DiskSpaceHistory().snapshots == []

    def test_record_appends_and_persists(self, isolate_storage):
        history = DiskSpaceHistory()
        history.record(100_000_000)
        history.record(200_000_000)

        assert [s.free_bytes for s in history.snapshots] == [100_000_000, 200_000_000]
        data = json.loads((isolate_storage / "disk_space_history.json").read_text())
        assert len(data["snapshots"]) == 2
        assert len(DiskSpaceHistory()) == 2

    def test_record_compacts_old_points(self):
        history = DiskSpaceHistory()
        old = NOW - timedelta(days=3)
        history.record(100, now=old)
        history.record(300, now=old + timedelta(minutes=10))

        history.record(50, now=NOW)

        assert [s.free_bytes for s in history.snapshots] == [200, 50]

    def test_record_free_space(self, tmp_path):
        snapshot = DiskSpaceHistory().record_free_space(str(tmp_path))
        assert snapshot.free_bytes >= 0

    def test_record_free_space_missing_path(self, tmp_path):
        history = DiskSpaceHistory()
        assert history.record_free_space(str(tmp_path / "missing")) is None
        assert len(history) == 0

    def test_malformed_entries_are_skipped(self, isolate_storage):
        (isolate_storage / "disk_space_history.json").write_text(
            json.dumps({"snapshots": [{"date": "yesterday", "free_bytes": 1}, {"free_bytes": 2}]})
        )
        assert len(DiskSpaceHistory()) == 0
