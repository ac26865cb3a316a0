"""Free-space history with age-based compaction.

Older snapshots are averaged into coarser time buckets as they age:

=================  ===============
Age                Resolution kept
=================  ===============
under 24 hours     every point
1 to 7 days        one per hour
7 to 30 days       one per day
30 to 365 days     one per week
1 to 10 years      one per month
10 years and more  one per year
=================  ===============

Bucket boundaries are computed in UTC.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from diskmap.models.snapshot import DiskSpaceSnapshot
from diskmap.storage import load_disk_space_history, save_disk_space_history

log = logging.getLogger(__name__)

BucketKey = Callable[[datetime], datetime]


def _hour(d: datetime) -> datetime:
    return d.replace(minute=0, second=0, microsecond=0)


def _day(d: datetime) -> datetime:
    return d.replace(hour=0, minute=0, second=0, microsecond=0)


def _week(d: datetime) -> datetime:
    return _day(d) - timedelta(days=d.weekday())


def _month(d: datetime) -> datetime:
    return _day(d).replace(day=1)


def _year(d: datetime) -> datetime:
    return _month(d).replace(month=1)


# (maximum age, bucket) from finest to coarsest; None keeps every point.
_TIERS: tuple[tuple[timedelta | None, BucketKey | None], ...] = (
    (timedelta(hours=24), None),
    (timedelta(days=7), _hour),
    (timedelta(days=30), _day),
    (timedelta(days=365), _week),
    (timedelta(days=3650), _month),
    (None, _year),
)


def _bucket_average(snapshots: list[DiskSpaceSnapshot], key: BucketKey) -> list[DiskSpaceSnapshot]:
    """Average each bucket into one snapshot dated at the bucket's middle element."""
    groups: dict[datetime, list[DiskSpaceSnapshot]] = {}
    for snap in snapshots:
        groups.setdefault(key(snap.date.astimezone(timezone.utc)), []).append(snap)

    result = []
    for group in groups.values():
        group.sort(key=lambda s: s.date)
        average = sum(s.free_bytes for s in group) // len(group)
        result.append(DiskSpaceSnapshot(date=group[len(group) // 2].date, free_bytes=average))
    return result


def compact(snapshots: Iterable[DiskSpaceSnapshot], now: datetime | None = None) -> list[DiskSpaceSnapshot]:
    """Return ``snapshots`` thinned out by age, oldest first."""
    now = now or datetime.now(timezone.utc)
    remaining = list(snapshots)
    result: list[DiskSpaceSnapshot] = []

    for max_age, key in _TIERS:
        if max_age is None:
            tier, remaining = remaining, []
        else:
            cutoff = now - max_age
            tier = [s for s in remaining if s.date >= cutoff]
            remaining = [s for s in remaining if s.date < cutoff]
        result.extend(tier if key is None else _bucket_average(tier, key))

    result.sort(key=lambda s: s.date)
    return result


class DiskSpaceHistory:
    """Persisted free-space snapshots, compacted on every record."""

    def __init__(self) -> None:
        snapshots = []
        for record in load_disk_space_history():
            try:
                snapshots.append(DiskSpaceSnapshot.from_dict(record))
            except (KeyError, TypeError, ValueError):
                log.warning("Ignoring malformed disk space snapshot: %r", record)
        self._snapshots = sorted(snapshots, key=lambda s: s.date)

    @property
    def snapshots(self) -> list[DiskSpaceSnapshot]:
        return list(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    def record(self, free_bytes: int, now: datetime | None = None) -> DiskSpaceSnapshot:
        now = now or datetime.now(timezone.utc)
        snapshot = DiskSpaceSnapshot(date=now, free_bytes=free_bytes)
        self._snapshots.append(snapshot)
        self._snapshots = compact(self._snapshots, now)
        save_disk_space_history([s.to_dict() for s in self._snapshots])
        return snapshot

    def record_free_space(self, path: str) -> DiskSpaceSnapshot | None:
        """Record the free space of the volume holding ``path``."""
        try:
            free = shutil.disk_usage(path).free
        except OSError as e:
            log.warning("Cannot read free space for %s: %s", path, e)
            return None
        log.debug("Free space on %s: %d bytes", path, free)
        return self.record(free)
