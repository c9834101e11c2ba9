"""Day-keyed archive of daily snapshots."""

import logging
from collections.abc import Iterable
from datetime import datetime, tzinfo

from yoga_of_eating.domain.history import DailySnapshot, day_key, normalize_day

_logger = logging.getLogger(__name__)


class DailyArchive:
    """Sorted, newest-first collection holding at most one snapshot per day.

    Snapshots are only ever added through ``upsert``; same-day entries are
    replaced wholesale.
    """

    def __init__(
        self,
        tz: tzinfo,
        snapshots: Iterable[DailySnapshot] = (),
        last_sync_date: datetime | None = None,
    ) -> None:
        self._tz = tz
        self._snapshots: list[DailySnapshot] = []
        self.last_sync_date = last_sync_date
        for snapshot in snapshots:
            self.upsert(snapshot)

    @property
    def tz(self) -> tzinfo:
        """Zone used for day normalization."""
        return self._tz

    @property
    def snapshots(self) -> tuple[DailySnapshot, ...]:
        """All snapshots, newest day first."""
        return tuple(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    def upsert(self, snapshot: DailySnapshot) -> None:
        """Insert a snapshot, replacing any existing one for the same day."""
        key = day_key(snapshot.date, self._tz)
        self._snapshots = [
            existing
            for existing in self._snapshots
            if day_key(existing.date, self._tz) != key
        ]
        self._snapshots.append(snapshot)
        self._snapshots.sort(
            key=lambda item: normalize_day(item.date, self._tz), reverse=True
        )

    def get(self, day: datetime) -> DailySnapshot | None:
        """Return the snapshot for the calendar day of ``day``."""
        key = day_key(day, self._tz)
        for snapshot in self._snapshots:
            if day_key(snapshot.date, self._tz) == key:
                return snapshot
        return None

    def range(self, start: datetime, end: datetime) -> list[DailySnapshot]:
        """Return snapshots between two days, both inclusive."""
        start_day = normalize_day(start, self._tz)
        end_day = normalize_day(end, self._tz)
        if start_day > end_day:
            _logger.warning(
                "Archive range start %s is after end %s", start_day, end_day
            )
            return []
        return [
            snapshot
            for snapshot in self._snapshots
            if start_day <= normalize_day(snapshot.date, self._tz) <= end_day
        ]

    def year_snapshots(self, year: int) -> list[DailySnapshot]:
        """Return the snapshots that exist for a calendar year."""
        start = datetime(year, 1, 1, tzinfo=self._tz)
        end = datetime(year, 12, 31, tzinfo=self._tz)
        return self.range(start, end)

    def mark_synced(self, when: datetime) -> None:
        """Record the time of the last successful cloud sync."""
        self.last_sync_date = when
