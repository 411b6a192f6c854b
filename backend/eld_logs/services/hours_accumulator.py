"""
Hours Accumulator Service.

Aggregates time spent in duty statuses over a window of a driver's
timeline. Aggregation is a pure computation over intervals read from the
timeline store: it never writes, so callers may abandon a computation at
any point and simply discard its result.

All arithmetic is in whole seconds. Hours are produced only when a
result is formatted for presentation.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Dict, FrozenSet, Iterable, Iterator, Optional, Tuple

from django.utils import timezone

from common.exceptions import InvalidWindow, UnknownDutyStatus
from common.hos_config import HOSRuleConfig
from common.timeline_store import TimelineStore, get_timeline_store
from common.validators import seconds_to_hours
from ..timeline import (
    DRIVING_STATUSES,
    ON_DUTY_STATUSES,
    REST_STATUSES,
    DutyInterval,
    DutyStatus,
    parse_status,
    truncate_to_second,
    whole_seconds,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HoursWindow:
    """
    Aggregated seconds-in-status over ``[window_start, window_end]``.

    Derived from the timeline on demand and never persisted.
    """

    driver_id: str
    statuses: FrozenSet[DutyStatus]
    window_start: datetime
    window_end: datetime
    as_of: datetime
    total_seconds: int
    seconds_by_status: Dict[str, int]
    daily_seconds: Optional[Dict[date, int]] = None

    @property
    def total_hours(self):
        return seconds_to_hours(self.total_seconds)

    def get_summary(self) -> Dict:
        summary = {
            "driver_id": self.driver_id,
            "statuses": sorted(status.value for status in self.statuses),
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "as_of": self.as_of.isoformat(),
            "total_seconds": self.total_seconds,
            "total_hours": float(self.total_hours),
            "hours_by_status": {
                status: float(seconds_to_hours(seconds))
                for status, seconds in self.seconds_by_status.items()
            },
        }
        if self.daily_seconds is not None:
            summary["daily_breakdown"] = [
                {
                    "date": day.isoformat(),
                    "seconds": seconds,
                    "hours": float(seconds_to_hours(seconds)),
                }
                for day, seconds in sorted(self.daily_seconds.items())
            ]
        return summary


def split_by_day(
    lower: datetime, upper: datetime, tz: tzinfo
) -> Iterator[Tuple[date, int]]:
    """Yield ``(calendar_date, seconds)`` pieces of ``[lower, upper)`` split at local midnight."""
    cursor = lower
    while cursor < upper:
        local_day = cursor.astimezone(tz).date()
        next_midnight = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)
        boundary = min(next_midnight, upper)
        yield local_day, whole_seconds(boundary - cursor)
        cursor = boundary


def accumulate_intervals(
    intervals: Iterable[DutyInterval],
    status_filter: Iterable[DutyStatus],
    window_start: datetime,
    window_end: datetime,
    as_of: datetime,
    by_day: bool = False,
    tz: Optional[tzinfo] = None,
) -> Tuple[int, Dict[str, int], Optional[Dict[date, int]]]:
    """
    Sum seconds spent in ``status_filter`` inside ``[window_start, window_end]``.

    Open intervals are treated as ending at ``as_of`` and never extend
    past ``window_end``. Bounds are truncated to whole seconds so totals
    are exactly additive across adjacent windows.

    Returns:
        Tuple of (total_seconds, seconds_by_status, daily_seconds or None)
    """
    if window_end < window_start:
        raise InvalidWindow(
            "Window end is earlier than window start",
            window_start=window_start.isoformat(),
            window_end=window_end.isoformat(),
        )

    statuses = frozenset(status_filter)
    window_start = truncate_to_second(window_start)
    window_end = truncate_to_second(window_end)
    as_of = truncate_to_second(as_of)

    total = 0
    by_status: Dict[str, int] = defaultdict(int)
    daily: Dict[date, int] = defaultdict(int)

    for interval in intervals:
        if interval.status not in statuses:
            continue
        lower = max(interval.start, window_start)
        upper = min(interval.effective_end(as_of), window_end)
        if upper <= lower:
            continue

        seconds = whole_seconds(upper - lower)
        total += seconds
        by_status[interval.status.value] += seconds
        if by_day:
            for day, piece in split_by_day(lower, upper, tz or timezone.get_default_timezone()):
                daily[day] += piece

    return total, dict(by_status), (dict(daily) if by_day else None)


def parse_status_filter(statuses) -> FrozenSet[DutyStatus]:
    parsed = set()
    for value in statuses:
        status = parse_status(value)
        if status is None:
            raise UnknownDutyStatus(f"Invalid duty status: {value}", status=str(value))
        parsed.add(status)
    return frozenset(parsed)


class HoursAccumulatorService:
    """
    Service for computing hour totals from a driver's timeline.

    Provides the generic windowed accumulation used by the cycle tracker
    and rule engine, plus the daily and weekly summaries shown to drivers.
    """

    def __init__(
        self,
        store: Optional[TimelineStore] = None,
        config: Optional[HOSRuleConfig] = None,
        tz: Optional[tzinfo] = None,
    ):
        self.store = store or get_timeline_store()
        self.config = config or HOSRuleConfig.from_settings()
        self.tz = tz or timezone.get_default_timezone()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def accumulate(
        self,
        driver_id,
        status_filter,
        window_start: datetime,
        window_end: datetime,
        as_of: Optional[datetime] = None,
        by_day: bool = False,
    ) -> HoursWindow:
        """
        Aggregate time in the given statuses over a window.

        Args:
            driver_id: Driver identifier
            status_filter: Statuses to count (DutyStatus members or codes)
            window_start: Start of the window
            window_end: End of the window
            as_of: Instant an open interval is treated as ending (default: now)
            by_day: Include a per-calendar-day breakdown

        Returns:
            HoursWindow with totals

        Raises:
            InvalidWindow: window_end is earlier than window_start
            UnknownDutyStatus: status_filter names an unknown status
        """
        if window_end < window_start:
            raise InvalidWindow(
                "Window end is earlier than window start",
                window_start=window_start.isoformat(),
                window_end=window_end.isoformat(),
            )

        driver_id = str(driver_id)
        statuses = parse_status_filter(status_filter)
        as_of = truncate_to_second(as_of or timezone.now())

        intervals = self.store.get_intervals(driver_id, window_start, window_end)
        total, by_status, daily = accumulate_intervals(
            intervals, statuses, window_start, window_end, as_of, by_day, self.tz
        )

        self.logger.debug(
            f"Accumulated {total}s for driver {driver_id} over "
            f"{window_start.isoformat()} - {window_end.isoformat()}"
        )
        return HoursWindow(
            driver_id=driver_id,
            statuses=statuses,
            window_start=truncate_to_second(window_start),
            window_end=truncate_to_second(window_end),
            as_of=as_of,
            total_seconds=total,
            seconds_by_status=by_status,
            daily_seconds=daily,
        )

    def daily_summary(self, driver_id, day: Optional[date] = None, as_of: Optional[datetime] = None) -> Dict:
        """
        Summarize one calendar day by duty status.

        Args:
            driver_id: Driver identifier
            day: Calendar date (default: today in the configured time zone)
            as_of: Instant an open interval is treated as ending (default: now)

        Returns:
            Dict with per-status breakdown and duty/drive/off-duty totals
        """
        driver_id = str(driver_id)
        as_of = truncate_to_second(as_of or timezone.now())
        day = day or as_of.astimezone(self.tz).date()

        day_start = datetime.combine(day, time.min, tzinfo=self.tz)
        day_end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=self.tz)

        intervals = self.store.get_intervals(driver_id, day_start, day_end)
        _, by_status, _ = accumulate_intervals(
            intervals, frozenset(DutyStatus), day_start, day_end, as_of
        )

        entry_counts: Dict[str, int] = defaultdict(int)
        for interval in intervals:
            if interval.overlap_seconds(day_start, day_end, as_of) > 0:
                entry_counts[interval.status.value] += 1

        status_breakdown = [
            {
                "status_code": status.value,
                "status_name": status.label,
                "total_seconds": by_status.get(status.value, 0),
                "total_hours": float(seconds_to_hours(by_status.get(status.value, 0))),
                "entry_count": entry_counts.get(status.value, 0),
            }
            for status in DutyStatus
            if status.value in by_status or status.value in entry_counts
        ]

        duty_seconds = sum(by_status.get(s.value, 0) for s in ON_DUTY_STATUSES)
        drive_seconds = sum(by_status.get(s.value, 0) for s in DRIVING_STATUSES)
        off_duty_seconds = sum(by_status.get(s.value, 0) for s in REST_STATUSES)

        return {
            "driver_id": driver_id,
            "date": day.isoformat(),
            "status_breakdown": status_breakdown,
            "totals": {
                "total_duty_seconds": duty_seconds,
                "total_drive_seconds": drive_seconds,
                "total_off_duty_seconds": off_duty_seconds,
                "total_duty_hours": float(seconds_to_hours(duty_seconds)),
                "total_drive_hours": float(seconds_to_hours(drive_seconds)),
                "total_off_duty_hours": float(seconds_to_hours(off_duty_seconds)),
            },
        }

    def weekly_summary(self, driver_id, as_of: Optional[datetime] = None) -> Dict:
        """
        Summarize the current week (starting Sunday 00:00) for a driver.

        Returns:
            Dict with drive/duty totals, days worked and hours remaining
            against the configured cycle limit
        """
        driver_id = str(driver_id)
        as_of = truncate_to_second(as_of or timezone.now())
        local_today = as_of.astimezone(self.tz).date()
        # weekday(): Monday=0 ... Sunday=6
        week_start_day = local_today - timedelta(days=(local_today.weekday() + 1) % 7)
        week_start = datetime.combine(week_start_day, time.min, tzinfo=self.tz)

        intervals = self.store.get_intervals(driver_id, week_start, as_of)
        duty_seconds, by_status, daily = accumulate_intervals(
            intervals, ON_DUTY_STATUSES, week_start, as_of, as_of, True, self.tz
        )
        drive_seconds = by_status.get(DutyStatus.DRIVING.value, 0)
        days_worked = sum(1 for seconds in daily.values() if seconds > 0)

        limit_seconds = whole_seconds(self.config.cycle_limit)
        return {
            "driver_id": driver_id,
            "week_start": week_start.isoformat(),
            "as_of": as_of.isoformat(),
            "total_drive_hours": float(seconds_to_hours(drive_seconds)),
            "total_duty_hours": float(seconds_to_hours(duty_seconds)),
            "days_worked": days_worked,
            "max_weekly_hours": self.config.cycle_limit_hours,
            "remaining_hours": float(
                seconds_to_hours(max(0, limit_seconds - duty_seconds))
            ),
        }
