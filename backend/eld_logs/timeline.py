"""
Duty status timeline model.

Plain records for a driver's duty-status history. The timeline is an
ordered list of non-overlapping intervals per driver, at most one of
which is open (no end time). These records carry no ORM state so the
accounting services can run against any ``TimelineStore``.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Iterable, List, Optional

from django.db import models


class DutyStatus(models.TextChoices):
    OFF_DUTY = "OFF_DUTY", "Off Duty"
    SLEEPER = "SLEEPER", "Sleeper Berth"
    ON_DUTY = "ON_DUTY", "On Duty (Not Driving)"
    DRIVING = "DRIVING", "Driving"


ON_DUTY_STATUSES: FrozenSet[DutyStatus] = frozenset(
    {DutyStatus.ON_DUTY, DutyStatus.DRIVING}
)
REST_STATUSES: FrozenSet[DutyStatus] = frozenset(
    {DutyStatus.OFF_DUTY, DutyStatus.SLEEPER}
)
DRIVING_STATUSES: FrozenSet[DutyStatus] = frozenset({DutyStatus.DRIVING})

# Allowed next statuses for each current status
TRANSITIONS: Dict[DutyStatus, FrozenSet[DutyStatus]] = {
    DutyStatus.OFF_DUTY: frozenset({DutyStatus.ON_DUTY, DutyStatus.SLEEPER}),
    DutyStatus.SLEEPER: frozenset({DutyStatus.OFF_DUTY, DutyStatus.ON_DUTY}),
    DutyStatus.ON_DUTY: frozenset(
        {DutyStatus.DRIVING, DutyStatus.OFF_DUTY, DutyStatus.SLEEPER}
    ),
    DutyStatus.DRIVING: frozenset({DutyStatus.ON_DUTY, DutyStatus.OFF_DUTY}),
}


def parse_status(value) -> Optional[DutyStatus]:
    """Return the DutyStatus for ``value`` or None if it is not a member."""
    if isinstance(value, DutyStatus):
        return value
    try:
        return DutyStatus(str(value).upper())
    except ValueError:
        return None


def can_transition(current: Optional[DutyStatus], new: DutyStatus) -> bool:
    """Check the transition table. A driver with no history may start anywhere."""
    if current is None:
        return True
    return new in TRANSITIONS[current]


def truncate_to_second(moment: datetime) -> datetime:
    """Drop sub-second precision; the engine counts whole seconds only."""
    return moment.replace(microsecond=0)


def whole_seconds(delta: timedelta) -> int:
    return delta // timedelta(seconds=1)


@dataclass(frozen=True)
class GeoPoint:
    """GPS fix attached to a duty status change."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None

    def __post_init__(self):
        if not (-90 <= self.latitude <= 90):
            raise ValueError("Latitude must be between -90 and 90 degrees")
        if not (-180 <= self.longitude <= 180):
            raise ValueError("Longitude must be between -180 and 180 degrees")
        if self.accuracy is not None and self.accuracy < 0:
            raise ValueError("Accuracy cannot be negative")


@dataclass(frozen=True)
class DutyInterval:
    """
    One duty status period for one driver.

    Attributes:
        driver_id: Owning driver
        status: Duty status held during the period
        start: When the period started
        end: When the period ended, None while the interval is open
        location: Location description where the status changed
        odometer_start: Vehicle odometer reading when the period started
        odometer_end: Odometer reading stamped when the period was closed
        notes: Driver remarks
        geo: Optional GPS fix
        id: Store-assigned identifier
    """

    driver_id: str
    status: DutyStatus
    start: datetime
    end: Optional[datetime] = None
    location: str = ""
    odometer_start: int = 0
    odometer_end: Optional[int] = None
    notes: str = ""
    geo: Optional[GeoPoint] = None
    id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if self.end is not None and self.end <= self.start:
            raise ValueError("Interval end must be after its start")
        if self.odometer_start < 0:
            raise ValueError("Odometer reading cannot be negative")

    @property
    def is_open(self) -> bool:
        return self.end is None

    @property
    def is_on_duty(self) -> bool:
        return self.status in ON_DUTY_STATUSES

    @property
    def is_rest(self) -> bool:
        return self.status in REST_STATUSES

    def effective_end(self, as_of: datetime) -> datetime:
        """End of the interval, with an open interval treated as ending at ``as_of``."""
        if self.end is not None:
            return self.end
        return max(as_of, self.start)

    def overlaps(self, start: Optional[datetime], end: Optional[datetime]) -> bool:
        """Check whether the interval touches ``[start, end]`` (None = unbounded)."""
        if end is not None and self.start > end:
            return False
        if start is not None and self.end is not None and self.end < start:
            return False
        return True

    def overlap_seconds(
        self, window_start: datetime, window_end: datetime, as_of: datetime
    ) -> int:
        """Whole seconds of this interval inside ``[window_start, window_end]``."""
        lower = max(self.start, window_start)
        upper = min(self.effective_end(as_of), window_end)
        if upper <= lower:
            return 0
        return whole_seconds(upper - lower)

    def closed(self, end: datetime, odometer_end: Optional[int] = None) -> "DutyInterval":
        return replace(self, end=end, odometer_end=odometer_end)

    def duration_seconds(self, as_of: datetime) -> int:
        return whole_seconds(self.effective_end(as_of) - self.start)


@dataclass(frozen=True)
class RestSpan:
    """A contiguous run of OFF_DUTY/SLEEPER time."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


def sort_intervals(intervals: Iterable[DutyInterval]) -> List[DutyInterval]:
    return sorted(intervals, key=lambda interval: interval.start)


def find_rest_spans(
    intervals: Iterable[DutyInterval], as_of: datetime
) -> List[RestSpan]:
    """
    Merge contiguous rest intervals into spans ending at or before ``as_of``.

    OFF_DUTY and SLEEPER intervals may interleave within one span. A gap
    between intervals or any on-duty interval breaks the span. An open
    rest interval counts up to ``as_of``. Spans are returned oldest first.
    """
    spans: List[RestSpan] = []
    span_start = None
    span_end = None

    for interval in sort_intervals(intervals):
        if interval.start >= as_of:
            break
        end = min(interval.effective_end(as_of), as_of)

        if interval.is_rest:
            if span_start is not None and interval.start == span_end:
                span_end = end
            else:
                if span_start is not None:
                    spans.append(RestSpan(span_start, span_end))
                span_start, span_end = interval.start, end
        elif span_start is not None:
            spans.append(RestSpan(span_start, span_end))
            span_start = span_end = None

    if span_start is not None and span_end > span_start:
        spans.append(RestSpan(span_start, span_end))

    return spans


def status_at(intervals: Iterable[DutyInterval], moment: datetime) -> Optional[DutyStatus]:
    """Return the duty status in effect at ``moment``, if any interval covers it."""
    for interval in intervals:
        if interval.start <= moment and (interval.end is None or moment < interval.end):
            return interval.status
    return None


def status_ending_at(intervals: Iterable[DutyInterval], moment: datetime) -> Optional[DutyStatus]:
    """
    Return the duty status held up to ``moment``.

    This is the interval covering the instant just before ``moment``. At
    a status change it is the status being left, where ``status_at``
    already reports the new one.
    """
    for interval in intervals:
        if interval.start < moment and (interval.end is None or moment <= interval.end):
            return interval.status
    return None
