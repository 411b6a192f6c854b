"""
Cycle/Reset Tracker Service.

Derives a driver's position in the 70-hour/8-day (or 60-hour/7-day)
cycle from the duty status timeline, including 34-hour restart
detection.

Single Responsibility: multi-day cycle accounting only.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Dict, List, Optional

from django.utils import timezone

from common.hos_config import HOSRuleConfig
from common.timeline_store import TimelineStore, get_timeline_store
from common.validators import seconds_to_hours
from eld_logs.services.hours_accumulator import accumulate_intervals
from eld_logs.timeline import (
    ON_DUTY_STATUSES,
    DutyInterval,
    RestSpan,
    find_rest_spans,
    truncate_to_second,
    whole_seconds,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleState:
    """Snapshot of a driver's multi-day cycle at ``as_of``."""

    driver_id: str
    as_of: datetime
    cycle: str
    cycle_start: datetime
    last_reset: Optional[datetime]
    seconds_used: int
    limit_seconds: int
    current_cycle_day: int
    current_rest_seconds: int
    restart_seconds: int
    daily_seconds: Dict[date, int]

    @property
    def seconds_remaining(self) -> int:
        return max(0, self.limit_seconds - self.seconds_used)

    @property
    def hours_used(self):
        return seconds_to_hours(self.seconds_used)

    @property
    def hours_remaining(self):
        return seconds_to_hours(self.seconds_remaining)

    @property
    def is_over_limit(self) -> bool:
        return self.seconds_used > self.limit_seconds

    @property
    def restart_eligible(self) -> bool:
        """True once the driver's current rest span is long enough for a restart."""
        return self.current_rest_seconds >= self.restart_seconds

    def get_summary(self) -> Dict:
        return {
            "driver_id": self.driver_id,
            "as_of": self.as_of.isoformat(),
            "cycle": self.cycle,
            "cycle_start": self.cycle_start.isoformat(),
            "last_reset": self.last_reset.isoformat() if self.last_reset else None,
            "cycle_hours_used": float(self.hours_used),
            "cycle_hours_remaining": float(self.hours_remaining),
            "cycle_limit_hours": float(seconds_to_hours(self.limit_seconds)),
            "current_cycle_day": self.current_cycle_day,
            "is_over_limit": self.is_over_limit,
            "restart_eligible": self.restart_eligible,
            "current_rest_hours": float(seconds_to_hours(self.current_rest_seconds)),
        }


class CycleTrackerService:
    """
    Service for tracking the multi-day duty cycle.

    The most recent off-duty/sleeper span of at least the restart length
    that ended inside the cycle lookback restarts the cycle at its end.
    Without one, the cycle window is the trailing ``cycle_days``.
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

    def read_history(self, driver_id: str, as_of: datetime) -> List[DutyInterval]:
        """Read every interval the cycle and duty period rules can depend on."""
        return self.store.get_intervals(
            str(driver_id), as_of - self.config.history_lookback, as_of
        )

    def current_cycle(self, driver_id, as_of: Optional[datetime] = None) -> CycleState:
        """
        Compute the driver's current cycle position.

        Args:
            driver_id: Driver identifier
            as_of: Evaluation instant (default: now)

        Returns:
            CycleState
        """
        as_of = truncate_to_second(as_of or timezone.now())
        intervals = self.read_history(str(driver_id), as_of)
        return self.cycle_from_intervals(str(driver_id), intervals, as_of)

    def cycle_from_intervals(
        self, driver_id: str, intervals: List[DutyInterval], as_of: datetime
    ) -> CycleState:
        """Compute the cycle position from an already-read timeline slice."""
        as_of = truncate_to_second(as_of)
        spans = find_rest_spans(intervals, as_of)

        last_reset = self._find_last_reset(spans, as_of)
        cycle_start = last_reset or (as_of - self.config.cycle_lookback)

        seconds_used, _, daily = accumulate_intervals(
            intervals, ON_DUTY_STATUSES, cycle_start, as_of, as_of, True, self.tz
        )
        cycle_day = sum(1 for seconds in daily.values() if seconds > 0)

        current_rest = 0
        if spans and spans[-1].end == as_of:
            current_rest = whole_seconds(spans[-1].duration)

        state = CycleState(
            driver_id=driver_id,
            as_of=as_of,
            cycle=self.config.cycle,
            cycle_start=cycle_start,
            last_reset=last_reset,
            seconds_used=seconds_used,
            limit_seconds=whole_seconds(self.config.cycle_limit),
            current_cycle_day=cycle_day,
            current_rest_seconds=current_rest,
            restart_seconds=whole_seconds(self.config.restart),
            daily_seconds=daily,
        )
        self.logger.debug(
            f"Cycle for driver {driver_id} at {as_of.isoformat()}: "
            f"{state.hours_used}h used, last reset {last_reset}"
        )
        return state

    def cycle_info(self, driver_id, as_of: Optional[datetime] = None) -> Dict:
        """
        Get cycle information with a per-day breakdown for display.

        Returns:
            Dict with hours used and remaining, last reset and the daily
            on-duty hours inside the current cycle window
        """
        state = self.current_cycle(driver_id, as_of)
        info = state.get_summary()
        info["daily_breakdown"] = [
            {"date": day.isoformat(), "hours": float(seconds_to_hours(seconds))}
            for day, seconds in sorted(state.daily_seconds.items())
        ]
        info["hours_until_restart_complete"] = (
            float(seconds_to_hours(state.restart_seconds - state.current_rest_seconds))
            if 0 < state.current_rest_seconds < state.restart_seconds
            else None
        )
        return info

    def _find_last_reset(self, spans: List[RestSpan], as_of: datetime) -> Optional[datetime]:
        """Return the end of the most recent qualifying restart, if any."""
        earliest_end = as_of - self.config.cycle_lookback
        for span in reversed(spans):
            if span.end < earliest_end:
                break
            if span.duration >= self.config.restart:
                return span.end
        return None
