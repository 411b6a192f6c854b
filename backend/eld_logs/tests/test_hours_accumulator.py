"""
Tests for hour accumulation over duty status timelines.
"""

from datetime import date, datetime, timedelta, timezone as dt_timezone

import pytest

from common.exceptions import InvalidWindow, UnknownDutyStatus
from common.hos_config import CYCLE_60_HOUR_7_DAY, HOSRuleConfig
from common.timeline_store import InMemoryTimelineStore
from eld_logs.services.hours_accumulator import (
    HoursAccumulatorService,
    accumulate_intervals,
    parse_status_filter,
    split_by_day,
)
from eld_logs.timeline import ON_DUTY_STATUSES, DutyInterval, DutyStatus

UTC = dt_timezone.utc
T0 = datetime(2024, 1, 15, 0, 0, tzinfo=UTC)  # a Monday


def at(hours=0, minutes=0, seconds=0):
    return T0 + timedelta(hours=hours, minutes=minutes, seconds=seconds)


def build_timeline(store, driver_id, changes):
    """Append ``(status, start)`` changes to the store, closing each previous interval."""
    for index, (status, start) in enumerate(changes):
        store.append_interval(
            driver_id,
            DutyInterval(driver_id=driver_id, status=status, start=start),
            close_at=start if index else None,
        )


class TestAccumulateIntervals:
    """Test the pure accumulation function."""

    def setup_method(self):
        self.intervals = [
            DutyInterval(driver_id="D1", status=DutyStatus.ON_DUTY, start=at(6), end=at(7)),
            DutyInterval(driver_id="D1", status=DutyStatus.DRIVING, start=at(7), end=at(12)),
            DutyInterval(driver_id="D1", status=DutyStatus.OFF_DUTY, start=at(12), end=at(13)),
            DutyInterval(driver_id="D1", status=DutyStatus.DRIVING, start=at(13)),
        ]

    def test_totals_by_status(self):
        total, by_status, daily = accumulate_intervals(
            self.intervals, ON_DUTY_STATUSES, at(0), at(15), at(15)
        )

        assert total == 8 * 3600
        assert by_status == {"ON_DUTY": 3600, "DRIVING": 7 * 3600}
        assert daily is None

    def test_open_interval_ends_at_as_of(self):
        total, _, _ = accumulate_intervals(
            self.intervals, [DutyStatus.DRIVING], at(0), at(20), at(14)
        )
        assert total == 6 * 3600

    def test_open_interval_clamped_to_window_end(self):
        total, _, _ = accumulate_intervals(
            self.intervals, [DutyStatus.DRIVING], at(0), at(14), at(20)
        )
        assert total == 6 * 3600

    @pytest.mark.parametrize(
        "split",
        [at(6), at(9, 17, 3), at(12, 30), at(13).replace(microsecond=400000), at(15)],
    )
    def test_adjacent_windows_are_additive(self, split):
        whole, _, _ = accumulate_intervals(
            self.intervals, ON_DUTY_STATUSES, at(6), at(15), at(15)
        )
        first, _, _ = accumulate_intervals(
            self.intervals, ON_DUTY_STATUSES, at(6), split, at(15)
        )
        second, _, _ = accumulate_intervals(
            self.intervals, ON_DUTY_STATUSES, split, at(15), at(15)
        )
        assert first + second == whole

    def test_empty_window(self):
        total, by_status, _ = accumulate_intervals(
            self.intervals, ON_DUTY_STATUSES, at(8), at(8), at(15)
        )
        assert total == 0
        assert by_status == {}

    def test_inverted_window_rejected(self):
        with pytest.raises(InvalidWindow):
            accumulate_intervals(self.intervals, ON_DUTY_STATUSES, at(10), at(9), at(15))

    def test_daily_breakdown_splits_at_midnight(self):
        intervals = [
            DutyInterval(driver_id="D1", status=DutyStatus.DRIVING, start=at(22), end=at(26)),
        ]
        total, _, daily = accumulate_intervals(
            intervals, [DutyStatus.DRIVING], at(0), at(48), at(48), by_day=True, tz=UTC
        )

        assert total == 4 * 3600
        assert daily == {date(2024, 1, 15): 2 * 3600, date(2024, 1, 16): 2 * 3600}

    def test_split_by_day(self):
        pieces = list(split_by_day(at(23, 30), at(24, 15), UTC))
        assert pieces == [(date(2024, 1, 15), 1800), (date(2024, 1, 16), 900)]

    def test_parse_status_filter(self):
        assert parse_status_filter(["DRIVING", "on_duty"]) == frozenset(
            {DutyStatus.DRIVING, DutyStatus.ON_DUTY}
        )
        with pytest.raises(UnknownDutyStatus) as excinfo:
            parse_status_filter(["DRIVING", "NAPPING"])
        assert excinfo.value.details == {"status": "NAPPING"}


class TestHoursAccumulatorService:
    """Test windowed accumulation and summaries read from a store."""

    def setup_method(self):
        self.store = InMemoryTimelineStore(assigned_drivers=["D1"])
        self.service = HoursAccumulatorService(
            store=self.store, config=HOSRuleConfig(), tz=UTC
        )
        build_timeline(
            self.store,
            "D1",
            [
                (DutyStatus.OFF_DUTY, at(0)),
                (DutyStatus.ON_DUTY, at(6)),
                (DutyStatus.DRIVING, at(6, 30)),
                (DutyStatus.ON_DUTY, at(11)),
                (DutyStatus.DRIVING, at(11, 30)),
                (DutyStatus.OFF_DUTY, at(14)),
            ],
        )

    def test_accumulate(self):
        window = self.service.accumulate(
            "D1", ["DRIVING", "ON_DUTY"], at(0), at(20), as_of=at(20)
        )

        assert window.total_seconds == 8 * 3600
        assert window.seconds_by_status["DRIVING"] == 7 * 3600
        assert float(window.total_hours) == 8.0

    def test_accumulate_by_day(self):
        window = self.service.accumulate(
            "D1", ["DRIVING"], at(-24), at(24), as_of=at(24), by_day=True
        )
        summary = window.get_summary()

        assert summary["daily_breakdown"] == [
            {"date": "2024-01-15", "seconds": 7 * 3600, "hours": 7.0}
        ]

    def test_accumulate_rejects_inverted_window(self):
        with pytest.raises(InvalidWindow):
            self.service.accumulate("D1", ["DRIVING"], at(5), at(4), as_of=at(20))

    def test_accumulate_rejects_unknown_status(self):
        with pytest.raises(UnknownDutyStatus):
            self.service.accumulate("D1", ["PARKED"], at(0), at(20), as_of=at(20))

    def test_daily_summary(self):
        summary = self.service.daily_summary("D1", date(2024, 1, 15), as_of=at(20))
        totals = summary["totals"]

        assert totals["total_drive_hours"] == 7.0
        assert totals["total_duty_hours"] == 8.0
        assert totals["total_off_duty_hours"] == 12.0
        driving = next(
            s for s in summary["status_breakdown"] if s["status_code"] == "DRIVING"
        )
        assert driving["entry_count"] == 2

    def test_daily_summary_open_interval_stops_at_as_of(self):
        summary = self.service.daily_summary("D1", date(2024, 1, 15), as_of=at(16))
        assert summary["totals"]["total_off_duty_hours"] == 8.0

    def test_weekly_summary_starts_on_sunday(self):
        build_timeline(
            self.store,
            "D2",
            [
                (DutyStatus.ON_DUTY, at(-30)),  # Saturday 18:00
                (DutyStatus.OFF_DUTY, at(-22)),  # Sunday 02:00
                (DutyStatus.ON_DUTY, at(8)),
                (DutyStatus.OFF_DUTY, at(12)),
            ],
        )
        summary = self.service.weekly_summary("D2", as_of=at(20))

        assert summary["week_start"] == at(-24).isoformat()
        assert summary["total_duty_hours"] == 6.0
        assert summary["total_drive_hours"] == 0.0
        assert summary["days_worked"] == 2
        assert summary["max_weekly_hours"] == 70
        assert summary["remaining_hours"] == 64.0

    def test_weekly_summary_uses_configured_cycle_limit(self):
        service = HoursAccumulatorService(
            store=self.store, config=HOSRuleConfig(cycle=CYCLE_60_HOUR_7_DAY), tz=UTC
        )
        summary = service.weekly_summary("D1", as_of=at(20))

        assert summary["max_weekly_hours"] == 60
        assert summary["remaining_hours"] == 52.0
