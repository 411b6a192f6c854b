"""
Tests for fleet HOS summaries.
"""

import threading
from datetime import datetime, timedelta, timezone as dt_timezone

import pytest

from common.exceptions import AggregationCancelled
from common.hos_config import HOSRuleConfig
from common.timeline_store import InMemoryTimelineStore
from eld_logs.timeline import DutyInterval, DutyStatus
from hos_compliance.services.compliance_rule_engine import ComplianceRuleEngine
from hos_compliance.services.fleet_summary import FleetSummaryService, summarize_fleet

T0 = datetime(2024, 1, 16, 0, 0, tzinfo=dt_timezone.utc)


def at(hours=0, minutes=0):
    return T0 + timedelta(hours=hours, minutes=minutes)


def build_timeline(store, driver_id, changes):
    for index, (status, start) in enumerate(changes):
        store.append_interval(
            driver_id,
            DutyInterval(driver_id=driver_id, status=status, start=start),
            close_at=start if index else None,
        )


class CancellingStore(InMemoryTimelineStore):
    """Sets ``event`` the first time a driver's violations are read."""

    def __init__(self, event):
        super().__init__()
        self.event = event

    def list_violations(self, driver_id, resolved=None):
        self.event.set()
        return super().list_violations(driver_id, resolved)


class TestFleetSummaryService:
    """Test fleet aggregation and cancellation."""

    def setup_method(self):
        self.store = InMemoryTimelineStore()
        self.config = HOSRuleConfig()
        build_timeline(
            self.store,
            "D1",
            [
                (DutyStatus.OFF_DUTY, at(0)),
                (DutyStatus.ON_DUTY, at(7, 55)),
                (DutyStatus.DRIVING, at(8)),
            ],
        )
        build_timeline(
            self.store,
            "D2",
            [(DutyStatus.ON_DUTY, at(10)), (DutyStatus.DRIVING, at(10, 30))],
        )
        self.service = FleetSummaryService(store=self.store, config=self.config)

    def test_summarize_fleet(self):
        ComplianceRuleEngine(store=self.store, config=self.config).evaluate("D1", at(19, 5))

        summary = self.service.summarize_fleet(["D1", "D2", "D3"], as_of=at(19, 5))
        drivers = {d["driver_id"]: d for d in summary["drivers"]}

        assert summary["total_drivers"] == 3
        assert summary["drivers_can_drive"] == 2
        assert summary["drivers_with_violations"] == 1
        assert drivers["D1"]["can_drive"] is False
        assert drivers["D1"]["unresolved_violations"] == 1
        assert drivers["D2"]["current_status"] == "DRIVING"
        assert drivers["D3"]["current_status"] is None

    def test_duplicate_drivers_are_summarized_once(self):
        summary = self.service.summarize_fleet(["D2", "D1", "D2"], as_of=at(12))
        assert [d["driver_id"] for d in summary["drivers"]] == ["D2", "D1"]

    def test_cancel_before_start(self):
        event = threading.Event()
        event.set()

        with pytest.raises(AggregationCancelled) as excinfo:
            self.service.summarize_fleet(["D1", "D2"], as_of=at(12), cancel_event=event)

        assert excinfo.value.details == {"completed": 0, "requested": 2}

    def test_cancel_between_drivers(self):
        event = threading.Event()
        store = CancellingStore(event)
        build_timeline(store, "D1", [(DutyStatus.ON_DUTY, at(6))])

        with pytest.raises(AggregationCancelled) as excinfo:
            summarize_fleet(
                ["D1", "D2", "D3"],
                as_of=at(12),
                cancel_event=event,
                store=store,
                config=self.config,
            )

        assert excinfo.value.details["completed"] == 1
