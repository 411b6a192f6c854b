"""
Tests for the compliance rule engine and the HOS status calculator.
"""

from datetime import datetime, timedelta, timezone as dt_timezone

import pytest

from common.hos_config import HOSRuleConfig
from common.timeline_store import InMemoryTimelineStore
from eld_logs.timeline import DutyInterval, DutyStatus
from hos_compliance.services.compliance_rule_engine import ComplianceRuleEngine
from hos_compliance.services.hos_calculator import HOSCalculatorService
from hos_compliance.signals import violation_recorded
from hos_compliance.violations import Severity, ViolationKind

T0 = datetime(2024, 1, 16, 0, 0, tzinfo=dt_timezone.utc)


def at(hours=0, minutes=0, seconds=0):
    return T0 + timedelta(hours=hours, minutes=minutes, seconds=seconds)


def build_timeline(store, driver_id, changes):
    for index, (status, start) in enumerate(changes):
        store.append_interval(
            driver_id,
            DutyInterval(driver_id=driver_id, status=status, start=start),
            close_at=start if index else None,
        )


LONG_DRIVE = [
    (DutyStatus.OFF_DUTY, at(0)),
    (DutyStatus.ON_DUTY, at(7, 55)),
    (DutyStatus.DRIVING, at(8)),
]


def previous_day_with_rest(rest_start):
    """Day before T0 with 10.5 hours of driving, then rest from ``rest_start``."""
    return [
        (DutyStatus.ON_DUTY, at(-18)),
        (DutyStatus.DRIVING, at(-17, 30)),
        (DutyStatus.ON_DUTY, at(-7)),
        (DutyStatus.OFF_DUTY, rest_start),
        (DutyStatus.ON_DUTY, at(6)),
        (DutyStatus.DRIVING, at(6, 5)),
    ]


class TestComplianceRuleEngine:
    """Test rule detection and violation recording."""

    def setup_method(self):
        self.store = InMemoryTimelineStore()
        self.engine = ComplianceRuleEngine(store=self.store, config=HOSRuleConfig())

    def kinds(self, violations):
        return sorted(v.kind for v in violations)

    def test_no_history_is_compliant(self):
        assert self.engine.evaluate("D1", at(12)) == []
        assert self.engine.duty_period("D1", at(12)).start is None

    def test_driving_past_eleven_hours(self):
        build_timeline(self.store, "D1", LONG_DRIVE)

        violations = self.engine.evaluate("D1", at(19, 5))

        assert len(violations) == 1
        violation = violations[0]
        assert violation.kind == ViolationKind.DRIVE_TIME_EXCEEDED
        assert violation.severity == Severity.MAJOR
        assert violation.detected_at == at(19, 5)
        assert violation.regulation_reference
        assert violation.hours_over_limit > 0

    def test_driving_exactly_eleven_hours_is_compliant(self):
        build_timeline(self.store, "D1", LONG_DRIVE)
        assert self.engine.evaluate("D1", at(19)) == []

    def test_evaluate_is_idempotent(self):
        build_timeline(self.store, "D1", LONG_DRIVE)

        first = self.engine.evaluate("D1", at(19, 5))
        second = self.engine.evaluate("D1", at(19, 5))
        later = self.engine.evaluate("D1", at(19, 30))

        assert len(first) == 1
        assert second == []
        assert later == []
        assert len(self.engine.violation_store.list_unresolved("D1")) == 1

    def test_resolved_violation_is_raised_again_while_limit_exceeded(self):
        build_timeline(self.store, "D1", LONG_DRIVE)
        first = self.engine.evaluate("D1", at(19, 5))[0]
        self.engine.violation_store.resolve(first.id, "Driver pulled over")

        again = self.engine.evaluate("D1", at(19, 10))

        assert len(again) == 1
        assert again[0].id != first.id

    def test_ten_hour_rest_starts_new_duty_period(self):
        build_timeline(self.store, "D1", previous_day_with_rest(at(-4)))

        period = self.engine.duty_period("D1", at(12))

        assert period.start == at(6)
        assert period.last_rest_end == at(6)
        assert period.drive_seconds == 5 * 3600 + 55 * 60
        assert self.engine.evaluate("D1", at(12)) == []

    def test_rest_one_second_short_does_not_reset(self):
        build_timeline(self.store, "D1", previous_day_with_rest(at(-4, 0, 1)))

        period = self.engine.duty_period("D1", at(12))
        violations = self.engine.evaluate("D1", at(12))

        assert period.start == at(-18)
        assert self.kinds(violations) == sorted(
            [ViolationKind.DRIVE_TIME_EXCEEDED, ViolationKind.DUTY_WINDOW_EXCEEDED]
        )

    def test_duty_window_exceeded_while_on_duty(self):
        build_timeline(self.store, "D1", [(DutyStatus.ON_DUTY, at(6))])

        violations = self.engine.evaluate("D1", at(20, 30))

        assert self.kinds(violations) == [ViolationKind.DUTY_WINDOW_EXCEEDED]

    def test_duty_window_not_raised_while_resting(self):
        build_timeline(
            self.store,
            "D1",
            [(DutyStatus.ON_DUTY, at(6)), (DutyStatus.OFF_DUTY, at(19))],
        )
        assert self.engine.evaluate("D1", at(20, 30)) == []

    def test_cycle_limit_is_critical(self):
        changes = []
        for day in range(-8, 0):
            changes.append((DutyStatus.ON_DUTY, at(24 * day + 6)))
            changes.append((DutyStatus.OFF_DUTY, at(24 * day + 15)))
        build_timeline(self.store, "D1", changes)

        violations = self.engine.evaluate("D1", at(-9))

        assert len(violations) == 1
        assert violations[0].kind == ViolationKind.CYCLE_HOURS_EXCEEDED
        assert violations[0].severity == Severity.CRITICAL
        assert float(violations[0].current_hours) == 72.0

    def test_new_violation_signal(self):
        build_timeline(self.store, "D1", LONG_DRIVE)
        received = []

        def listener(sender, violation, driver_id, **kwargs):
            received.append((driver_id, violation.kind))

        violation_recorded.connect(listener)
        try:
            self.engine.evaluate("D1", at(19, 5))
            self.engine.evaluate("D1", at(19, 6))
        finally:
            violation_recorded.disconnect(listener)

        assert received == [("D1", ViolationKind.DRIVE_TIME_EXCEEDED)]

    def test_compliance_report(self):
        build_timeline(self.store, "D1", LONG_DRIVE)

        report = self.engine.get_compliance_report("D1", at(19, 5))

        assert report["is_compliant"] is False
        assert report["compliance_score"] == 75
        assert [f["kind"] for f in report["findings"]] == ["DRIVE_TIME_EXCEEDED"]
        assert len(report["new_violations"]) == 1
        assert len(report["unresolved_violations"]) == 1

    def test_status_change_evaluates_through_ledger(self):
        from eld_logs.services.duty_status_ledger import DutyStatusLedgerService

        self.store.assign_vehicle("D2")
        ledger = DutyStatusLedgerService(store=self.store, config=HOSRuleConfig())
        ledger.record_status_change("D2", "ON_DUTY", timestamp=at(6))
        ledger.record_status_change("D2", "DRIVING", timestamp=at(6, 10))
        ledger.record_status_change("D2", "ON_DUTY", timestamp=at(20, 30))

        unresolved = self.engine.violation_store.list_unresolved("D2")

        assert sorted(v.kind for v in unresolved) == sorted(
            [ViolationKind.DRIVE_TIME_EXCEEDED, ViolationKind.DUTY_WINDOW_EXCEEDED]
        )
        assert all(v.detected_at == at(20, 30) for v in unresolved)

    def record_changes(self, driver_id, changes):
        from eld_logs.services.duty_status_ledger import DutyStatusLedgerService

        self.store.assign_vehicle(driver_id)
        ledger = DutyStatusLedgerService(store=self.store, config=HOSRuleConfig())
        for status, timestamp in changes:
            ledger.record_status_change(driver_id, status, timestamp=timestamp)

    @pytest.mark.parametrize("rest_status", ["OFF_DUTY", "SLEEPER"])
    def test_going_off_duty_after_window_records_violation(self, rest_status):
        self.record_changes("D3", [("ON_DUTY", at(6)), (rest_status, at(21))])

        unresolved = self.engine.violation_store.list_unresolved("D3")

        assert [v.kind for v in unresolved] == [ViolationKind.DUTY_WINDOW_EXCEEDED]
        assert unresolved[0].detected_at == at(21)
        assert float(unresolved[0].current_hours) == 15.0
        assert self.engine.evaluate("D3", at(21, 30)) == []

    def test_stopping_driving_after_window_records_both_limits(self):
        self.record_changes(
            "D4",
            [("ON_DUTY", at(6)), ("DRIVING", at(6, 10)), ("OFF_DUTY", at(21))],
        )

        unresolved = self.engine.violation_store.list_unresolved("D4")

        assert sorted(v.kind for v in unresolved) == sorted(
            [ViolationKind.DRIVE_TIME_EXCEEDED, ViolationKind.DUTY_WINDOW_EXCEEDED]
        )

    def test_going_off_duty_inside_window_records_nothing(self):
        self.record_changes("D5", [("ON_DUTY", at(6)), ("OFF_DUTY", at(19))])

        assert self.engine.violation_store.list_unresolved("D5") == []

    def test_evaluate_at_change_instant_uses_status_being_left(self):
        build_timeline(
            self.store,
            "D1",
            [(DutyStatus.ON_DUTY, at(6)), (DutyStatus.OFF_DUTY, at(21))],
        )

        period = self.engine.duty_period("D1", at(21))

        assert period.current_status is DutyStatus.OFF_DUTY
        assert period.previous_status is DutyStatus.ON_DUTY
        assert self.kinds(self.engine.evaluate("D1", at(21))) == [
            ViolationKind.DUTY_WINDOW_EXCEEDED
        ]


class TestHOSCalculatorService:
    """Test the availability snapshot."""

    def setup_method(self):
        self.store = InMemoryTimelineStore()
        self.calculator = HOSCalculatorService(store=self.store, config=HOSRuleConfig())

    def test_fresh_driver_has_full_hours(self):
        status = self.calculator.calculate_hos_status("D1", at(12))

        assert status["current_status"] is None
        assert status["can_drive"] is True
        assert status["available_hours"] == {
            "cycle_hours": 70.0,
            "duty_period_hours": 14.0,
            "driving_hours": 11.0,
        }
        assert status["required_rest"]["required_rest_type"] is None

    def test_driving_limit_reached(self):
        build_timeline(self.store, "D1", LONG_DRIVE)

        status = self.calculator.calculate_hos_status("D1", at(19, 5))

        assert status["current_status"] == "DRIVING"
        assert status["duty_period_start"] == at(7, 55).isoformat()
        assert status["can_drive"] is False
        assert status["violation_reason"] == "11-hour driving limit reached"
        assert status["available_hours"]["driving_hours"] == 0.0
        assert status["max_continuous_driving_hours"] == 0.0
        assert status["required_rest"]["required_rest_type"] == "10_hour_off_duty"

    def test_partial_day_availability(self):
        build_timeline(
            self.store,
            "D1",
            [(DutyStatus.ON_DUTY, at(6)), (DutyStatus.DRIVING, at(7))],
        )

        status = self.calculator.calculate_hos_status("D1", at(11))

        assert status["can_drive"] is True
        assert status["available_hours"]["driving_hours"] == 7.0
        assert status["available_hours"]["duty_period_hours"] == 9.0
        assert status["max_continuous_driving_hours"] == 7.0
