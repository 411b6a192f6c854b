"""
Tests for violation recording and resolution.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.test import TestCase

from common.exceptions import AlreadyResolved, NotFound
from common.timeline_store import DjangoTimelineStore, InMemoryTimelineStore
from hos_compliance.models import ComplianceViolation
from hos_compliance.services.violation_store import ViolationStoreService
from hos_compliance.violations import Severity, Violation, ViolationKind

T0 = datetime(2024, 2, 1, 8, 0, tzinfo=dt_timezone.utc)


def make_violation(kind=ViolationKind.DRIVE_TIME_EXCEEDED, driver_id="D1", minutes=0):
    severity = (
        Severity.CRITICAL if kind == ViolationKind.CYCLE_HOURS_EXCEEDED else Severity.MAJOR
    )
    return Violation(
        driver_id=driver_id,
        kind=kind,
        severity=severity,
        detected_at=T0 + timedelta(minutes=minutes),
        description="Limit exceeded",
        current_hours=Decimal("11.50"),
        limit_hours=Decimal("11.00"),
        regulation_reference="395.3(a)(3)",
    )


class TestViolationStoreService:
    """Test the violation store against the in-memory backend."""

    def setup_method(self):
        self.service = ViolationStoreService(store=InMemoryTimelineStore())

    def test_record_new_violation(self):
        violation, created = self.service.record(make_violation())

        assert created is True
        assert violation.id is not None
        assert violation.resolved is False
        assert violation.hours_over_limit == Decimal("0.50")

    def test_unresolved_violation_of_same_kind_is_not_duplicated(self):
        first, _ = self.service.record(make_violation())
        second, created = self.service.record(make_violation(minutes=5))

        assert created is False
        assert second.id == first.id
        assert len(self.service.list_unresolved("D1")) == 1

    def test_different_kinds_and_drivers_are_separate(self):
        self.service.record(make_violation())
        _, other_kind = self.service.record(make_violation(ViolationKind.DUTY_WINDOW_EXCEEDED))
        _, other_driver = self.service.record(make_violation(driver_id="D2"))

        assert other_kind is True
        assert other_driver is True

    def test_resolve_twice_raises_already_resolved(self):
        violation, _ = self.service.record(make_violation())

        resolved = self.service.resolve(violation.id, "Reviewed with driver")

        assert resolved.resolved is True
        assert resolved.resolved_at is not None
        assert resolved.resolved_notes == "Reviewed with driver"
        with pytest.raises(AlreadyResolved):
            self.service.resolve(violation.id)
        assert self.service.get_violation(violation.id).resolved_notes == "Reviewed with driver"

    def test_resolve_unknown_violation(self):
        with pytest.raises(NotFound):
            self.service.resolve("missing")

    def test_get_unknown_violation(self):
        with pytest.raises(NotFound):
            self.service.get_violation("missing")

    def test_same_kind_can_be_recorded_after_resolution(self):
        first, _ = self.service.record(make_violation())
        self.service.resolve(first.id)

        second, created = self.service.record(make_violation(minutes=30))

        assert created is True
        assert second.id != first.id
        assert len(self.service.list_violations("D1")) == 2

    def test_list_violations_newest_first_with_paging(self):
        kinds = list(ViolationKind)
        for minutes, kind in enumerate(kinds):
            self.service.record(make_violation(kind, minutes=minutes))

        page = self.service.list_violations("D1", limit=2, offset=0)
        rest = self.service.list_violations("D1", limit=2, offset=2)

        assert [v.kind for v in page] == [kinds[2], kinds[1]]
        assert [v.kind for v in rest] == [kinds[0]]

    def test_list_violations_filtered_by_resolution(self):
        first, _ = self.service.record(make_violation())
        self.service.record(make_violation(ViolationKind.CYCLE_HOURS_EXCEEDED))
        self.service.resolve(first.id)

        assert [v.id for v in self.service.list_violations("D1", resolved=True)] == [first.id]
        assert len(self.service.list_violations("D1", resolved=False)) == 1

    def test_summary(self):
        first, _ = self.service.record(make_violation())
        self.service.record(make_violation(ViolationKind.CYCLE_HOURS_EXCEEDED, minutes=10))
        self.service.resolve(first.id)

        summary = self.service.summary("D1")

        assert summary["total_violations"] == 2
        assert summary["active_violations"] == 1
        assert summary["resolved_violations"] == 1
        assert summary["by_severity"] == {"MINOR": 0, "MAJOR": 1, "CRITICAL": 1}
        assert summary["by_kind"] == {"DRIVE_TIME_EXCEEDED": 1, "CYCLE_HOURS_EXCEEDED": 1}
        assert summary["last_violation"] == (T0 + timedelta(minutes=10)).isoformat()


class DjangoViolationStoreTest(TestCase):
    """Test the violation store against the database-backed store."""

    def setUp(self):
        self.service = ViolationStoreService(store=DjangoTimelineStore())

    def test_record_is_deduplicated_in_database(self):
        first, created = self.service.record(make_violation())
        second, created_again = self.service.record(make_violation(minutes=5))

        assert created is True
        assert created_again is False
        assert second.id == first.id
        assert ComplianceViolation.objects.filter(driver_id="D1").count() == 1

    def test_long_description_is_stored_in_full(self):
        description = "Driving hours exceed the 11-hour limit. " * 10

        violation, _ = self.service.record(replace(make_violation(), description=description))

        assert ComplianceViolation.objects.get(id=violation.id).description == description
        assert self.service.get_violation(violation.id).description == description

    def test_resolve_persists_and_rejects_second_resolve(self):
        violation, _ = self.service.record(make_violation())

        self.service.resolve(violation.id, "Logged")

        record = ComplianceViolation.objects.get(id=violation.id)
        assert record.is_resolved is True
        assert record.resolution_notes == "Logged"
        with pytest.raises(AlreadyResolved):
            self.service.resolve(violation.id)

    def test_resolve_malformed_id(self):
        with pytest.raises(NotFound):
            self.service.resolve("not-a-uuid")
