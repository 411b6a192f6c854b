"""
Timeline storage.

The HOS engine reads and writes driver timelines and violations only
through the narrow ``TimelineStore`` interface defined here. Two
implementations are provided:

- ``DjangoTimelineStore``: production store backed by the Django ORM.
- ``InMemoryTimelineStore``: process-local store for tests and embedding.

Both give per-driver serialization through ``driver_lock`` and never
hold a lock across drivers.
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from functools import lru_cache, wraps
from typing import Dict, Iterator, List, Optional, Set, Tuple

from django.db import DatabaseError, IntegrityError, connection, transaction
from django.utils.module_loading import import_string

from common.exceptions import AlreadyResolved, NotFound, StorageUnavailable
from eld_logs.timeline import DutyInterval, sort_intervals
from hos_compliance.violations import Violation

logger = logging.getLogger(__name__)


class TimelineStore(ABC):
    """
    Storage collaborator for the HOS engine.

    Provides "most recent intervals for driver X" and "intervals
    overlapping a time range" access to the duty status timeline, and a
    violations table partitioned into unresolved and resolved records.
    """

    @abstractmethod
    def driver_lock(self, driver_id: str, timeout: float):
        """
        Serialize writes for one driver.

        Returns a context manager. Writes made inside it commit together
        or not at all. Raises StorageUnavailable if the lock cannot be
        taken within ``timeout`` seconds.
        """

    @abstractmethod
    def get_open_interval(self, driver_id: str) -> Optional[DutyInterval]:
        """Return the driver's open interval, if any."""

    @abstractmethod
    def get_latest_interval(self, driver_id: str) -> Optional[DutyInterval]:
        """Return the driver's most recent interval by start time."""

    @abstractmethod
    def get_intervals(
        self,
        driver_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[DutyInterval]:
        """Return intervals overlapping ``[start, end]`` ordered by start."""

    @abstractmethod
    def get_interval(self, interval_id: str) -> Optional[DutyInterval]:
        """Return one interval by id."""

    @abstractmethod
    def append_interval(
        self,
        driver_id: str,
        interval: DutyInterval,
        close_at: Optional[datetime] = None,
        close_odometer: Optional[int] = None,
    ) -> DutyInterval:
        """Close the open interval at ``close_at`` (if given) and insert ``interval``."""

    @abstractmethod
    def update_interval(self, interval: DutyInterval) -> DutyInterval:
        """Rewrite the descriptive fields (location, notes, geo) of an interval."""

    @abstractmethod
    def has_active_assignment(self, driver_id: str) -> bool:
        """Check whether the driver currently holds a vehicle assignment."""

    @abstractmethod
    def add_violation(self, violation: Violation) -> Tuple[Violation, bool]:
        """
        Insert an unresolved violation.

        Returns ``(violation, created)``. If an unresolved violation of
        the same kind already exists for the driver it is returned
        unchanged with ``created=False``.
        """

    @abstractmethod
    def get_violation(self, violation_id: str) -> Optional[Violation]:
        """Return one violation by id."""

    @abstractmethod
    def list_violations(
        self, driver_id: str, resolved: Optional[bool] = None
    ) -> List[Violation]:
        """Return the driver's violations, newest first."""

    @abstractmethod
    def resolve_violation(
        self, violation_id: str, resolved_at: datetime, notes: Optional[str] = None
    ) -> Violation:
        """
        Mark a violation resolved.

        Raises NotFound if it does not exist and AlreadyResolved if it
        was resolved before.
        """


class InMemoryTimelineStore(TimelineStore):
    """
    Process-local timeline store.

    Each driver's timeline is an immutable tuple that is swapped as a
    whole on write, so readers always observe either the state before or
    after a ledger commit.
    """

    def __init__(self, assigned_drivers=None):
        self._registry_lock = threading.Lock()
        self._driver_locks: Dict[str, threading.Lock] = {}
        self._violation_lock = threading.Lock()
        self._timelines: Dict[str, Tuple[DutyInterval, ...]] = {}
        self._violations: Dict[str, Violation] = {}
        self._assigned: Set[str] = set(str(d) for d in (assigned_drivers or []))

    def assign_vehicle(self, driver_id: str):
        self._assigned.add(str(driver_id))

    def unassign_vehicle(self, driver_id: str):
        self._assigned.discard(str(driver_id))

    def _lock_for(self, driver_id: str) -> threading.Lock:
        with self._registry_lock:
            if driver_id not in self._driver_locks:
                self._driver_locks[driver_id] = threading.Lock()
            return self._driver_locks[driver_id]

    @contextmanager
    def driver_lock(self, driver_id: str, timeout: float) -> Iterator[None]:
        lock = self._lock_for(str(driver_id))
        if not lock.acquire(timeout=timeout):
            raise StorageUnavailable(
                f"Timed out waiting for timeline lock of driver {driver_id}",
                driver_id=str(driver_id),
                timeout_seconds=timeout,
            )
        try:
            yield
        finally:
            lock.release()

    def _timeline(self, driver_id) -> Tuple[DutyInterval, ...]:
        return self._timelines.get(str(driver_id), ())

    def get_open_interval(self, driver_id):
        for interval in reversed(self._timeline(driver_id)):
            if interval.is_open:
                return interval
        return None

    def get_latest_interval(self, driver_id):
        timeline = self._timeline(driver_id)
        return timeline[-1] if timeline else None

    def get_intervals(self, driver_id, start=None, end=None):
        return [i for i in self._timeline(driver_id) if i.overlaps(start, end)]

    def get_interval(self, interval_id):
        for timeline in list(self._timelines.values()):
            for interval in timeline:
                if interval.id == interval_id:
                    return interval
        return None

    def append_interval(self, driver_id, interval, close_at=None, close_odometer=None):
        driver_id = str(driver_id)
        timeline = list(self._timeline(driver_id))
        if close_at is not None:
            timeline = [
                i.closed(close_at, close_odometer) if i.is_open else i
                for i in timeline
            ]
        stored = replace(interval, id=interval.id or str(uuid.uuid4()))
        timeline.append(stored)
        self._timelines[driver_id] = tuple(sort_intervals(timeline))
        return stored

    def update_interval(self, interval):
        driver_id = str(interval.driver_id)
        timeline = self._timeline(driver_id)
        if not any(i.id == interval.id for i in timeline):
            raise NotFound(f"Duty interval {interval.id} not found", interval_id=interval.id)
        self._timelines[driver_id] = tuple(
            replace(i, location=interval.location, notes=interval.notes, geo=interval.geo)
            if i.id == interval.id
            else i
            for i in timeline
        )
        return self.get_interval(interval.id)

    def has_active_assignment(self, driver_id):
        return str(driver_id) in self._assigned

    def add_violation(self, violation):
        with self._violation_lock:
            for existing in self._violations.values():
                if (
                    existing.driver_id == violation.driver_id
                    and existing.kind == violation.kind
                    and not existing.resolved
                ):
                    return existing, False
            stored = replace(violation, id=violation.id or str(uuid.uuid4()), resolved=False)
            self._violations[stored.id] = stored
            return stored, True

    def get_violation(self, violation_id):
        return self._violations.get(str(violation_id))

    def list_violations(self, driver_id, resolved=None):
        violations = [
            v
            for v in list(self._violations.values())
            if v.driver_id == str(driver_id) and (resolved is None or v.resolved == resolved)
        ]
        return sorted(violations, key=lambda v: v.detected_at, reverse=True)

    def resolve_violation(self, violation_id, resolved_at, notes=None):
        with self._violation_lock:
            violation = self._violations.get(str(violation_id))
            if violation is None:
                raise NotFound(f"Violation {violation_id} not found", violation_id=str(violation_id))
            if violation.resolved:
                raise AlreadyResolved(
                    f"Violation {violation_id} was already resolved",
                    violation_id=str(violation_id),
                )
            resolved = violation.resolve(resolved_at, notes)
            self._violations[resolved.id] = resolved
            return resolved


def _storage_errors(method):
    """Translate database failures into StorageUnavailable."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except DatabaseError as e:
            logger.error(f"Timeline storage failure in {method.__name__}: {str(e)}")
            raise StorageUnavailable(
                f"Timeline storage failure: {str(e)}", operation=method.__name__
            ) from e

    return wrapper


class DjangoTimelineStore(TimelineStore):
    """
    Timeline store backed by the Django ORM.

    Writes run inside ``transaction.atomic``. The driver's active vehicle
    assignment and open interval rows are locked with
    ``select_for_update`` to serialize concurrent writers for the same
    driver; the partial unique constraints on the models guarantee one
    open interval per driver and one unresolved violation per kind.
    """

    @contextmanager
    def driver_lock(self, driver_id, timeout):
        from eld_logs.models import DutyStatusRecord, VehicleAssignment

        try:
            with transaction.atomic():
                self._set_lock_timeout(timeout)
                list(
                    VehicleAssignment.objects.select_for_update()
                    .filter(driver_id=str(driver_id), is_active=True)
                    .values_list("id", flat=True)
                )
                list(
                    DutyStatusRecord.objects.select_for_update()
                    .filter(driver_id=str(driver_id), end_time__isnull=True)
                    .values_list("id", flat=True)
                )
                yield
        except DatabaseError as e:
            logger.warning(f"Timeline write for driver {driver_id} failed: {str(e)}")
            raise StorageUnavailable(
                f"Timeline storage unavailable for driver {driver_id}",
                driver_id=str(driver_id),
                timeout_seconds=timeout,
            ) from e

    def _set_lock_timeout(self, timeout):
        if connection.vendor == "postgresql":
            with connection.cursor() as cursor:
                cursor.execute(f"SET LOCAL lock_timeout = '{int(timeout * 1000)}ms'")

    def _records(self, driver_id):
        from eld_logs.models import DutyStatusRecord

        return DutyStatusRecord.objects.filter(driver_id=str(driver_id))

    @_storage_errors
    def get_open_interval(self, driver_id):
        record = self._records(driver_id).filter(end_time__isnull=True).first()
        return record.to_interval() if record else None

    @_storage_errors
    def get_latest_interval(self, driver_id):
        record = self._records(driver_id).order_by("-start_time").first()
        return record.to_interval() if record else None

    @_storage_errors
    def get_intervals(self, driver_id, start=None, end=None):
        from django.db.models import Q

        queryset = self._records(driver_id)
        if start is not None:
            queryset = queryset.filter(Q(end_time__isnull=True) | Q(end_time__gte=start))
        if end is not None:
            queryset = queryset.filter(start_time__lte=end)
        return [record.to_interval() for record in queryset.order_by("start_time")]

    @_storage_errors
    def get_interval(self, interval_id):
        from django.core.exceptions import ValidationError
        from eld_logs.models import DutyStatusRecord

        try:
            record = DutyStatusRecord.objects.filter(id=interval_id).first()
        except ValidationError:
            return None
        return record.to_interval() if record else None

    @_storage_errors
    def append_interval(self, driver_id, interval, close_at=None, close_odometer=None):
        from eld_logs.models import DutyStatusRecord

        with transaction.atomic():
            if close_at is not None:
                self._records(driver_id).filter(end_time__isnull=True).update(
                    end_time=close_at, odometer_end=close_odometer
                )
            record = DutyStatusRecord.objects.create(
                **DutyStatusRecord.field_values(interval)
            )
        return record.to_interval()

    @_storage_errors
    def update_interval(self, interval):
        from eld_logs.models import DutyStatusRecord

        values = DutyStatusRecord.field_values(interval)
        updated = DutyStatusRecord.objects.filter(id=interval.id).update(
            location=values["location"],
            notes=values["notes"],
            latitude=values["latitude"],
            longitude=values["longitude"],
            accuracy=values["accuracy"],
        )
        if not updated:
            raise NotFound(f"Duty interval {interval.id} not found", interval_id=interval.id)
        return DutyStatusRecord.objects.get(id=interval.id).to_interval()

    @_storage_errors
    def has_active_assignment(self, driver_id):
        from eld_logs.models import VehicleAssignment

        return VehicleAssignment.has_active(driver_id)

    @_storage_errors
    def add_violation(self, violation):
        from hos_compliance.models import ComplianceViolation

        values = ComplianceViolation.field_values(violation)
        values["is_resolved"] = False
        try:
            with transaction.atomic():
                record = ComplianceViolation.objects.create(**values)
            return record.to_violation(), True
        except IntegrityError:
            existing = ComplianceViolation.objects.filter(
                driver_id=violation.driver_id,
                violation_type=violation.kind.value,
                is_resolved=False,
            ).first()
            if existing is None:
                raise
            return existing.to_violation(), False

    @_storage_errors
    def get_violation(self, violation_id):
        from django.core.exceptions import ValidationError
        from hos_compliance.models import ComplianceViolation

        try:
            record = ComplianceViolation.objects.filter(id=violation_id).first()
        except ValidationError:
            return None
        return record.to_violation() if record else None

    @_storage_errors
    def list_violations(self, driver_id, resolved=None):
        from hos_compliance.models import ComplianceViolation

        queryset = ComplianceViolation.objects.filter(driver_id=str(driver_id))
        if resolved is not None:
            queryset = queryset.filter(is_resolved=resolved)
        return [record.to_violation() for record in queryset.order_by("-detected_at")]

    @_storage_errors
    def resolve_violation(self, violation_id, resolved_at, notes=None):
        from django.core.exceptions import ValidationError
        from hos_compliance.models import ComplianceViolation

        with transaction.atomic():
            try:
                record = (
                    ComplianceViolation.objects.select_for_update()
                    .filter(id=violation_id)
                    .first()
                )
            except ValidationError:
                record = None
            if record is None:
                raise NotFound(f"Violation {violation_id} not found", violation_id=str(violation_id))
            if record.is_resolved:
                raise AlreadyResolved(
                    f"Violation {violation_id} was already resolved",
                    violation_id=str(violation_id),
                )
            record.is_resolved = True
            record.resolved_at = resolved_at
            record.resolution_notes = notes
            record.save(update_fields=["is_resolved", "resolved_at", "resolution_notes"])
        return record.to_violation()


DEFAULT_TIMELINE_STORE = "common.timeline_store.DjangoTimelineStore"


@lru_cache(maxsize=None)
def _load_store(dotted_path: str) -> TimelineStore:
    store_class = import_string(dotted_path)
    logger.info(f"Using timeline store {dotted_path}")
    return store_class()


def get_timeline_store() -> TimelineStore:
    """Return the store configured in ``settings.HOS_ENGINE["TIMELINE_STORE"]``."""
    from django.conf import settings

    engine_settings = getattr(settings, "HOS_ENGINE", {}) or {}
    return _load_store(engine_settings.get("TIMELINE_STORE", DEFAULT_TIMELINE_STORE))
