"""
Duty Status Ledger Service.

Owns every mutation of a driver's duty status timeline. A status change
closes the driver's open interval and opens the next one as a single
atomic unit under the driver's timeline lock, so readers never observe a
half-closed timeline.

This service handles:
- Duty status change recording
- Transition table and odometer validation
- Amending the current interval's location and remarks
- Timeline integrity checks

Single Responsibility: duty status timeline mutation only.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from django.utils import timezone

from common.exceptions import (
    HOSEngineError,
    InvalidTransition,
    NoActiveAssignment,
    NotFound,
    OdometerRegression,
)
from common.hos_config import HOSRuleConfig
from common.timeline_store import TimelineStore, get_timeline_store
from ..signals import duty_status_changed
from ..timeline import (
    DutyInterval,
    GeoPoint,
    can_transition,
    parse_status,
    sort_intervals,
    truncate_to_second,
)

logger = logging.getLogger(__name__)


class DutyStatusLedgerService:
    """
    Service for recording driver duty status changes.

    Enforces the single-open-interval and no-overlap invariants of the
    timeline and notifies listeners once a change has been committed.
    """

    DEFAULT_LOCATION = "Unknown location"

    def __init__(
        self,
        store: Optional[TimelineStore] = None,
        config: Optional[HOSRuleConfig] = None,
    ):
        """Initialize the ledger over a timeline store."""
        self.store = store or get_timeline_store()
        self.config = config or HOSRuleConfig.from_settings()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def record_status_change(
        self,
        driver_id,
        new_status,
        location: str = "",
        odometer: Optional[int] = None,
        timestamp: Optional[datetime] = None,
        notes: str = "",
        geo: Optional[GeoPoint] = None,
    ) -> DutyInterval:
        """
        Record a duty status change.

        Args:
            driver_id: Driver identifier
            new_status: New duty status (DutyStatus or its code)
            location: Location description where the status changed
            odometer: Odometer reading (default: carry the last reading forward)
            timestamp: Time of change (default: now)
            notes: Driver remarks
            geo: Optional GPS fix

        Returns:
            The newly opened DutyInterval

        Raises:
            InvalidTransition: unknown status, disallowed transition or a
                timestamp not after the current interval's start
            OdometerRegression: odometer lower than the last reading
            NoActiveAssignment: driver has no active vehicle assignment
            StorageUnavailable: timeline lock or commit timed out
        """
        driver_id = str(driver_id)
        status = parse_status(new_status)
        if status is None:
            raise InvalidTransition(
                f"Invalid duty status: {new_status}", status=str(new_status)
            )

        change_time = self._normalize_timestamp(timestamp)

        try:
            with self.store.driver_lock(
                driver_id, self.config.ledger_lock_timeout_seconds
            ):
                # Checked under the lock; the ORM store locks the assignment row
                if not self.store.has_active_assignment(driver_id):
                    raise NoActiveAssignment(
                        f"Driver {driver_id} has no active vehicle assignment",
                        driver_id=driver_id,
                    )

                current = self.store.get_open_interval(driver_id)
                latest = current or self.store.get_latest_interval(driver_id)

                reading = self._resolve_odometer(driver_id, odometer, latest)
                self._validate_transition(driver_id, status, change_time, latest)

                new_interval = DutyInterval(
                    driver_id=driver_id,
                    status=status,
                    start=change_time,
                    location=location or self.DEFAULT_LOCATION,
                    odometer_start=reading,
                    notes=notes or "",
                    geo=geo,
                )
                stored = self.store.append_interval(
                    driver_id,
                    new_interval,
                    close_at=change_time if current else None,
                    close_odometer=reading if current else None,
                )

        except HOSEngineError as e:
            self.logger.warning(
                f"Rejected status change to {status.value} for driver {driver_id}: {e.message}"
            )
            raise

        previous_status = current.status.value if current else "NONE"
        self.logger.info(
            f"Status change recorded for driver {driver_id}: {previous_status} -> {status.value}"
        )
        self._notify_status_changed(driver_id, stored, current)
        return stored

    def get_current_interval(self, driver_id) -> Optional[DutyInterval]:
        """Return the driver's open interval, if any."""
        return self.store.get_open_interval(str(driver_id))

    def list_intervals(
        self,
        driver_id,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[DutyInterval]:
        """
        Get duty status intervals for a driver.

        Args:
            driver_id: Driver identifier
            start: Optional lower bound, intervals ending before it are skipped
            end: Optional upper bound, intervals starting after it are skipped

        Returns:
            Intervals ordered by start time
        """
        return self.store.get_intervals(str(driver_id), start, end)

    def update_current_interval(
        self,
        driver_id,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        geo: Optional[GeoPoint] = None,
    ) -> DutyInterval:
        """
        Amend the descriptive fields of the driver's open interval.

        Status and timing are never changed here; a new status always goes
        through ``record_status_change``.
        """
        driver_id = str(driver_id)
        with self.store.driver_lock(driver_id, self.config.ledger_lock_timeout_seconds):
            current = self.store.get_open_interval(driver_id)
            if current is None:
                raise NotFound(
                    f"No active duty interval for driver {driver_id}",
                    driver_id=driver_id,
                )
            amended = replace(
                current,
                location=current.location if location is None else location,
                notes=current.notes if notes is None else notes,
                geo=current.geo if geo is None else geo,
            )
            updated = self.store.update_interval(amended)

        self.logger.info(f"Updated current interval {updated.id} for driver {driver_id}")
        return updated

    def validate_timeline(self, driver_id) -> Dict:
        """
        Validate a driver's timeline for integrity.

        Args:
            driver_id: Driver identifier

        Returns:
            Dict containing validation results
        """
        intervals = sort_intervals(self.store.get_intervals(str(driver_id)))

        violations = []
        warnings = []

        violations.extend(self._check_open_intervals(intervals))
        violations.extend(self._check_overlaps(intervals))
        warnings.extend(self._check_time_gaps(intervals))
        warnings.extend(self._check_odometer_sequence(intervals))

        return {
            "driver_id": str(driver_id),
            "is_valid": len(violations) == 0,
            "violations": violations,
            "warnings": warnings,
            "total_records": len(intervals),
            "validation_score": self._calculate_validation_score(violations, warnings),
            "validated_at": timezone.now().isoformat(),
        }

    def _normalize_timestamp(self, timestamp: Optional[datetime]) -> datetime:
        if timestamp is None:
            timestamp = timezone.now()
        if timezone.is_naive(timestamp):
            timestamp = timezone.make_aware(timestamp)
        return truncate_to_second(timestamp)

    def _resolve_odometer(
        self, driver_id: str, odometer: Optional[int], latest: Optional[DutyInterval]
    ) -> int:
        """Check the odometer reading is monotonic and return it."""
        if odometer is None:
            return latest.odometer_start if latest else 0

        reading = int(odometer)
        if reading < 0:
            raise OdometerRegression(
                "Odometer reading cannot be negative", odometer=reading
            )
        if latest is not None and reading < latest.odometer_start:
            raise OdometerRegression(
                f"Odometer {reading} is lower than previous reading {latest.odometer_start}",
                odometer=reading,
                previous_odometer=latest.odometer_start,
                driver_id=driver_id,
            )
        return reading

    def _validate_transition(self, driver_id, status, change_time, latest):
        """Check the change against the transition table and the timeline order."""
        if latest is None:
            return

        if change_time <= latest.start or (
            latest.end is not None and change_time < latest.end
        ):
            raise InvalidTransition(
                f"Status change at {change_time.isoformat()} would overlap the "
                f"interval starting {latest.start.isoformat()}",
                driver_id=driver_id,
                timestamp=change_time.isoformat(),
                current_start=latest.start.isoformat(),
            )

        if not can_transition(latest.status, status):
            raise InvalidTransition(
                f"Cannot change from {latest.status.value} to {status.value}",
                driver_id=driver_id,
                current_status=latest.status.value,
                requested_status=status.value,
            )

    def _notify_status_changed(self, driver_id, interval, previous):
        responses = duty_status_changed.send_robust(
            sender=self.__class__,
            driver_id=driver_id,
            interval=interval,
            previous=previous,
            store=self.store,
            config=self.config,
        )
        for receiver, response in responses:
            if isinstance(response, Exception):
                self.logger.error(
                    f"Status change listener {getattr(receiver, '__name__', receiver)} "
                    f"failed for driver {driver_id}: {str(response)}"
                )

    def _check_open_intervals(self, intervals: List[DutyInterval]) -> List[Dict]:
        open_intervals = [i for i in intervals if i.is_open]
        if len(open_intervals) <= 1:
            return []
        return [
            {
                "type": "multiple_open_intervals",
                "description": f"{len(open_intervals)} intervals have no end time",
                "interval_ids": [i.id for i in open_intervals],
            }
        ]

    def _check_overlaps(self, intervals: List[DutyInterval]) -> List[Dict]:
        violations = []

        for current, following in zip(intervals, intervals[1:]):
            if current.end is None or current.end > following.start:
                violations.append(
                    {
                        "type": "overlap",
                        "description": "Interval overlaps the next interval",
                        "between_records": [current.id, following.id],
                    }
                )

        return violations

    def _check_time_gaps(self, intervals: List[DutyInterval]) -> List[Dict]:
        """Check for gaps in time coverage."""
        warnings = []

        for current, following in zip(intervals, intervals[1:]):
            if current.end is not None and following.start > current.end:
                gap_minutes = (following.start - current.end).total_seconds() / 60
                warnings.append(
                    {
                        "type": "time_gap",
                        "description": f"Gap of {gap_minutes:.0f} minutes between records",
                        "gap_minutes": gap_minutes,
                        "between_records": [current.id, following.id],
                    }
                )

        return warnings

    def _check_odometer_sequence(self, intervals: List[DutyInterval]) -> List[Dict]:
        warnings = []

        for current, following in zip(intervals, intervals[1:]):
            if following.odometer_start < current.odometer_start:
                warnings.append(
                    {
                        "type": "odometer_regression",
                        "description": f"Odometer dropped from {current.odometer_start} to {following.odometer_start}",
                        "between_records": [current.id, following.id],
                    }
                )

        return warnings

    def _calculate_validation_score(
        self, violations: List[Dict], warnings: List[Dict]
    ) -> int:
        """Calculate validation score (0-100)."""
        score = 100
        score -= len(violations) * 20  # Each violation: -20 points
        score -= len(warnings) * 5  # Each warning: -5 points
        return max(0, min(100, score))
