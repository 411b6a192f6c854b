"""
Compliance Rule Engine.

Evaluates a driver's timeline against the FMCSA property-carrying
limits:
- 11-hour driving limit within the current duty period
- 14-hour duty window
- 70-hour/8-day (or 60-hour/7-day) cycle limit

Evaluation is a pure read of the timeline followed by recording any new
violations. Re-running it without a timeline change never duplicates an
unresolved violation.

Single Responsibility: HOS rule evaluation only.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from django.utils import timezone

from common.hos_config import HOSRuleConfig
from common.timeline_store import TimelineStore, get_timeline_store
from common.validators import seconds_to_hours
from eld_logs.services.hours_accumulator import accumulate_intervals
from eld_logs.timeline import (
    DRIVING_STATUSES,
    ON_DUTY_STATUSES,
    DutyInterval,
    DutyStatus,
    find_rest_spans,
    sort_intervals,
    status_at,
    status_ending_at,
    truncate_to_second,
    whole_seconds,
)
from ..violations import REGULATION_REFERENCES, Severity, Violation, ViolationKind
from .cycle_tracker import CycleState, CycleTrackerService
from .violation_store import ViolationStoreService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DutyPeriod:
    """The driver's current duty period as seen at ``as_of``."""

    start: Optional[datetime]
    as_of: datetime
    current_status: Optional[DutyStatus]
    previous_status: Optional[DutyStatus]
    drive_seconds: int
    window_seconds: int
    last_rest_end: Optional[datetime]

    @property
    def is_on_duty(self) -> bool:
        return self.current_status in ON_DUTY_STATUSES

    @property
    def worked_until_as_of(self) -> bool:
        """On duty at ``as_of`` or right up to it, as when going off duty at ``as_of``."""
        return self.is_on_duty or self.previous_status in ON_DUTY_STATUSES


@dataclass(frozen=True)
class RuleFinding:
    """A limit found to be exceeded, before it is recorded as a violation."""

    kind: ViolationKind
    severity: Severity
    current_seconds: int
    limit_seconds: int
    description: str

    def to_violation(self, driver_id: str, detected_at: datetime) -> Violation:
        return Violation(
            driver_id=driver_id,
            kind=self.kind,
            severity=self.severity,
            detected_at=detected_at,
            description=self.description,
            current_hours=seconds_to_hours(self.current_seconds),
            limit_hours=seconds_to_hours(self.limit_seconds),
            regulation_reference=REGULATION_REFERENCES[self.kind],
        )


class ComplianceRuleEngine:
    """
    Rule engine for driving, duty window and cycle limits.

    The rules read the timeline only; the violation store is the only
    thing written to.
    """

    def __init__(
        self,
        store: Optional[TimelineStore] = None,
        config: Optional[HOSRuleConfig] = None,
    ):
        self.store = store or get_timeline_store()
        self.config = config or HOSRuleConfig.from_settings()
        self.cycle_tracker = CycleTrackerService(store=self.store, config=self.config)
        self.violation_store = ViolationStoreService(store=self.store)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def start_of_duty_period(
        self, intervals: List[DutyInterval], as_of: datetime
    ) -> Optional[datetime]:
        """
        Find when the driver's current duty period started.

        The duty period starts with the earliest on-duty interval after
        the most recent off-duty/sleeper span of at least the daily reset
        length. Without such a span, the earliest on-duty interval read
        counts. Returns None when there is no on-duty time to attribute.
        """
        last_rest_end = self._last_daily_reset(intervals, as_of)
        for interval in sort_intervals(intervals):
            if interval.start >= as_of:
                break
            if not interval.is_on_duty:
                continue
            if last_rest_end is None or interval.start >= last_rest_end:
                return interval.start
        return None

    def duty_period(self, driver_id, as_of: Optional[datetime] = None) -> DutyPeriod:
        as_of = truncate_to_second(as_of or timezone.now())
        intervals = self.cycle_tracker.read_history(str(driver_id), as_of)
        return self.duty_period_from_intervals(intervals, as_of)

    def detect(self, driver_id, as_of: Optional[datetime] = None) -> List[RuleFinding]:
        """
        Check every rule at ``as_of`` without recording anything.

        Returns:
            Findings for each limit currently exceeded
        """
        as_of = truncate_to_second(as_of or timezone.now())
        intervals = self.cycle_tracker.read_history(str(driver_id), as_of)
        period = self.duty_period_from_intervals(intervals, as_of)
        cycle = self.cycle_tracker.cycle_from_intervals(str(driver_id), intervals, as_of)
        return self.findings_for(period, cycle)

    def findings_for(self, period: DutyPeriod, cycle: CycleState) -> List[RuleFinding]:
        findings = []

        drive_finding = self._check_drive_time(period)
        if drive_finding:
            findings.append(drive_finding)

        window_finding = self._check_duty_window(period)
        if window_finding:
            findings.append(window_finding)

        cycle_finding = self._check_cycle(cycle)
        if cycle_finding:
            findings.append(cycle_finding)

        return findings

    def evaluate(self, driver_id, as_of: Optional[datetime] = None) -> List[Violation]:
        """
        Evaluate the driver's timeline and record new violations.

        Args:
            driver_id: Driver identifier
            as_of: Evaluation instant (default: now)

        Returns:
            Violations newly recorded by this evaluation. Limits already
            covered by an unresolved violation of the same kind produce
            nothing new.
        """
        driver_id = str(driver_id)
        as_of = truncate_to_second(as_of or timezone.now())
        return self._record_findings(driver_id, self.detect(driver_id, as_of), as_of)

    def get_compliance_report(self, driver_id, as_of: Optional[datetime] = None) -> Dict:
        """
        Evaluate the driver and describe the result for display.

        Returns:
            Dict with current findings, the unresolved violations and a
            0-100 compliance score
        """
        driver_id = str(driver_id)
        as_of = truncate_to_second(as_of or timezone.now())
        findings = self.detect(driver_id, as_of)
        new_violations = self._record_findings(driver_id, findings, as_of)
        unresolved = self.violation_store.list_unresolved(driver_id)

        return {
            "driver_id": str(driver_id),
            "as_of": as_of.isoformat(),
            "is_compliant": len(findings) == 0,
            "compliance_score": self._calculate_compliance_score(findings, unresolved),
            "findings": [
                {
                    "kind": f.kind.value,
                    "severity": f.severity.value,
                    "description": f.description,
                    "current_hours": float(seconds_to_hours(f.current_seconds)),
                    "limit_hours": float(seconds_to_hours(f.limit_seconds)),
                }
                for f in findings
            ],
            "new_violations": [v.get_summary() for v in new_violations],
            "unresolved_violations": [v.get_summary() for v in unresolved],
        }

    def _record_findings(
        self, driver_id: str, findings: List[RuleFinding], as_of: datetime
    ) -> List[Violation]:
        recorded = []
        for finding in findings:
            violation, created = self.violation_store.record(
                finding.to_violation(driver_id, as_of)
            )
            if created:
                recorded.append(violation)

        self.logger.debug(
            f"Evaluated driver {driver_id} at {as_of.isoformat()}: "
            f"{len(findings)} finding(s), {len(recorded)} new violation(s)"
        )
        return recorded

    def _last_daily_reset(
        self, intervals: List[DutyInterval], as_of: datetime
    ) -> Optional[datetime]:
        for span in reversed(find_rest_spans(intervals, as_of)):
            if span.duration >= self.config.daily_reset:
                return span.end
        return None

    def duty_period_from_intervals(
        self, intervals: List[DutyInterval], as_of: datetime
    ) -> DutyPeriod:
        start = self.start_of_duty_period(intervals, as_of)
        drive_seconds = 0
        window_seconds = 0
        if start is not None:
            drive_seconds, _, _ = accumulate_intervals(
                intervals, DRIVING_STATUSES, start, as_of, as_of
            )
            window_seconds = whole_seconds(as_of - start)

        return DutyPeriod(
            start=start,
            as_of=as_of,
            current_status=status_at(intervals, as_of),
            previous_status=status_ending_at(intervals, as_of),
            drive_seconds=drive_seconds,
            window_seconds=window_seconds,
            last_rest_end=self._last_daily_reset(intervals, as_of),
        )

    def _check_drive_time(self, period: DutyPeriod) -> Optional[RuleFinding]:
        limit = whole_seconds(self.config.max_driving)
        if period.start is None or period.drive_seconds <= limit:
            return None
        return RuleFinding(
            kind=ViolationKind.DRIVE_TIME_EXCEEDED,
            severity=Severity.MAJOR,
            current_seconds=period.drive_seconds,
            limit_seconds=limit,
            description=(
                f"Driving hours ({seconds_to_hours(period.drive_seconds)}) exceed "
                f"{self.config.max_driving_hours}-hour limit"
            ),
        )

    def _check_duty_window(self, period: DutyPeriod) -> Optional[RuleFinding]:
        limit = whole_seconds(self.config.max_duty_window)
        if period.start is None or not period.worked_until_as_of or period.window_seconds <= limit:
            return None
        return RuleFinding(
            kind=ViolationKind.DUTY_WINDOW_EXCEEDED,
            severity=Severity.MAJOR,
            current_seconds=period.window_seconds,
            limit_seconds=limit,
            description=(
                f"Duty period ({seconds_to_hours(period.window_seconds)}) exceeds "
                f"{self.config.max_duty_window_hours}-hour window"
            ),
        )

    def _check_cycle(self, cycle: CycleState) -> Optional[RuleFinding]:
        if not cycle.is_over_limit:
            return None
        return RuleFinding(
            kind=ViolationKind.CYCLE_HOURS_EXCEEDED,
            severity=Severity.CRITICAL,
            current_seconds=cycle.seconds_used,
            limit_seconds=cycle.limit_seconds,
            description=(
                f"Cycle hours ({cycle.hours_used}) exceed "
                f"{self.config.cycle_limit_hours}-hour/{self.config.cycle_days}-day limit"
            ),
        )

    def _calculate_compliance_score(self, findings, unresolved) -> int:
        """Calculate compliance score (0-100)."""
        score = 100
        score -= len(findings) * 25  # Each exceeded limit: -25 points
        score -= sum(10 for v in unresolved if v.severity == Severity.CRITICAL)
        return max(0, min(100, score))
