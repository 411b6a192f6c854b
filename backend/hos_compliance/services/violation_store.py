"""
Violation Store Service.

Owns every mutation of compliance violations: recording newly detected
violations and resolving them. Violations are never deleted.
"""

import logging
from collections import Counter
from typing import Dict, List, Optional, Tuple

from django.utils import timezone

from common.exceptions import HOSEngineError, NotFound
from common.timeline_store import TimelineStore, get_timeline_store
from ..signals import violation_recorded
from ..violations import Severity, Violation

logger = logging.getLogger(__name__)


class ViolationStoreService:
    """Service for recording, listing and resolving violations."""

    def __init__(self, store: Optional[TimelineStore] = None):
        self.store = store or get_timeline_store()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def record(self, violation: Violation) -> Tuple[Violation, bool]:
        """
        Record a violation as unresolved.

        Args:
            violation: Violation detected by the rule engine

        Returns:
            Tuple of (stored violation, created). When an unresolved
            violation of the same kind already exists for the driver it is
            returned untouched and ``created`` is False.
        """
        stored, created = self.store.add_violation(violation)
        if not created:
            self.logger.debug(
                f"Unresolved {violation.kind.value} already open for driver "
                f"{violation.driver_id} ({stored.id})"
            )
            return stored, False

        self.logger.warning(
            f"Recorded {stored.severity.value} violation {stored.kind.value} "
            f"for driver {stored.driver_id}: {stored.description}"
        )
        responses = violation_recorded.send_robust(
            sender=self.__class__, violation=stored, driver_id=stored.driver_id
        )
        for receiver, response in responses:
            if isinstance(response, Exception):
                self.logger.error(
                    f"Violation listener {getattr(receiver, '__name__', receiver)} "
                    f"failed for {stored.id}: {str(response)}"
                )
        return stored, True

    def get_violation(self, violation_id) -> Violation:
        violation = self.store.get_violation(str(violation_id))
        if violation is None:
            raise NotFound(f"Violation {violation_id} not found", violation_id=str(violation_id))
        return violation

    def list_unresolved(self, driver_id) -> List[Violation]:
        """Get the driver's unresolved violations, newest first."""
        return self.store.list_violations(str(driver_id), resolved=False)

    def list_violations(
        self,
        driver_id,
        resolved: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Violation]:
        """
        Get a page of the driver's violations, newest first.

        Args:
            driver_id: Driver identifier
            resolved: Filter on resolution state (None for all)
            limit: Maximum number of violations to return
            offset: Number of violations to skip
        """
        violations = self.store.list_violations(str(driver_id), resolved=resolved)
        return violations[offset : offset + limit]

    def resolve(self, violation_id, notes: Optional[str] = None) -> Violation:
        """
        Mark a violation resolved.

        Raises:
            NotFound: no violation with this id
            AlreadyResolved: the violation was resolved before
        """
        try:
            resolved = self.store.resolve_violation(
                str(violation_id), timezone.now().replace(microsecond=0), notes
            )
        except HOSEngineError as e:
            self.logger.warning(f"Could not resolve violation {violation_id}: {e.message}")
            raise

        self.logger.info(
            f"Resolved violation {resolved.id} ({resolved.kind.value}) for driver {resolved.driver_id}"
        )
        return resolved

    def summary(self, driver_id) -> Dict:
        """
        Summarize the driver's violation history.

        Returns:
            Dict with total and active counts, per-severity and per-kind
            counts and the most recent detection time
        """
        violations = self.store.list_violations(str(driver_id))
        active = [v for v in violations if not v.resolved]
        by_severity = Counter(v.severity.value for v in violations)

        return {
            "driver_id": str(driver_id),
            "total_violations": len(violations),
            "active_violations": len(active),
            "resolved_violations": len(violations) - len(active),
            "by_severity": {
                severity.value: by_severity.get(severity.value, 0) for severity in Severity
            },
            "by_kind": dict(Counter(v.kind.value for v in violations)),
            "last_violation": violations[0].detected_at.isoformat() if violations else None,
        }
