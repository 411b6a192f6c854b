"""
Compliance violation records.

Plain violation records exchanged between the rule engine, the
violation store and the timeline stores.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from django.db import models


class ViolationKind(models.TextChoices):
    DRIVE_TIME_EXCEEDED = "DRIVE_TIME_EXCEEDED", "11-Hour Driving Limit"
    DUTY_WINDOW_EXCEEDED = "DUTY_WINDOW_EXCEEDED", "14-Hour Duty Window Limit"
    CYCLE_HOURS_EXCEEDED = "CYCLE_HOURS_EXCEEDED", "7/8-Day Cycle Limit"


class Severity(models.TextChoices):
    MINOR = "MINOR", "Minor"
    MAJOR = "MAJOR", "Major"
    CRITICAL = "CRITICAL", "Critical (Safety Risk)"


REGULATION_REFERENCES = {
    ViolationKind.DRIVE_TIME_EXCEEDED: "395.3(a)(3)",
    ViolationKind.DUTY_WINDOW_EXCEEDED: "395.3(a)(2)",
    ViolationKind.CYCLE_HOURS_EXCEEDED: "395.3(b)",
}

RECOMMENDED_ACTIONS = {
    ViolationKind.CYCLE_HOURS_EXCEEDED: [
        "Take 34-hour restart",
        "Wait for hours to roll off the cycle window",
        "Transfer load to another driver",
    ],
    ViolationKind.DUTY_WINDOW_EXCEEDED: [
        "Take 10 consecutive hours off duty",
    ],
    ViolationKind.DRIVE_TIME_EXCEEDED: [
        "Stop driving and take 10 consecutive hours off duty",
    ],
}


@dataclass(frozen=True)
class Violation:
    """
    A detected breach of a driving, duty window or cycle limit.

    Violations are created unresolved and only ever change through an
    explicit resolve. They are never deleted.
    """

    driver_id: str
    kind: ViolationKind
    severity: Severity
    detected_at: datetime
    description: str = ""
    current_hours: Decimal = Decimal("0")
    limit_hours: Decimal = Decimal("0")
    regulation_reference: str = ""
    resolved: bool = False
    resolved_at: Optional[datetime] = None
    resolved_notes: Optional[str] = None
    id: Optional[str] = field(default=None, compare=False)

    @property
    def hours_over_limit(self) -> Decimal:
        return max(Decimal("0"), self.current_hours - self.limit_hours)

    def resolve(self, resolved_at: datetime, notes: Optional[str] = None) -> "Violation":
        return replace(self, resolved=True, resolved_at=resolved_at, resolved_notes=notes)

    def get_recommended_actions(self):
        return RECOMMENDED_ACTIONS.get(
            self.kind, ["Consult HOS regulations", "Contact safety department"]
        )

    def get_summary(self) -> Dict:
        return {
            "id": self.id,
            "driver_id": self.driver_id,
            "kind": self.kind.value,
            "kind_display": self.kind.label,
            "severity": self.severity.value,
            "description": self.description,
            "current_hours": float(self.current_hours),
            "limit_hours": float(self.limit_hours),
            "hours_over_limit": float(self.hours_over_limit),
            "regulation_reference": self.regulation_reference,
            "detected_at": self.detected_at.isoformat(),
            "resolved": self.resolved,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "resolved_notes": self.resolved_notes,
            "recommended_actions": self.get_recommended_actions(),
        }
