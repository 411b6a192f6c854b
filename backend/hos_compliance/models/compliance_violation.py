"""
Compliance Violation model for HOS compliance.

Contains the ComplianceViolation model that persists HOS violations
detected by the compliance rule engine.
"""

import uuid
from django.db import models
from django.core.validators import MinValueValidator

from ..violations import Severity, Violation, ViolationKind


class ComplianceViolation(models.Model):
    """
    Persisted HOS violation for a driver.

    Rows are created unresolved by the rule engine and only ever change
    through an explicit resolve. At most one unresolved row exists per
    driver and violation type.

    Attributes:
        id: UUID primary key
        driver_id: Driver the violation belongs to
        violation_type: Type of HOS violation
        severity: Severity level (minor, major, critical)
        description: Description of the violation
        current_value: Hours used when the violation was detected
        limit_value: Regulatory limit in hours
        is_resolved: Whether the violation has been resolved
        resolution_notes: Notes on how violation was resolved
        detected_at: When violation was detected
        resolved_at: When violation was resolved
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the compliance violation"
    )

    driver_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Driver this violation relates to"
    )

    violation_type = models.CharField(
        max_length=25,
        choices=ViolationKind.choices,
        help_text="Type of HOS violation"
    )

    severity = models.CharField(
        max_length=10,
        choices=Severity.choices,
        default=Severity.MAJOR,
        help_text="Severity level of the violation"
    )

    description = models.TextField(
        blank=True,
        help_text="Description of the violation"
    )

    current_value = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
        help_text="Hours used when the violation was detected"
    )

    limit_value = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
        help_text="Regulatory limit value in hours"
    )

    regulation_reference = models.CharField(
        max_length=50,
        blank=True,
        help_text="FMCSA regulation reference (e.g., '395.3(a)(2)')"
    )

    is_resolved = models.BooleanField(
        default=False,
        help_text="Whether the violation has been resolved"
    )

    resolution_notes = models.TextField(
        null=True,
        blank=True,
        help_text="Notes on how the violation was resolved"
    )

    detected_at = models.DateTimeField(
        help_text="When the violation was detected"
    )

    resolved_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the violation was resolved"
    )

    class Meta:
        db_table = 'hos_compliance_violation'
        ordering = ['-detected_at']
        verbose_name = 'Compliance Violation'
        verbose_name_plural = 'Compliance Violations'
        indexes = [
            models.Index(fields=['driver_id', 'is_resolved'], name='hos_complia_driver__7a3c51_idx'),
            models.Index(fields=['severity'], name='hos_complia_severit_e2b804_idx'),
            models.Index(fields=['detected_at'], name='hos_complia_detecte_91f6d2_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['driver_id', 'violation_type'],
                condition=models.Q(is_resolved=False),
                name='one_unresolved_violation_per_kind',
            ),
        ]

    def __str__(self):
        """Return string representation of the violation."""
        return f"{self.get_violation_type_display()} - {self.get_severity_display()} for driver {self.driver_id}"

    def to_violation(self) -> Violation:
        """Convert this row into a violation record."""
        return Violation(
            id=str(self.id),
            driver_id=self.driver_id,
            kind=ViolationKind(self.violation_type),
            severity=Severity(self.severity),
            detected_at=self.detected_at,
            description=self.description,
            current_hours=self.current_value,
            limit_hours=self.limit_value,
            regulation_reference=self.regulation_reference,
            resolved=self.is_resolved,
            resolved_at=self.resolved_at,
            resolved_notes=self.resolution_notes,
        )

    @classmethod
    def field_values(cls, violation: Violation) -> dict:
        """Column values for persisting ``violation``."""
        return {
            'driver_id': violation.driver_id,
            'violation_type': violation.kind.value,
            'severity': violation.severity.value,
            'description': violation.description,
            'current_value': violation.current_hours,
            'limit_value': violation.limit_hours,
            'regulation_reference': violation.regulation_reference,
            'is_resolved': violation.resolved,
            'resolution_notes': violation.resolved_notes,
            'detected_at': violation.detected_at,
            'resolved_at': violation.resolved_at,
        }
