import uuid

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ComplianceViolation",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for the compliance violation",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "driver_id",
                    models.CharField(
                        db_index=True,
                        help_text="Driver this violation relates to",
                        max_length=64,
                    ),
                ),
                (
                    "violation_type",
                    models.CharField(
                        choices=[
                            ("DRIVE_TIME_EXCEEDED", "11-Hour Driving Limit"),
                            ("DUTY_WINDOW_EXCEEDED", "14-Hour Duty Window Limit"),
                            ("CYCLE_HOURS_EXCEEDED", "7/8-Day Cycle Limit"),
                        ],
                        help_text="Type of HOS violation",
                        max_length=25,
                    ),
                ),
                (
                    "severity",
                    models.CharField(
                        choices=[
                            ("MINOR", "Minor"),
                            ("MAJOR", "Major"),
                            ("CRITICAL", "Critical (Safety Risk)"),
                        ],
                        default="MAJOR",
                        help_text="Severity level of the violation",
                        max_length=10,
                    ),
                ),
                (
                    "description",
                    models.TextField(
                        blank=True,
                        help_text="Description of the violation",
                    ),
                ),
                (
                    "current_value",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        help_text="Hours used when the violation was detected",
                        max_digits=6,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "limit_value",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        help_text="Regulatory limit value in hours",
                        max_digits=6,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "regulation_reference",
                    models.CharField(
                        blank=True,
                        help_text="FMCSA regulation reference (e.g., '395.3(a)(2)')",
                        max_length=50,
                    ),
                ),
                (
                    "is_resolved",
                    models.BooleanField(
                        default=False, help_text="Whether the violation has been resolved"
                    ),
                ),
                (
                    "resolution_notes",
                    models.TextField(
                        blank=True,
                        help_text="Notes on how the violation was resolved",
                        null=True,
                    ),
                ),
                (
                    "detected_at",
                    models.DateTimeField(help_text="When the violation was detected"),
                ),
                (
                    "resolved_at",
                    models.DateTimeField(
                        blank=True, help_text="When the violation was resolved", null=True
                    ),
                ),
            ],
            options={
                "verbose_name": "Compliance Violation",
                "verbose_name_plural": "Compliance Violations",
                "db_table": "hos_compliance_violation",
                "ordering": ["-detected_at"],
                "indexes": [
                    models.Index(
                        fields=["driver_id", "is_resolved"],
                        name="hos_complia_driver__7a3c51_idx",
                    ),
                    models.Index(
                        fields=["severity"], name="hos_complia_severit_e2b804_idx"
                    ),
                    models.Index(
                        fields=["detected_at"], name="hos_complia_detecte_91f6d2_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_resolved", False)),
                        fields=("driver_id", "violation_type"),
                        name="one_unresolved_violation_per_kind",
                    )
                ],
            },
        ),
    ]
