import uuid

import django.core.validators
import django.utils.timezone
from django.db import migrations, models

import common.validators


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="DutyStatusRecord",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for the duty status record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "driver_id",
                    models.CharField(
                        db_index=True,
                        help_text="Driver this interval belongs to",
                        max_length=64,
                    ),
                ),
                (
                    "duty_status",
                    models.CharField(
                        choices=[
                            ("OFF_DUTY", "Off Duty"),
                            ("SLEEPER", "Sleeper Berth"),
                            ("ON_DUTY", "On Duty (Not Driving)"),
                            ("DRIVING", "Driving"),
                        ],
                        help_text="Duty status for this time period",
                        max_length=10,
                    ),
                ),
                (
                    "start_time",
                    models.DateTimeField(help_text="When this duty status period started"),
                ),
                (
                    "end_time",
                    models.DateTimeField(
                        blank=True,
                        help_text="When this duty status period ended",
                        null=True,
                    ),
                ),
                (
                    "location",
                    models.CharField(
                        blank=True,
                        help_text="Location description (e.g., 'I-95 Mile 45', 'Rest Area')",
                        max_length=255,
                    ),
                ),
                (
                    "odometer_start",
                    models.PositiveIntegerField(
                        default=0, help_text="Vehicle odometer reading at status change"
                    ),
                ),
                (
                    "odometer_end",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Odometer reading when the interval closed",
                        null=True,
                    ),
                ),
                ("notes", models.TextField(blank=True, help_text="Driver remarks")),
                (
                    "latitude",
                    models.DecimalField(
                        blank=True,
                        decimal_places=7,
                        help_text="Latitude where duty status changed (-90 to 90)",
                        max_digits=10,
                        null=True,
                        validators=[common.validators.GPSCoordinateValidator("latitude")],
                    ),
                ),
                (
                    "longitude",
                    models.DecimalField(
                        blank=True,
                        decimal_places=7,
                        help_text="Longitude where duty status changed (-180 to 180)",
                        max_digits=10,
                        null=True,
                        validators=[common.validators.GPSCoordinateValidator("longitude")],
                    ),
                ),
                (
                    "accuracy",
                    models.FloatField(
                        blank=True,
                        help_text="GPS accuracy in metres",
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(100000),
                        ],
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, help_text="When this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True, help_text="When this record was last updated"
                    ),
                ),
            ],
            options={
                "verbose_name": "Duty Status Record",
                "verbose_name_plural": "Duty Status Records",
                "db_table": "eld_logs_dutystatusrecord",
                "ordering": ["driver_id", "start_time"],
                "indexes": [
                    models.Index(
                        fields=["driver_id", "start_time"],
                        name="eld_logs_du_driver__1f0c2a_idx",
                    ),
                    models.Index(
                        fields=["driver_id", "end_time"],
                        name="eld_logs_du_driver__8b7e41_idx",
                    ),
                    models.Index(
                        fields=["duty_status"], name="eld_logs_du_duty_st_5d9a63_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("end_time__isnull", True)),
                        fields=("driver_id",),
                        name="one_open_interval_per_driver",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("end_time__isnull", True),
                            ("end_time__gt", models.F("start_time")),
                            _connector="OR",
                        ),
                        name="interval_end_after_start",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="VehicleAssignment",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("driver_id", models.CharField(db_index=True, max_length=64)),
                (
                    "vehicle_number",
                    models.CharField(help_text="Truck or unit number", max_length=50),
                ),
                ("is_active", models.BooleanField(default=True)),
                (
                    "assigned_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("unassigned_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "verbose_name": "Vehicle Assignment",
                "verbose_name_plural": "Vehicle Assignments",
                "db_table": "eld_logs_vehicleassignment",
                "ordering": ["-assigned_at"],
                "indexes": [
                    models.Index(
                        fields=["driver_id", "is_active"],
                        name="eld_logs_ve_driver__c4a9e2_idx",
                    )
                ],
            },
        ),
    ]
