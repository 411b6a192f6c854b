"""
Duty Status Record model for ELD compliance.

Contains the DutyStatusRecord model that persists a driver's duty status
timeline. Each row is one interval; the row with no end time is the
driver's current status.
"""

import uuid
from decimal import Decimal
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator

from common.validators import validate_latitude, validate_longitude
from ..timeline import DutyInterval, DutyStatus, GeoPoint


class DutyStatusRecord(models.Model):
    """
    Individual duty status interval.

    Each record represents one period in a single duty status with the
    location and odometer reading captured when the status changed. A
    driver has at most one open record (``end_time`` is null) and records
    never overlap.

    Attributes:
        id: UUID primary key
        driver_id: Driver the interval belongs to
        duty_status: Duty status held during the interval
        start_time: When this duty status period started
        end_time: When this duty status period ended (null while open)
        location: Location description where status changed
        odometer_start: Odometer reading when the interval opened
        odometer_end: Odometer reading when the interval was closed
        notes: Driver remarks for this status change
        latitude/longitude/accuracy: GPS fix (optional)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the duty status record",
    )

    driver_id = models.CharField(
        max_length=64, db_index=True, help_text="Driver this interval belongs to"
    )

    duty_status = models.CharField(
        max_length=10,
        choices=DutyStatus.choices,
        help_text="Duty status for this time period",
    )

    start_time = models.DateTimeField(help_text="When this duty status period started")

    end_time = models.DateTimeField(
        null=True, blank=True, help_text="When this duty status period ended"
    )

    location = models.CharField(
        max_length=255,
        blank=True,
        help_text="Location description (e.g., 'I-95 Mile 45', 'Rest Area')",
    )

    odometer_start = models.PositiveIntegerField(
        default=0, help_text="Vehicle odometer reading at status change"
    )

    odometer_end = models.PositiveIntegerField(
        null=True, blank=True, help_text="Odometer reading when the interval closed"
    )

    notes = models.TextField(blank=True, help_text="Driver remarks")

    # GPS coordinates (optional but helpful for ELD compliance)
    latitude = models.DecimalField(
        max_digits=10,
        decimal_places=7,
        null=True,
        blank=True,
        validators=[validate_latitude],
        help_text="Latitude where duty status changed (-90 to 90)",
    )

    longitude = models.DecimalField(
        max_digits=10,
        decimal_places=7,
        null=True,
        blank=True,
        validators=[validate_longitude],
        help_text="Longitude where duty status changed (-180 to 180)",
    )

    accuracy = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100000)],
        help_text="GPS accuracy in metres",
    )

    created_at = models.DateTimeField(
        auto_now_add=True, help_text="When this record was created"
    )
    updated_at = models.DateTimeField(
        auto_now=True, help_text="When this record was last updated"
    )

    class Meta:
        db_table = "eld_logs_dutystatusrecord"
        ordering = ["driver_id", "start_time"]
        verbose_name = "Duty Status Record"
        verbose_name_plural = "Duty Status Records"
        indexes = [
            models.Index(fields=["driver_id", "start_time"], name="eld_logs_du_driver__1f0c2a_idx"),
            models.Index(fields=["driver_id", "end_time"], name="eld_logs_du_driver__8b7e41_idx"),
            models.Index(fields=["duty_status"], name="eld_logs_du_duty_st_5d9a63_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["driver_id"],
                condition=models.Q(end_time__isnull=True),
                name="one_open_interval_per_driver",
            ),
            models.CheckConstraint(
                condition=models.Q(end_time__isnull=True)
                | models.Q(end_time__gt=models.F("start_time")),
                name="interval_end_after_start",
            ),
        ]

    def __str__(self):
        """Return string representation of the duty status record."""
        end = self.end_time.strftime("%H:%M") if self.end_time else "ongoing"
        return f"{self.get_duty_status_display()} {self.start_time.strftime('%H:%M')} - {end}"

    def to_interval(self) -> DutyInterval:
        """Convert this row into a timeline interval."""
        geo = None
        if self.latitude is not None and self.longitude is not None:
            geo = GeoPoint(
                latitude=float(self.latitude),
                longitude=float(self.longitude),
                accuracy=self.accuracy,
            )
        return DutyInterval(
            id=str(self.id),
            driver_id=self.driver_id,
            status=DutyStatus(self.duty_status),
            start=self.start_time.replace(microsecond=0),
            end=self.end_time.replace(microsecond=0) if self.end_time else None,
            location=self.location,
            odometer_start=self.odometer_start,
            odometer_end=self.odometer_end,
            notes=self.notes,
            geo=geo,
        )

    @classmethod
    def field_values(cls, interval: DutyInterval) -> dict:
        """Column values for persisting ``interval``."""
        return {
            "driver_id": interval.driver_id,
            "duty_status": interval.status.value,
            "start_time": interval.start,
            "end_time": interval.end,
            "location": interval.location,
            "odometer_start": interval.odometer_start,
            "odometer_end": interval.odometer_end,
            "notes": interval.notes,
            "latitude": Decimal(str(interval.geo.latitude)) if interval.geo else None,
            "longitude": Decimal(str(interval.geo.longitude)) if interval.geo else None,
            "accuracy": interval.geo.accuracy if interval.geo else None,
        }
