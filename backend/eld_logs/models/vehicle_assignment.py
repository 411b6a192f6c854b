"""
Vehicle Assignment model.

Tracks which vehicle a driver is currently assigned to. A driver must
hold an active assignment before the ledger accepts duty status changes.
"""

import uuid
from django.db import models
from django.utils import timezone


class VehicleAssignment(models.Model):
    """
    Assignment of a driver to a vehicle.

    Attributes:
        id: UUID primary key
        driver_id: Assigned driver
        vehicle_number: Truck / unit number
        is_active: Whether the assignment is current
        assigned_at: When the assignment started
        unassigned_at: When the assignment ended
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    driver_id = models.CharField(max_length=64, db_index=True)

    vehicle_number = models.CharField(max_length=50, help_text="Truck or unit number")

    is_active = models.BooleanField(default=True)

    assigned_at = models.DateTimeField(default=timezone.now)

    unassigned_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "eld_logs_vehicleassignment"
        ordering = ["-assigned_at"]
        verbose_name = "Vehicle Assignment"
        verbose_name_plural = "Vehicle Assignments"
        indexes = [
            models.Index(fields=["driver_id", "is_active"], name="eld_logs_ve_driver__c4a9e2_idx")
        ]

    def __str__(self):
        return f"Driver {self.driver_id} -> {self.vehicle_number}"

    @classmethod
    def has_active(cls, driver_id) -> bool:
        return cls.objects.filter(driver_id=str(driver_id), is_active=True).exists()
