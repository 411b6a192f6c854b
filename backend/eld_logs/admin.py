"""
Admin configuration for ELD log models.
"""

from django.contrib import admin
from .models import DutyStatusRecord, VehicleAssignment


@admin.register(DutyStatusRecord)
class DutyStatusRecordAdmin(admin.ModelAdmin):
    list_display = ['driver_id', 'duty_status', 'start_time', 'end_time', 'location', 'odometer_start']
    list_filter = ['duty_status', 'start_time']
    search_fields = ['driver_id', 'location']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(VehicleAssignment)
class VehicleAssignmentAdmin(admin.ModelAdmin):
    list_display = ['driver_id', 'vehicle_number', 'is_active', 'assigned_at', 'unassigned_at']
    list_filter = ['is_active']
    search_fields = ['driver_id', 'vehicle_number']
