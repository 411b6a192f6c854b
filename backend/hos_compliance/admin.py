"""
Admin configuration for HOS compliance models.
"""

from django.contrib import admin
from .models import ComplianceViolation


@admin.register(ComplianceViolation)
class ComplianceViolationAdmin(admin.ModelAdmin):
    list_display = ['driver_id', 'violation_type', 'severity', 'current_value', 'detected_at', 'is_resolved']
    list_filter = ['violation_type', 'severity', 'is_resolved']
    search_fields = ['driver_id', 'description']
    readonly_fields = ['id', 'detected_at']
