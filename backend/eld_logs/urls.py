"""
URL configuration for ELD Logs API endpoints.

Provides URL routing for the duty status timeline endpoints of a
driver, plus the status type reference list.
"""

from django.urls import path

from .views import DriverTimelineViewSet, StatusTypesView

urlpatterns = [
    path("status-types/", StatusTypesView.as_view(), name="eld-status-types"),
    # Duty status changes
    path(
        "drivers/<str:driver_id>/status/",
        DriverTimelineViewSet.as_view({"post": "record_status"}),
        name="eld-record-status",
    ),
    path(
        "drivers/<str:driver_id>/current/",
        DriverTimelineViewSet.as_view({"get": "current", "patch": "update_current"}),
        name="eld-current-status",
    ),
    # Log entries and summaries
    path(
        "drivers/<str:driver_id>/entries/",
        DriverTimelineViewSet.as_view({"get": "entries"}),
        name="eld-entries",
    ),
    path(
        "drivers/<str:driver_id>/hours/",
        DriverTimelineViewSet.as_view({"get": "hours"}),
        name="eld-hours",
    ),
    path(
        "drivers/<str:driver_id>/daily-summary/",
        DriverTimelineViewSet.as_view({"get": "daily_summary"}),
        name="eld-daily-summary",
    ),
    path(
        "drivers/<str:driver_id>/weekly-summary/",
        DriverTimelineViewSet.as_view({"get": "weekly_summary"}),
        name="eld-weekly-summary",
    ),
    path(
        "drivers/<str:driver_id>/validate/",
        DriverTimelineViewSet.as_view({"get": "validate_timeline"}),
        name="eld-validate-timeline",
    ),
]
