"""
URL configuration for HOS Compliance API endpoints.

Provides URL routing for all HOS compliance related endpoints
including cycle status, rule evaluation, violations and fleet reports.
"""

from django.urls import path
from .views import (
    ComplianceViolationViewSet,
    DriverComplianceViewSet,
    FleetSummaryView,
)

urlpatterns = [
    # Driver compliance endpoints
    path('drivers/<str:driver_id>/cycle/',
         DriverComplianceViewSet.as_view({'get': 'cycle'}),
         name='hos-driver-cycle'),
    path('drivers/<str:driver_id>/status/',
         DriverComplianceViewSet.as_view({'get': 'hos_status'}),
         name='hos-driver-status'),
    path('drivers/<str:driver_id>/evaluate/',
         DriverComplianceViewSet.as_view({'post': 'evaluate'}),
         name='hos-driver-evaluate'),

    # Violation endpoints
    path('drivers/<str:driver_id>/violations/',
         DriverComplianceViewSet.as_view({'get': 'violations'}),
         name='hos-driver-violations'),
    path('drivers/<str:driver_id>/violations/summary/',
         DriverComplianceViewSet.as_view({'get': 'violations_summary'}),
         name='hos-driver-violations-summary'),
    path('violations/<str:pk>/',
         ComplianceViolationViewSet.as_view({'get': 'retrieve'}),
         name='hos-violation-detail'),
    path('violations/<str:pk>/resolve/',
         ComplianceViolationViewSet.as_view({'post': 'resolve'}),
         name='hos-violation-resolve'),

    # Fleet reports
    path('fleet/summary/',
         FleetSummaryView.as_view(),
         name='hos-fleet-summary'),
]
