"""
URL configuration for logbook_api project.

Mounts the ELD logs and HOS compliance APIs under ``/api/``.
"""

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse

from eld_logs.views import HealthCheckView


def api_root(request):
    """API root endpoint with available endpoints."""
    return JsonResponse({
        'message': 'Driver Logbook API',
        'version': '1.0',
        'endpoints': {
            'health': '/api/health/',
            'eld_logs': '/api/eld/',
            'hos_compliance': '/api/hos/',
            'admin': '/admin/',
        },
        'documentation': {
            'eld_logs': {
                'description': 'Driver duty status timeline and hour summaries',
                'endpoints': {
                    'status_types': 'GET /api/eld/status-types/ - Duty status codes and transitions',
                    'record_status': 'POST /api/eld/drivers/<driver_id>/status/ - Record status change',
                    'current': 'GET|PATCH /api/eld/drivers/<driver_id>/current/ - Current status',
                    'entries': 'GET /api/eld/drivers/<driver_id>/entries/?start=&end= - Log entries',
                    'hours': 'GET /api/eld/drivers/<driver_id>/hours/?statuses=&start=&end=&by_day= - Hour totals',
                    'daily_summary': 'GET /api/eld/drivers/<driver_id>/daily-summary/?date= - Daily summary',
                    'weekly_summary': 'GET /api/eld/drivers/<driver_id>/weekly-summary/ - Weekly summary',
                }
            },
            'hos_compliance': {
                'description': 'Hours of Service cycle tracking and violations',
                'endpoints': {
                    'cycle': 'GET /api/hos/drivers/<driver_id>/cycle/ - 7/8-day cycle position',
                    'status': 'GET /api/hos/drivers/<driver_id>/status/ - Available hours',
                    'evaluate': 'POST /api/hos/drivers/<driver_id>/evaluate/ - Evaluate HOS rules',
                    'violations': 'GET /api/hos/drivers/<driver_id>/violations/?resolved= - List violations',
                    'violations_summary': 'GET /api/hos/drivers/<driver_id>/violations/summary/ - Violation counts',
                    'resolve': 'POST /api/hos/violations/<id>/resolve/ - Resolve violation',
                    'fleet_summary': 'GET /api/hos/fleet/summary/?driver_ids=a,b - Fleet dashboard',
                }
            }
        }
    })

urlpatterns = [
    # Admin interface
    path("admin/", admin.site.urls),

    # API root
    path("api/", api_root, name='api-root'),
    path("api/health/", HealthCheckView.as_view(), name='health'),

    # ELD Logs API
    path("api/eld/", include("eld_logs.urls")),

    # HOS Compliance API
    path("api/hos/", include("hos_compliance.urls")),
]
