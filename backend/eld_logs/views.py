"""
ELD Logs API Views.

Provides REST API endpoints for the driver duty status timeline: status
changes, log entries and hour summaries. Business logic lives in the
service layer; engine errors are translated to responses by
``common.exception_handler``.
"""

import logging

from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from common.exceptions import NotFound

from .serializers import (
    CurrentIntervalUpdateSerializer,
    DailySummaryQuerySerializer,
    DutyIntervalSerializer,
    DutyStatusChangeRequestSerializer,
    HoursQuerySerializer,
    TimeRangeQuerySerializer,
)
from .services.duty_status_ledger import DutyStatusLedgerService
from .services.hours_accumulator import HoursAccumulatorService
from .timeline import TRANSITIONS, DutyStatus

logger = logging.getLogger(__name__)


class HealthCheckView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({"status": "ok", "timestamp": timezone.now().isoformat()})


class StatusTypesView(APIView):
    """List duty status codes and the transitions allowed from each."""

    permission_classes = [AllowAny]

    def get(self, request):
        return Response(
            {
                "status_types": [
                    {
                        "code": duty_status.value,
                        "label": duty_status.label,
                        "allowed_transitions": sorted(
                            s.value for s in TRANSITIONS[duty_status]
                        ),
                    }
                    for duty_status in DutyStatus
                ]
            }
        )


class DriverTimelineViewSet(viewsets.ViewSet):
    """
    ViewSet for a driver's duty status timeline.

    Provides status change recording, the current status, log entries
    and hour summaries for one driver.
    """

    permission_classes = [AllowAny]

    def record_status(self, request, driver_id=None):
        """Record a duty status change for the driver."""
        serializer = DutyStatusChangeRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        interval = DutyStatusLedgerService().record_status_change(
            driver_id,
            data["status"],
            location=data.get("location", ""),
            odometer=data.get("odometer"),
            timestamp=data.get("timestamp"),
            notes=data.get("notes", ""),
            geo=data.get("geo"),
        )

        logger.info(f"Driver {driver_id} changed status to {interval.status.value}")
        return Response(
            DutyIntervalSerializer(interval).data, status=status.HTTP_201_CREATED
        )

    def current(self, request, driver_id=None):
        """Get the driver's current (open) duty status interval."""
        interval = DutyStatusLedgerService().get_current_interval(driver_id)
        if interval is None:
            raise NotFound(
                f"No active duty status for driver {driver_id}", driver_id=driver_id
            )
        return Response(DutyIntervalSerializer(interval).data)

    def update_current(self, request, driver_id=None):
        """Amend the location or remarks of the current interval."""
        serializer = CurrentIntervalUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        interval = DutyStatusLedgerService().update_current_interval(
            driver_id,
            location=data.get("location"),
            notes=data.get("notes"),
            geo=data.get("geo"),
        )
        return Response(DutyIntervalSerializer(interval).data)

    def entries(self, request, driver_id=None):
        """Get log entries overlapping an optional time range."""
        serializer = TimeRangeQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        intervals = DutyStatusLedgerService().list_intervals(
            driver_id,
            serializer.validated_data.get("start"),
            serializer.validated_data.get("end"),
        )
        return Response(
            {
                "driver_id": driver_id,
                "entries": DutyIntervalSerializer(intervals, many=True).data,
                "total_entries": len(intervals),
            }
        )

    def hours(self, request, driver_id=None):
        """Accumulate hours spent in the requested statuses over a window."""
        serializer = HoursQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        window = HoursAccumulatorService().accumulate(
            driver_id,
            data["statuses"],
            data["start"],
            data["end"],
            as_of=data.get("as_of"),
            by_day=data.get("by_day", False),
        )
        return Response(window.get_summary())

    def daily_summary(self, request, driver_id=None):
        """Get per-status totals for one calendar day."""
        serializer = DailySummaryQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        summary = HoursAccumulatorService().daily_summary(
            driver_id, serializer.validated_data.get("date")
        )
        return Response(summary)

    def weekly_summary(self, request, driver_id=None):
        """Get drive and duty totals for the current week."""
        return Response(HoursAccumulatorService().weekly_summary(driver_id))

    def validate_timeline(self, request, driver_id=None):
        """Check the driver's timeline for overlaps, gaps and odometer issues."""
        return Response(DutyStatusLedgerService().validate_timeline(driver_id))
