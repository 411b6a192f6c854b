"""
HOS Compliance API Views.

Provides REST API endpoints for HOS cycle tracking, rule evaluation,
violations management and fleet summaries. Integrates with the service
layer for business logic processing.
"""

import logging
from django.utils import timezone
from rest_framework import viewsets, status
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

from .serializers import (
    ComplianceViolationSerializer,
    EvaluationRequestSerializer,
    FleetSummaryQuerySerializer,
    ViolationListQuerySerializer,
    ViolationResolveSerializer,
)
from .services.compliance_rule_engine import ComplianceRuleEngine
from .services.cycle_tracker import CycleTrackerService
from .services.fleet_summary import FleetSummaryService
from .services.hos_calculator import HOSCalculatorService
from .services.violation_store import ViolationStoreService

logger = logging.getLogger(__name__)


class DriverComplianceViewSet(viewsets.ViewSet):
    """
    ViewSet for a driver's HOS compliance.

    Provides cycle status, available hours, rule evaluation and the
    driver's violations.
    """

    permission_classes = [AllowAny]

    def cycle(self, request, driver_id=None):
        """Get the driver's position in the 7/8-day cycle."""
        return Response(CycleTrackerService().cycle_info(driver_id))

    def hos_status(self, request, driver_id=None):
        """Get current HOS status and available hours."""
        return Response(HOSCalculatorService().calculate_hos_status(driver_id))

    def evaluate(self, request, driver_id=None):
        """Evaluate the driver against all HOS rules and record new violations."""
        serializer = EvaluationRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        report = ComplianceRuleEngine().get_compliance_report(
            driver_id, serializer.validated_data.get("as_of")
        )
        logger.info(
            f"Evaluated driver {driver_id}: {len(report['new_violations'])} new violation(s)"
        )
        return Response(report)

    def violations(self, request, driver_id=None):
        """List the driver's violations, newest first."""
        serializer = ViolationListQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        engine = ComplianceRuleEngine()
        # Catch up on any evaluation deferred since the last status change
        engine.evaluate(driver_id)

        violations = engine.violation_store.list_violations(
            driver_id,
            resolved=data.get("resolved"),
            limit=data["limit"],
            offset=data["offset"],
        )
        return Response(
            {
                "driver_id": driver_id,
                "violations": ComplianceViolationSerializer(violations, many=True).data,
                "count": len(violations),
                "limit": data["limit"],
                "offset": data["offset"],
            }
        )

    def violations_summary(self, request, driver_id=None):
        """Get violation counts for the driver."""
        engine = ComplianceRuleEngine()
        engine.evaluate(driver_id)
        return Response(engine.violation_store.summary(driver_id))


class ComplianceViolationViewSet(viewsets.ViewSet):
    """ViewSet for operator actions on individual violations."""

    permission_classes = [AllowAny]

    def retrieve(self, request, pk=None):
        violation = ViolationStoreService().get_violation(pk)
        return Response(ComplianceViolationSerializer(violation).data)

    def resolve(self, request, pk=None):
        """Mark a violation as resolved."""
        serializer = ViolationResolveSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        violation = ViolationStoreService().resolve(
            pk, serializer.validated_data.get("notes")
        )
        logger.info(f"Resolved violation {pk}")
        return Response(ComplianceViolationSerializer(violation).data)


class FleetSummaryView(APIView):
    """HOS snapshot for several drivers, for dispatch dashboards."""

    permission_classes = [AllowAny]

    def get(self, request):
        serializer = FleetSummaryQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        summary = FleetSummaryService().summarize_fleet(
            serializer.validated_data["driver_ids"],
            as_of=serializer.validated_data.get("as_of", timezone.now()),
        )
        return Response(summary)
