"""
HOS Compliance API Serializers.

Provides serialization and validation for HOS compliance API endpoints.
Handles input validation and response formatting for cycle status,
rule evaluation, violations and fleet summaries.
"""

from rest_framework import serializers


class ComplianceViolationSerializer(serializers.Serializer):
    """
    Serializer for compliance violations.

    Provides violation details with regulation reference and the
    recommended actions for the driver.
    """

    id = serializers.CharField(read_only=True)
    driver_id = serializers.CharField(read_only=True)
    violation_type = serializers.CharField(source='kind', read_only=True)
    violation_type_display = serializers.SerializerMethodField()
    severity = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    current_value = serializers.DecimalField(
        source='current_hours', max_digits=6, decimal_places=2, read_only=True
    )
    limit_value = serializers.DecimalField(
        source='limit_hours', max_digits=6, decimal_places=2, read_only=True
    )
    hours_over_limit = serializers.DecimalField(max_digits=6, decimal_places=2, read_only=True)
    regulation_reference = serializers.CharField(read_only=True)
    detected_at = serializers.DateTimeField(read_only=True)
    is_resolved = serializers.BooleanField(source='resolved', read_only=True)
    resolved_at = serializers.DateTimeField(read_only=True)
    resolution_notes = serializers.CharField(source='resolved_notes', read_only=True)
    recommended_actions = serializers.SerializerMethodField()

    def get_violation_type_display(self, obj):
        return obj.kind.label

    def get_recommended_actions(self, obj):
        return obj.get_recommended_actions()


class ViolationListQuerySerializer(serializers.Serializer):
    """
    Query parameters for violation lists.

    ``resolved`` is omitted to list every violation.
    """

    resolved = serializers.ChoiceField(choices=['true', 'false'], required=False)
    limit = serializers.IntegerField(required=False, default=50, min_value=1, max_value=500)
    offset = serializers.IntegerField(required=False, default=0, min_value=0)

    def validate_resolved(self, value):
        return value == 'true'


class ViolationResolveSerializer(serializers.Serializer):
    notes = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="Resolution notes"
    )


class EvaluationRequestSerializer(serializers.Serializer):
    as_of = serializers.DateTimeField(
        required=False,
        allow_null=True,
        help_text="Evaluation instant (default: now)"
    )


class FleetSummaryQuerySerializer(serializers.Serializer):
    """Query parameters for fleet summaries."""

    driver_ids = serializers.CharField(help_text="Comma separated driver identifiers")
    as_of = serializers.DateTimeField(required=False)

    def validate_driver_ids(self, value):
        driver_ids = [d.strip() for d in value.split(',') if d.strip()]
        if not driver_ids:
            raise serializers.ValidationError("At least one driver id is required")
        return driver_ids
