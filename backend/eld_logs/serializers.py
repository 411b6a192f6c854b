"""
ELD Logs API Serializers.

Provides serialization and validation for ELD logs API endpoints.
Handles input validation and response formatting for duty status
changes, log entries and hour summaries.

Status codes and odometer readings are passed to the ledger unvalidated
so that rejected changes are reported with the engine's error codes.
"""

from rest_framework import serializers

from common.exceptions import UnknownDutyStatus

from .services.hours_accumulator import parse_status_filter
from .timeline import ON_DUTY_STATUSES, GeoPoint


class GeoFieldsMixin(serializers.Serializer):
    """Optional GPS fix fields shared by status change and amend requests."""

    latitude = serializers.FloatField(
        required=False,
        allow_null=True,
        min_value=-90,
        max_value=90,
        help_text="GPS latitude"
    )

    longitude = serializers.FloatField(
        required=False,
        allow_null=True,
        min_value=-180,
        max_value=180,
        help_text="GPS longitude"
    )

    accuracy = serializers.FloatField(
        required=False,
        allow_null=True,
        min_value=0,
        help_text="GPS accuracy in meters"
    )

    def validate(self, data):
        """Latitude and longitude are given together or not at all."""
        latitude = data.get('latitude')
        longitude = data.get('longitude')

        if (latitude is None) != (longitude is None):
            raise serializers.ValidationError(
                "Latitude and longitude must be provided together"
            )

        if latitude is not None:
            data['geo'] = GeoPoint(latitude, longitude, data.get('accuracy'))
        return data


class DutyStatusChangeRequestSerializer(GeoFieldsMixin):
    """
    Serializer for duty status change requests.

    Handles real-time duty status changes recorded by the driver.
    """

    status = serializers.CharField(
        max_length=20,
        help_text="New duty status (OFF_DUTY, SLEEPER, ON_DUTY, DRIVING)"
    )

    location = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
        default="",
        help_text="Location where status change occurred (city, state)"
    )

    odometer = serializers.IntegerField(
        required=False,
        allow_null=True,
        help_text="Current odometer reading"
    )

    timestamp = serializers.DateTimeField(
        required=False,
        allow_null=True,
        help_text="Time of duty status change (default: now)"
    )

    notes = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        help_text="Driver remarks"
    )


class CurrentIntervalUpdateSerializer(GeoFieldsMixin):
    """Serializer for amending the location or remarks of the current status."""

    location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class DutyIntervalSerializer(serializers.Serializer):
    """Read-only representation of a duty status interval."""

    id = serializers.CharField(read_only=True)
    driver_id = serializers.CharField(read_only=True)
    status = serializers.CharField(read_only=True)
    status_display = serializers.SerializerMethodField()
    start_time = serializers.DateTimeField(source='start', read_only=True)
    end_time = serializers.DateTimeField(source='end', read_only=True)
    is_open = serializers.BooleanField(read_only=True)
    location = serializers.CharField(read_only=True)
    odometer_start = serializers.IntegerField(read_only=True)
    odometer_end = serializers.IntegerField(read_only=True)
    notes = serializers.CharField(read_only=True)
    latitude = serializers.SerializerMethodField()
    longitude = serializers.SerializerMethodField()
    accuracy = serializers.SerializerMethodField()

    def get_status_display(self, obj):
        return obj.status.label

    def get_latitude(self, obj):
        return obj.geo.latitude if obj.geo else None

    def get_longitude(self, obj):
        return obj.geo.longitude if obj.geo else None

    def get_accuracy(self, obj):
        return obj.geo.accuracy if obj.geo else None


class TimeRangeQuerySerializer(serializers.Serializer):
    """Optional ``start``/``end`` query parameters."""

    start = serializers.DateTimeField(required=False)
    end = serializers.DateTimeField(required=False)


class HoursQuerySerializer(serializers.Serializer):
    """
    Serializer for hour accumulation queries.

    ``statuses`` is a comma separated list of duty status codes and
    defaults to on-duty time (ON_DUTY and DRIVING).
    """

    statuses = serializers.CharField(
        required=False,
        default=",".join(sorted(status.value for status in ON_DUTY_STATUSES)),
        help_text="Comma separated duty statuses to count"
    )
    start = serializers.DateTimeField(help_text="Window start")
    end = serializers.DateTimeField(help_text="Window end")
    as_of = serializers.DateTimeField(
        required=False,
        help_text="Instant the current status is counted up to (default: now)"
    )
    by_day = serializers.BooleanField(required=False, default=False)

    def validate_statuses(self, value):
        codes = [code.strip() for code in value.split(",") if code.strip()]
        if not codes:
            raise serializers.ValidationError("At least one duty status is required")
        try:
            return parse_status_filter(codes)
        except UnknownDutyStatus as e:
            raise serializers.ValidationError(e.message)


class DailySummaryQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
