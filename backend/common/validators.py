"""
Common validators and utilities for the driver logbook application.

This module contains the GPS range validators used by the duty status
model and the seconds-to-hours conversion shared by the hour summaries.
"""

from decimal import Decimal, ROUND_HALF_UP
from django.core.validators import BaseValidator

SECONDS_PER_HOUR = 3600

COORDINATE_RANGES = {
    "latitude": (-90, 90),
    "longitude": (-180, 180),
}


class GPSCoordinateValidator(BaseValidator):
    """Reject a latitude or longitude outside its degree range."""

    def __init__(self, coordinate_type="latitude"):
        if coordinate_type not in COORDINATE_RANGES:
            raise ValueError("coordinate_type must be 'latitude' or 'longitude'")

        low, high = COORDINATE_RANGES[coordinate_type]
        super().__init__(
            (low, high),
            f"{coordinate_type.capitalize()} must be between {low} and {high} degrees.",
        )
        self.coordinate_type = coordinate_type

    def compare(self, value, limit_value):
        low, high = limit_value
        return not (low <= value <= high)

    def clean(self, value):
        return float(value)


validate_latitude = GPSCoordinateValidator("latitude")
validate_longitude = GPSCoordinateValidator("longitude")


def seconds_to_hours(seconds):
    """
    Convert whole seconds to hours for presentation.

    Durations are accumulated as integers; hours are only produced here,
    rounded to two decimal places.
    """
    hours = Decimal(int(seconds)) / Decimal(SECONDS_PER_HOUR)
    return hours.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
