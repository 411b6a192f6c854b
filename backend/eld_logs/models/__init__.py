"""
ELD Logs models package.

This package contains the persisted duty status timeline and the vehicle
assignments that gate duty status changes.
"""

from .duty_status_record import DutyStatusRecord
from .vehicle_assignment import VehicleAssignment

__all__ = ['DutyStatusRecord', 'VehicleAssignment']
