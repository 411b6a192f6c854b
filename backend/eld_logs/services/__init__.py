"""
ELD Logs Services Package.

This package contains all business logic services for the driver duty
status timeline.

Services:
- DutyStatusLedgerService: Record duty status changes
- HoursAccumulatorService: Hour totals, daily and weekly summaries
"""

from .duty_status_ledger import DutyStatusLedgerService
from .hours_accumulator import HoursAccumulatorService, HoursWindow, accumulate_intervals

__all__ = [
    'DutyStatusLedgerService',
    'HoursAccumulatorService',
    'HoursWindow',
    'accumulate_intervals',
]
