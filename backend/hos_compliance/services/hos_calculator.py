"""
HOS Calculator Service.

Provides the Hours of Service status snapshot shown to drivers and
dispatchers, based on FMCSA regulations for property-carrying
commercial vehicles.

This service combines timeline-derived usage with the regulatory limits:
- 70 hours in 8 days (or 60 in 7) cycle availability
- 14-hour duty window availability
- 11-hour driving limit availability
- Required rest (10-hour off duty, 34-hour restart)

Single Responsibility: HOS availability calculations only.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple

from django.utils import timezone

from common.hos_config import HOSRuleConfig
from common.timeline_store import TimelineStore, get_timeline_store
from common.validators import seconds_to_hours
from eld_logs.timeline import truncate_to_second
from .compliance_rule_engine import ComplianceRuleEngine

logger = logging.getLogger(__name__)


class HOSCalculatorService:
    """
    Service for calculating Hours of Service availability.

    Usage figures come from the driver's timeline; limits come from the
    configured HOS rules.
    """

    def __init__(
        self,
        store: Optional[TimelineStore] = None,
        config: Optional[HOSRuleConfig] = None,
    ):
        self.store = store or get_timeline_store()
        self.config = config or HOSRuleConfig.from_settings()
        self.rule_engine = ComplianceRuleEngine(store=self.store, config=self.config)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def max_cycle_hours(self) -> Decimal:
        return Decimal(self.config.cycle_limit_hours)

    @property
    def max_duty_period_hours(self) -> Decimal:
        return Decimal(self.config.max_duty_window_hours)

    @property
    def max_driving_hours(self) -> Decimal:
        return Decimal(self.config.max_driving_hours)

    def calculate_hos_status(self, driver_id, as_of: Optional[datetime] = None) -> Dict:
        """
        Calculate a driver's current HOS status from the timeline.

        Args:
            driver_id: Driver identifier
            as_of: Evaluation instant (default: now)

        Returns:
            Dict with the current status, duty period, hours used and
            available under each limit and whether the driver may drive
        """
        driver_id = str(driver_id)
        as_of = truncate_to_second(as_of or timezone.now())

        intervals = self.rule_engine.cycle_tracker.read_history(driver_id, as_of)
        period = self.rule_engine.duty_period_from_intervals(intervals, as_of)
        cycle = self.rule_engine.cycle_tracker.cycle_from_intervals(driver_id, intervals, as_of)

        cycle_hours = seconds_to_hours(cycle.seconds_used)
        duty_hours = seconds_to_hours(period.window_seconds)
        driving_hours = seconds_to_hours(period.drive_seconds)

        availability = self.calculate_available_hours(cycle_hours, duty_hours, driving_hours)
        required_rest = self.calculate_required_rest(cycle_hours, duty_hours, driving_hours)

        status = {
            "driver_id": driver_id,
            "as_of": as_of.isoformat(),
            "current_status": period.current_status.value if period.current_status else None,
            "duty_period_start": period.start.isoformat() if period.start else None,
            "last_daily_reset": period.last_rest_end.isoformat() if period.last_rest_end else None,
            "cycle": cycle.get_summary(),
            **availability,
            "required_rest": required_rest,
        }

        self.logger.debug(
            f"HOS status for driver {driver_id}: can_drive={availability['can_drive']}"
        )
        return status

    def calculate_available_hours(
        self,
        current_cycle_hours: Decimal,
        current_duty_period_hours: Decimal = Decimal("0"),
        current_driving_hours: Decimal = Decimal("0"),
    ) -> Dict:
        """
        Calculate available hours under all HOS limits.

        Args:
            current_cycle_hours: Hours used in the current cycle
            current_duty_period_hours: Hours elapsed in the current duty window
            current_driving_hours: Hours driven in the current duty period

        Returns:
            Dict containing available hours and whether the driver can drive
        """
        available_cycle = max(Decimal("0"), self.max_cycle_hours - current_cycle_hours)
        available_duty_period = max(
            Decimal("0"), self.max_duty_period_hours - current_duty_period_hours
        )
        available_driving = max(
            Decimal("0"), self.max_driving_hours - current_driving_hours
        )

        can_drive, violation_reason = self._check_can_drive(
            available_cycle, available_duty_period, available_driving
        )

        max_continuous_driving = self._calculate_max_continuous_driving(
            available_cycle, available_duty_period, available_driving
        )

        return {
            "can_drive": can_drive,
            "violation_reason": violation_reason,
            "available_hours": {
                "cycle_hours": float(available_cycle),
                "duty_period_hours": float(available_duty_period),
                "driving_hours": float(available_driving),
            },
            "limits": {
                "max_cycle_hours": float(self.max_cycle_hours),
                "max_duty_period_hours": float(self.max_duty_period_hours),
                "max_driving_hours": float(self.max_driving_hours),
            },
            "current_usage": {
                "cycle_hours": float(current_cycle_hours),
                "duty_period_hours": float(current_duty_period_hours),
                "driving_hours": float(current_driving_hours),
            },
            "max_continuous_driving_hours": float(max_continuous_driving),
        }

    def calculate_required_rest(
        self,
        current_cycle_hours: Decimal,
        current_duty_period_hours: Decimal = Decimal("0"),
        current_driving_hours: Decimal = Decimal("0"),
    ) -> Dict:
        """
        Calculate required rest time to comply with HOS regulations.

        Returns:
            Dict containing the minimum required rest and the rest options
            that would restore driving eligibility
        """
        rest_options = []
        daily_limit_reached = (
            current_driving_hours >= self.max_driving_hours
            or current_duty_period_hours >= self.max_duty_period_hours
        )

        if daily_limit_reached:
            rest_options.append(
                {
                    "type": "10_hour_off_duty",
                    "duration_hours": float(self.config.daily_reset_hours),
                    "description": "10 consecutive hours off duty to reset daily limits",
                    "regulation": "395.3(a)(1)",
                    "restores": ["duty_period", "driving_hours"],
                }
            )

        # Offer the restart once the driver is within 10 hours of the cycle limit
        if current_cycle_hours >= self.max_cycle_hours - 10:
            rest_options.append(
                {
                    "type": "34_hour_restart",
                    "duration_hours": float(self.config.restart_hours),
                    "description": "34 consecutive hours off duty to restart the cycle",
                    "regulation": "395.3(c)",
                    "restores": ["cycle_hours", "duty_period", "driving_hours"],
                }
            )

        min_required_rest = Decimal("0")
        required_rest_type = None

        if current_cycle_hours >= self.max_cycle_hours:
            min_required_rest = Decimal(self.config.restart_hours)
            required_rest_type = "34_hour_restart"
        elif daily_limit_reached:
            min_required_rest = Decimal(self.config.daily_reset_hours)
            required_rest_type = "10_hour_off_duty"

        return {
            "minimum_required_rest_hours": float(min_required_rest),
            "required_rest_type": required_rest_type,
            "rest_options": rest_options,
        }

    def _check_can_drive(
        self,
        available_cycle: Decimal,
        available_duty: Decimal,
        available_driving: Decimal,
    ) -> Tuple[bool, str]:
        """Check if driver can currently drive."""
        if available_cycle <= 0:
            return (
                False,
                f"{self.config.cycle_limit_hours}-hour/{self.config.cycle_days}-day limit reached",
            )
        if available_duty <= 0:
            return False, f"{self.config.max_duty_window_hours}-hour duty period limit reached"
        if available_driving <= 0:
            return False, f"{self.config.max_driving_hours}-hour driving limit reached"

        return True, ""

    def _calculate_max_continuous_driving(
        self,
        available_cycle: Decimal,
        available_duty: Decimal,
        available_driving: Decimal,
    ) -> Decimal:
        """Calculate maximum continuous driving time."""
        return max(Decimal("0"), min(available_cycle, available_duty, available_driving))
