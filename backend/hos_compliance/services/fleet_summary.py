"""
Fleet Summary Service.

Builds dashboard snapshots of HOS status across many drivers. The
computation is read-only, so a caller may cancel it between drivers and
the partial result is simply discarded.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, Iterable, Optional

from django.utils import timezone

from common.exceptions import AggregationCancelled
from common.hos_config import HOSRuleConfig
from common.timeline_store import TimelineStore, get_timeline_store
from eld_logs.timeline import truncate_to_second
from .hos_calculator import HOSCalculatorService

logger = logging.getLogger(__name__)


class FleetSummaryService:
    """Service for summarizing HOS status across a fleet of drivers."""

    def __init__(
        self,
        store: Optional[TimelineStore] = None,
        config: Optional[HOSRuleConfig] = None,
    ):
        self.store = store or get_timeline_store()
        self.config = config or HOSRuleConfig.from_settings()
        self.calculator = HOSCalculatorService(store=self.store, config=self.config)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def summarize_fleet(
        self,
        driver_ids: Iterable,
        as_of: Optional[datetime] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Dict:
        """
        Summarize HOS status for a set of drivers.

        Args:
            driver_ids: Drivers to include
            as_of: Evaluation instant shared by every driver (default: now)
            cancel_event: Checked before each driver; once set the
                summary is abandoned

        Returns:
            Dict with one status entry per driver and fleet totals

        Raises:
            AggregationCancelled: cancel_event was set before completion
        """
        as_of = truncate_to_second(as_of or timezone.now())
        # Preserve request order but drop duplicates
        driver_ids = list(dict.fromkeys(str(d) for d in driver_ids))

        drivers = []
        for driver_id in driver_ids:
            if cancel_event is not None and cancel_event.is_set():
                self.logger.info(
                    f"Fleet summary cancelled after {len(drivers)} of {len(driver_ids)} drivers"
                )
                raise AggregationCancelled(
                    "Fleet summary was cancelled",
                    completed=len(drivers),
                    requested=len(driver_ids),
                )
            drivers.append(self._driver_entry(driver_id, as_of))

        return {
            "as_of": as_of.isoformat(),
            "total_drivers": len(drivers),
            "drivers_can_drive": sum(1 for d in drivers if d["can_drive"]),
            "drivers_with_violations": sum(1 for d in drivers if d["unresolved_violations"]),
            "drivers": drivers,
        }

    def _driver_entry(self, driver_id: str, as_of: datetime) -> Dict:
        status = self.calculator.calculate_hos_status(driver_id, as_of)
        unresolved = self.store.list_violations(driver_id, resolved=False)
        return {
            "driver_id": driver_id,
            "current_status": status["current_status"],
            "can_drive": status["can_drive"],
            "violation_reason": status["violation_reason"],
            "available_hours": status["available_hours"],
            "cycle_hours_used": status["cycle"]["cycle_hours_used"],
            "unresolved_violations": len(unresolved),
        }


def summarize_fleet(driver_ids, as_of=None, cancel_event=None, store=None, config=None) -> Dict:
    """Summarize HOS status for ``driver_ids`` with a default-configured service."""
    return FleetSummaryService(store=store, config=config).summarize_fleet(
        driver_ids, as_of=as_of, cancel_event=cancel_event
    )
