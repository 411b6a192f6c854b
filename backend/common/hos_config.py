"""
HOS rule configuration.

Regulatory constants used by the accumulator, cycle tracker and rule
engine. Values come from the ``HOS_ENGINE`` Django setting and fall back
to the FMCSA property-carrying defaults.
"""

from dataclasses import dataclass
from datetime import timedelta

CYCLE_70_HOUR_8_DAY = "70_8"
CYCLE_60_HOUR_7_DAY = "60_7"

# cycle name -> (days, hours)
CYCLE_RULES = {
    CYCLE_70_HOUR_8_DAY: (8, 70),
    CYCLE_60_HOUR_7_DAY: (7, 60),
}


@dataclass(frozen=True)
class HOSRuleConfig:
    """
    Configuration for HOS rules.

    All values can be overridden through ``settings.HOS_ENGINE`` for
    different carriers or for testing.
    """

    cycle: str = CYCLE_70_HOUR_8_DAY
    max_driving_hours: int = 11
    max_duty_window_hours: int = 14
    daily_reset_hours: int = 10
    restart_hours: int = 34
    ledger_lock_timeout_seconds: float = 5.0

    def __post_init__(self):
        if self.cycle not in CYCLE_RULES:
            raise ValueError(
                f"Unknown HOS cycle '{self.cycle}', expected one of {sorted(CYCLE_RULES)}"
            )

    @property
    def cycle_days(self) -> int:
        return CYCLE_RULES[self.cycle][0]

    @property
    def cycle_limit_hours(self) -> int:
        return CYCLE_RULES[self.cycle][1]

    @property
    def cycle_lookback(self) -> timedelta:
        return timedelta(days=self.cycle_days)

    @property
    def max_driving(self) -> timedelta:
        return timedelta(hours=self.max_driving_hours)

    @property
    def max_duty_window(self) -> timedelta:
        return timedelta(hours=self.max_duty_window_hours)

    @property
    def daily_reset(self) -> timedelta:
        return timedelta(hours=self.daily_reset_hours)

    @property
    def restart(self) -> timedelta:
        return timedelta(hours=self.restart_hours)

    @property
    def cycle_limit(self) -> timedelta:
        return timedelta(hours=self.cycle_limit_hours)

    @property
    def history_lookback(self) -> timedelta:
        """How far back the engine reads the timeline for any evaluation."""
        return self.cycle_lookback + self.restart

    @classmethod
    def from_settings(cls) -> "HOSRuleConfig":
        """Build the configuration from ``settings.HOS_ENGINE``."""
        from django.conf import settings

        overrides = getattr(settings, "HOS_ENGINE", {}) or {}
        return cls(
            cycle=overrides.get("CYCLE", CYCLE_70_HOUR_8_DAY),
            max_driving_hours=overrides.get("MAX_DRIVING_HOURS", 11),
            max_duty_window_hours=overrides.get("MAX_DUTY_WINDOW_HOURS", 14),
            daily_reset_hours=overrides.get("DAILY_RESET_HOURS", 10),
            restart_hours=overrides.get("RESTART_HOURS", 34),
            ledger_lock_timeout_seconds=overrides.get(
                "LEDGER_LOCK_TIMEOUT_SECONDS", 5.0
            ),
        )
