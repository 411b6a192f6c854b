"""
HOS compliance signals and receivers.

``violation_recorded`` is sent once for every newly recorded violation,
with keyword arguments ``violation`` (the stored Violation) and
``driver_id``. Alerting collaborators connect to it.
"""

import logging

from django.dispatch import Signal

logger = logging.getLogger(__name__)

violation_recorded = Signal()


def evaluate_after_status_change(sender, driver_id, interval, store=None, config=None, **kwargs):
    """
    Run the compliance rules for a driver whose timeline just changed.

    Connected to ``eld_logs.signals.duty_status_changed`` in
    ``HosComplianceConfig.ready``. Evaluation happens at the instant of
    the change, before the next change for the driver can be accepted.
    The duty window is checked against the status being left, so a
    window overrun ended by going off duty is still recorded.
    """
    from .services.compliance_rule_engine import ComplianceRuleEngine

    engine = ComplianceRuleEngine(store=store, config=config)
    violations = engine.evaluate(driver_id, interval.start)
    if violations:
        logger.info(
            f"Status change for driver {driver_id} produced {len(violations)} new violation(s)"
        )
    return violations
