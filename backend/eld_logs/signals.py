"""
Signals sent by the duty status ledger.

``duty_status_changed`` is sent after a status change has been committed,
with keyword arguments:

- driver_id: the driver whose timeline changed
- interval: the newly opened DutyInterval
- previous: the interval that was closed (or None)
- store: the TimelineStore the change was written to
- config: the HOSRuleConfig in effect
"""

from django.dispatch import Signal

duty_status_changed = Signal()
