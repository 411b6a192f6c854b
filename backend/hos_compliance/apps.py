"""
HOS compliance app configuration.
"""

from django.apps import AppConfig


class HosComplianceConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'hos_compliance'
    verbose_name = 'HOS Compliance'

    def ready(self):
        from eld_logs.signals import duty_status_changed
        from .signals import evaluate_after_status_change

        duty_status_changed.connect(
            evaluate_after_status_change,
            dispatch_uid="hos_compliance.evaluate_after_status_change",
        )
