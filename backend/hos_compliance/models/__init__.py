"""
HOS Compliance models package.

This package contains the persisted compliance violations detected by
the HOS rule engine.
"""

from .compliance_violation import ComplianceViolation

__all__ = ['ComplianceViolation']
