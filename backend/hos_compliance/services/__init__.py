"""
HOS Compliance Services Package.

This package contains all business logic services for Hours of Service
cycle tracking, rule evaluation and violation management.

Services:
- CycleTrackerService: 7/8-day cycle position and 34-hour restart detection
- ComplianceRuleEngine: Driving, duty window and cycle rule evaluation
- ViolationStoreService: Violation recording and resolution
- HOSCalculatorService: Available hours snapshot
- FleetSummaryService: Multi-driver dashboard summaries
"""

from .cycle_tracker import CycleState, CycleTrackerService
from .violation_store import ViolationStoreService
from .compliance_rule_engine import ComplianceRuleEngine, DutyPeriod, RuleFinding
from .hos_calculator import HOSCalculatorService
from .fleet_summary import FleetSummaryService, summarize_fleet

__all__ = [
    'CycleState',
    'CycleTrackerService',
    'ViolationStoreService',
    'ComplianceRuleEngine',
    'DutyPeriod',
    'RuleFinding',
    'HOSCalculatorService',
    'FleetSummaryService',
    'summarize_fleet',
]
