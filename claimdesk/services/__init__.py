"""
Services package
"""
from claimdesk.services.store import EntityStore, CUSTOMER, POLICY, CLAIM
from claimdesk.services.lifecycle import (
    ClaimLifecycle,
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    can_transition,
    check_transition,
)
from claimdesk.services.aggregation import AggregationService, Counts, DashboardSummary

__all__ = [
    "EntityStore",
    "CUSTOMER",
    "POLICY",
    "CLAIM",
    "ClaimLifecycle",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "can_transition",
    "check_transition",
    "AggregationService",
    "Counts",
    "DashboardSummary",
]
