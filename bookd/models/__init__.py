"""
Data Models Package

This package contains all Pydantic models used in Bookd.
"""

from bookd.models.gig import (
    EarningsSummary,
    Gig,
    GigExpenseBreakdown,
    GigStatus,
    TaxBreakdown,
    User,
)
from bookd.models.mileage import (
    CacheEntry,
    DistanceResult,
    TripEstimate,
    TripRequest,
    sanitize_address,
)
from bookd.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Gig models
    "EarningsSummary",
    "Gig",
    "GigExpenseBreakdown",
    "GigStatus",
    "TaxBreakdown",
    "User",
    # Mileage models
    "CacheEntry",
    "DistanceResult",
    "TripEstimate",
    "TripRequest",
    "sanitize_address",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
