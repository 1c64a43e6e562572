"""
Audit Models for Bookd

Every significant action in the system is logged for audit purposes:
which distances were measured, which were guessed, when the cache was
swept, and how each backup went.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Distance lookups
    DISTANCE_REQUEST_REJECTED = "distance_request_rejected"
    DISTANCE_CACHE_HIT = "distance_cache_hit"
    DISTANCE_MEASURED = "distance_measured"
    DISTANCE_ESTIMATED = "distance_estimated"
    DISTANCE_LOOKUP_FAILED = "distance_lookup_failed"

    # Cache maintenance
    CACHE_SWEPT = "cache_swept"

    # Backups
    BACKUP_STARTED = "backup_started"
    BACKUP_COMPLETED = "backup_completed"
    BACKUP_FAILED = "backup_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'distance', 'backup', 'cache')"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one trip estimate)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


def _route(origin: str, destination: str) -> dict:
    return {"origin": origin, "destination": destination}


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.distance_measured(origin, destination, 12.3)
        event = AuditEventBuilder.backup_completed(path, stats)
    """

    @staticmethod
    def distance_request_rejected(
        origin: Optional[str],
        destination: Optional[str],
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DISTANCE_REQUEST_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="distance",
            correlation_id=correlation_id,
            description=f"Distance request rejected: {reason}",
            details=_route(origin or "", destination or ""),
        )

    @staticmethod
    def distance_cache_hit(
        origin: str,
        destination: str,
        distance: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DISTANCE_CACHE_HIT,
            severity=AuditSeverity.DEBUG,
            entity_type="distance",
            correlation_id=correlation_id,
            description=f"Distance served from cache: {distance} mi",
            details={**_route(origin, destination), "distance": distance},
        )

    @staticmethod
    def distance_measured(
        origin: str,
        destination: str,
        distance: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DISTANCE_MEASURED,
            entity_type="distance",
            correlation_id=correlation_id,
            description=f"Distance measured by Google Maps: {distance} mi",
            details={**_route(origin, destination), "distance": distance},
        )

    @staticmethod
    def distance_estimated(
        origin: str,
        destination: str,
        distance: float,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DISTANCE_ESTIMATED,
            severity=AuditSeverity.WARNING,
            entity_type="distance",
            correlation_id=correlation_id,
            description=f"Distance estimated heuristically ({reason}): {distance:.2f} mi",
            details={
                **_route(origin, destination),
                "distance": distance,
                "reason": reason,
            },
        )

    @staticmethod
    def distance_lookup_failed(
        origin: str,
        destination: str,
        error_message: str,
        has_api_key: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DISTANCE_LOOKUP_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="distance",
            correlation_id=correlation_id,
            description="Distance Matrix lookup failed",
            error_message=error_message,
            details={**_route(origin, destination), "has_api_key": has_api_key},
        )

    @staticmethod
    def cache_swept(removed: int, remaining: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CACHE_SWEPT,
            severity=AuditSeverity.DEBUG,
            entity_type="cache",
            description=f"Swept {removed} expired distance cache entries",
            details={"removed": removed, "remaining": remaining},
        )

    @staticmethod
    def backup_started(backup_dir: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_STARTED,
            entity_type="backup",
            description="Daily backup started",
            details={"backup_dir": backup_dir},
        )

    @staticmethod
    def backup_completed(
        json_path: str,
        zip_path: str,
        stats: dict[str, int],
        deleted: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_COMPLETED,
            entity_type="backup",
            description=f"Daily backup written: {zip_path}",
            details={
                "json_path": json_path,
                "zip_path": zip_path,
                "stats": stats,
                "deleted_old_backups": deleted,
            },
        )

    @staticmethod
    def backup_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_FAILED,
            severity=AuditSeverity.CRITICAL,
            entity_type="backup",
            description="Daily backup failed",
            error_message=error_message,
        )
