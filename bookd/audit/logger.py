"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of which mileage numbers were measured vs guessed
2. Debugging capability for Google Maps failures
3. A record of every backup run

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from bookd.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from bookd.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, if one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("bookd.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_distance_rejected(
        self,
        origin: Optional[str],
        destination: Optional[str],
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a distance request turned away before any lookup."""
        await self.log(AuditEventBuilder.distance_request_rejected(
            origin=origin,
            destination=destination,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_distance_cache_hit(
        self,
        origin: str,
        destination: str,
        distance: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.distance_cache_hit(
            origin=origin,
            destination=destination,
            distance=distance,
            correlation_id=correlation_id,
        ))

    async def log_distance_measured(
        self,
        origin: str,
        destination: str,
        distance: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful Google Maps measurement."""
        await self.log(AuditEventBuilder.distance_measured(
            origin=origin,
            destination=destination,
            distance=distance,
            correlation_id=correlation_id,
        ))

    async def log_distance_estimated(
        self,
        origin: str,
        destination: str,
        distance: float,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a heuristic fallback estimate."""
        await self.log(AuditEventBuilder.distance_estimated(
            origin=origin,
            destination=destination,
            distance=distance,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_distance_lookup_failed(
        self,
        origin: str,
        destination: str,
        error_message: str,
        has_api_key: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.distance_lookup_failed(
            origin=origin,
            destination=destination,
            error_message=error_message,
            has_api_key=has_api_key,
            correlation_id=correlation_id,
        ))

    async def log_cache_swept(self, removed: int, remaining: int) -> None:
        await self.log(AuditEventBuilder.cache_swept(removed, remaining))

    async def log_backup_started(self, backup_dir: str) -> None:
        await self.log(AuditEventBuilder.backup_started(backup_dir))

    async def log_backup_completed(
        self,
        json_path: str,
        zip_path: str,
        stats: dict[str, int],
        deleted: int,
    ) -> None:
        """Log a finished backup run."""
        await self.log(AuditEventBuilder.backup_completed(
            json_path=json_path,
            zip_path=zip_path,
            stats=stats,
            deleted=deleted,
        ))

    async def log_backup_failed(self, error_message: str) -> None:
        await self.log(AuditEventBuilder.backup_failed(error_message))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a trip estimate).
    Pass it through all subsequent operations.
    """
    return uuid4()
