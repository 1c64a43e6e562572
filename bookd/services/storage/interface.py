"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for the two things this
package needs from storage:
1. Reading whole tables (for the daily backup)
2. Appending audit events

The real database layer lives outside this package. Anything that can
answer these calls can be plugged in; in-memory versions are used for
testing and local runs.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from bookd.models.audit import AuditEvent


class RecordSourceInterface(ABC):
    """
    Read-only access to stored tables.

    Rows are plain dicts, exactly as the database returns them.
    """

    @abstractmethod
    async def fetch_table(self, table: str) -> list[dict]:
        """
        Fetch every row of a table.

        Args:
            table: Table name (e.g. 'users', 'gigs')

        Returns:
            List of rows. An unknown table returns an empty list.

        Raises:
            StorageError: If the backend cannot be read
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass
