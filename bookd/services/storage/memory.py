"""
In-Memory Storage Implementations

Process-lifetime storage for tests and local runs. Nothing here survives
a restart.
"""

import copy
from typing import Optional
from uuid import UUID

from bookd.models.audit import AuditEvent
from bookd.services.storage.interface import (
    AuditStorageInterface,
    RecordSourceInterface,
)


class InMemoryRecordSource(RecordSourceInterface):
    """Tables held as lists of dicts."""

    def __init__(self, tables: Optional[dict[str, list[dict]]] = None):
        self._tables: dict[str, list[dict]] = {
            name: list(rows) for name, rows in (tables or {}).items()
        }

    async def fetch_table(self, table: str) -> list[dict]:
        # Copies, so a backup can redact without touching the source
        return copy.deepcopy(self._tables.get(table, []))


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
