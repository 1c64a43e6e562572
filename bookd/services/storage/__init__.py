"""
Storage Services Package

Provides abstract interfaces and in-memory implementations. The real
database sits behind RecordSourceInterface / AuditStorageInterface.
"""

from bookd.services.storage.interface import (
    AuditStorageInterface,
    RecordSourceInterface,
    StorageError,
)
from bookd.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordSource,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordSourceInterface",
    # Exceptions
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordSource",
]
