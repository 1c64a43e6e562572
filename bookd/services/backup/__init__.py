"""Backup services package."""

from bookd.services.backup.daily_backup import (
    BACKUP_TABLES,
    BackupError,
    BackupReport,
    DailyBackupService,
    redact_user,
)

__all__ = [
    "BACKUP_TABLES",
    "BackupError",
    "BackupReport",
    "DailyBackupService",
    "redact_user",
]
