"""
Daily Backup

Creates a complete backup of all user data, meant to run once a day
(e.g. from a scheduler at 2 AM). Each run writes, under <backup_dir>/daily:
- backup_YYYY-MM-DD.json  full export
- backup_YYYY-MM-DD.zip   same export + metadata.json + README.txt

then deletes backup files older than the retention window.

CRITICAL: Password hashes are never written to a backup.
"""

import asyncio
import json
import zipfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import structlog
from pydantic import BaseModel, Field

from bookd.audit import AuditLogger
from bookd.config import BackupSettings, get_settings
from bookd.services.storage import RecordSourceInterface


logger = structlog.get_logger(__name__)

BACKUP_VERSION = "1.0"
BACKUP_TABLES = ("users", "gigs", "expenses", "goals", "budgets", "allocations")
SENSITIVE_USER_FIELDS = ("password_hash", "passwordHash", "password")
REDACTED = "[REDACTED]"


class BackupError(Exception):
    """The backup could not be created."""
    pass


class BackupReport(BaseModel):
    """Outcome of one backup run."""

    timestamp: datetime
    json_path: str
    zip_path: str
    json_size_bytes: int = Field(ge=0)
    zip_size_bytes: int = Field(ge=0)
    stats: dict[str, int] = Field(default_factory=dict)
    deleted_count: int = 0

    @property
    def compression_ratio(self) -> float:
        """Percent saved by the zip relative to the JSON file."""
        if not self.json_size_bytes:
            return 0.0
        return round((1 - self.zip_size_bytes / self.json_size_bytes) * 100, 1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def redact_user(user: dict) -> dict:
    """Replace password material with a marker."""
    return {
        key: (REDACTED if key in SENSITIVE_USER_FIELDS else value)
        for key, value in user.items()
    }


def _stat_key(table: str) -> str:
    return f"total_{table}"


class DailyBackupService:
    """
    Dumps every table from a record source to JSON and ZIP.

    Args:
        source: Where the rows come from
        settings: Backup settings (defaults to environment)
        audit_logger: Optional audit trail
        clock: Returns the current time as a UTC-aware datetime
    """

    def __init__(
        self,
        source: RecordSourceInterface,
        settings: Optional[BackupSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._source = source
        self._settings = settings if settings is not None else get_settings().backup
        self._audit_logger = audit_logger
        self._clock = clock

    @property
    def backup_dir(self) -> Path:
        return self._settings.daily_dir

    async def create_backup(self) -> BackupReport:
        """
        Run a full backup.

        Raises:
            BackupError: If data could not be fetched or files not written.
                         Old-file cleanup problems are logged, never raised.
        """
        backup_dir = self.backup_dir
        logger.info("daily_backup_started", backup_dir=str(backup_dir))
        if self._audit_logger:
            await self._audit_logger.log_backup_started(str(backup_dir))

        try:
            data = await self._fetch_all()
            now = self._clock()
            stats = {_stat_key(table): len(rows) for table, rows in data.items()}
            backup = {
                "timestamp": now.isoformat(),
                "version": BACKUP_VERSION,
                "stats": stats,
                "data": data,
            }

            date_str = now.date().isoformat()
            json_path = backup_dir / f"backup_{date_str}.json"
            zip_path = backup_dir / f"backup_{date_str}.zip"

            # Blocking file I/O stays off the event loop
            await asyncio.to_thread(self._write_files, backup, json_path, zip_path)
        except Exception as e:
            logger.error("daily_backup_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_backup_failed(str(e))
            raise BackupError(f"Daily backup failed: {e}") from e

        deleted = await asyncio.to_thread(
            self.cleanup_old_backups, backup_dir, self._settings.retention_days
        )

        report = BackupReport(
            timestamp=now,
            json_path=str(json_path),
            zip_path=str(zip_path),
            json_size_bytes=json_path.stat().st_size,
            zip_size_bytes=zip_path.stat().st_size,
            stats=stats,
            deleted_count=deleted,
        )
        logger.info(
            "daily_backup_completed",
            json_path=report.json_path,
            zip_path=report.zip_path,
            compression_ratio=report.compression_ratio,
            deleted=deleted,
            **stats,
        )
        if self._audit_logger:
            await self._audit_logger.log_backup_completed(
                json_path=report.json_path,
                zip_path=report.zip_path,
                stats=stats,
                deleted=deleted,
            )
        return report

    async def _fetch_all(self) -> dict[str, list[dict]]:
        data = {}
        for table in BACKUP_TABLES:
            rows = await self._source.fetch_table(table)
            if table == "users":
                rows = [redact_user(row) for row in rows]
            data[table] = rows
        return data

    def _write_files(self, backup: dict[str, Any], json_path: Path, zip_path: Path) -> None:
        json_path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(backup, indent=2, default=str)
        json_path.write_text(payload, encoding="utf-8")
        self._write_zip(backup, payload, zip_path)

    def _write_zip(self, backup: dict[str, Any], payload: str, zip_path: Path) -> None:
        metadata = {
            "backupDate": backup["timestamp"],
            "version": backup["version"],
            "stats": backup["stats"],
            "notes": "Daily automated backup of Bookd database",
        }
        stats = backup["stats"]
        readme = "\n".join([
            "BOOKD DAILY BACKUP",
            "==================",
            f"Backup Date: {backup['timestamp']}",
            f"Total Users: {stats.get(_stat_key('users'), 0)}",
            f"Total Gigs: {stats.get(_stat_key('gigs'), 0)}",
            f"Total Expenses: {stats.get(_stat_key('expenses'), 0)}",
            "",
            "This backup contains ALL user data from the Bookd database.",
            "To restore, contact your system administrator.",
            "",
            "Files included:",
            "- backup.json: Full database export",
            "- metadata.json: Backup statistics",
        ])

        with zipfile.ZipFile(
            zip_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9
        ) as archive:
            archive.writestr("backup.json", payload)
            archive.writestr("metadata.json", json.dumps(metadata, indent=2))
            archive.writestr("README.txt", readme)

    def cleanup_old_backups(self, backup_dir: Path, days_to_keep: int) -> int:
        """
        Delete backup_*.json / backup_*.zip files older than days_to_keep.

        Age is judged by file modification time. Returns the number deleted;
        any error is logged and reported as 0.
        """
        cutoff = self._clock() - timedelta(days=days_to_keep)
        deleted = 0
        try:
            for path in sorted(backup_dir.iterdir()):
                if not path.name.startswith("backup_") or path.suffix not in (".json", ".zip"):
                    continue
                modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
                if modified < cutoff:
                    path.unlink()
                    logger.info("old_backup_deleted", file=path.name)
                    deleted += 1
        except OSError as e:
            logger.warning("backup_cleanup_failed", error=str(e))
            return 0
        return deleted
