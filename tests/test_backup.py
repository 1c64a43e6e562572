"""
Tests for the daily backup.

Files are written under pytest's tmp_path; the clock is pinned.
"""

import json
import os
import threading
import zipfile
from datetime import datetime, timezone

import pytest

from bookd.audit import AuditLogger
from bookd.config import BackupSettings
from bookd.models.audit import AuditEventType
from bookd.services.backup import (
    BACKUP_TABLES,
    BackupError,
    DailyBackupService,
    redact_user,
)
from bookd.services.storage import (
    InMemoryAuditStorage,
    InMemoryRecordSource,
    RecordSourceInterface,
    StorageError,
)


NOW = datetime(2025, 1, 15, 2, 0, tzinfo=timezone.utc)


class BrokenSource(RecordSourceInterface):
    async def fetch_table(self, table: str) -> list[dict]:
        raise StorageError("database unreachable")


@pytest.fixture
def source():
    return InMemoryRecordSource({
        "users": [{"id": 1, "email": "dj@example.com", "password_hash": "$2b$10$abc"}],
        "gigs": [
            {"id": 10, "userId": 1, "actualPay": "300"},
            {"id": 11, "userId": 1, "actualPay": "150"},
        ],
        "expenses": [{"id": 5, "amount": "40"}],
    })


@pytest.fixture
def settings(tmp_path):
    return BackupSettings(backup_dir=str(tmp_path), retention_days=90)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def service(source, settings, audit_storage):
    return DailyBackupService(
        source=source,
        settings=settings,
        audit_logger=AuditLogger(audit_storage),
        clock=lambda: NOW,
    )


class TestRedaction:
    """Tests for password redaction."""

    def test_password_fields_redacted(self):
        """Test every password field is replaced."""
        user = {"id": 1, "password_hash": "x", "passwordHash": "y", "password": "z", "name": "Sam"}
        redacted = redact_user(user)
        assert redacted["password_hash"] == "[REDACTED]"
        assert redacted["passwordHash"] == "[REDACTED]"
        assert redacted["password"] == "[REDACTED]"
        assert redacted["name"] == "Sam"

    def test_original_untouched(self):
        """Test redaction returns a copy."""
        user = {"password_hash": "x"}
        redact_user(user)
        assert user["password_hash"] == "x"


class TestCreateBackup:
    """Tests for a full backup run."""

    @pytest.mark.asyncio
    async def test_writes_json_and_zip(self, service, tmp_path):
        """Test both files land in <backup_dir>/daily with the date in the name."""
        report = await service.create_backup()

        daily = tmp_path / "daily"
        assert report.json_path == str(daily / "backup_2025-01-15.json")
        assert report.zip_path == str(daily / "backup_2025-01-15.zip")
        assert (daily / "backup_2025-01-15.json").exists()
        assert (daily / "backup_2025-01-15.zip").exists()
        assert report.json_size_bytes > 0
        assert report.zip_size_bytes > 0

    @pytest.mark.asyncio
    async def test_json_contents(self, service, tmp_path):
        """Test the export carries every table and per-table stats."""
        await service.create_backup()

        backup = json.loads((tmp_path / "daily" / "backup_2025-01-15.json").read_text())
        assert backup["version"] == "1.0"
        assert backup["timestamp"] == NOW.isoformat()
        assert set(backup["data"]) == set(BACKUP_TABLES)
        assert backup["stats"]["total_users"] == 1
        assert backup["stats"]["total_gigs"] == 2
        assert backup["stats"]["total_goals"] == 0

    @pytest.mark.asyncio
    async def test_passwords_never_written(self, service, source, tmp_path):
        """Test password hashes are redacted in the backup but not the source."""
        await service.create_backup()

        text = (tmp_path / "daily" / "backup_2025-01-15.json").read_text()
        assert "$2b$10$abc" not in text
        assert json.loads(text)["data"]["users"][0]["password_hash"] == "[REDACTED]"

        rows = await source.fetch_table("users")
        assert rows[0]["password_hash"] == "$2b$10$abc"

    @pytest.mark.asyncio
    async def test_zip_contents(self, service, tmp_path):
        """Test the zip holds the export, metadata and a readme."""
        await service.create_backup()

        with zipfile.ZipFile(tmp_path / "daily" / "backup_2025-01-15.zip") as archive:
            assert set(archive.namelist()) == {"backup.json", "metadata.json", "README.txt"}
            metadata = json.loads(archive.read("metadata.json"))
            readme = archive.read("README.txt").decode()
            backup = json.loads(archive.read("backup.json"))

        assert metadata["stats"]["total_gigs"] == 2
        assert "Total Gigs: 2" in readme
        assert backup["stats"]["total_users"] == 1

    @pytest.mark.asyncio
    async def test_audit_events(self, service, audit_storage):
        """Test a run is audited start to finish."""
        await service.create_backup()

        events = await audit_storage.get_recent_events()
        assert [e.event_type for e in events] == [
            AuditEventType.BACKUP_COMPLETED,
            AuditEventType.BACKUP_STARTED,
        ]

    @pytest.mark.asyncio
    async def test_failure_raises_backup_error(self, settings, audit_storage):
        """Test a source failure surfaces as BackupError and is audited."""
        service = DailyBackupService(
            source=BrokenSource(),
            settings=settings,
            audit_logger=AuditLogger(audit_storage),
            clock=lambda: NOW,
        )

        with pytest.raises(BackupError, match="database unreachable"):
            await service.create_backup()

        events = await audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.BACKUP_FAILED


class TestCleanup:
    """Tests for deleting old backups."""

    @pytest.mark.asyncio
    async def test_old_backups_deleted(self, service, tmp_path):
        """Test files older than retention go, newer and unrelated files stay."""
        daily = tmp_path / "daily"
        daily.mkdir(parents=True)

        old_ts = datetime(2024, 9, 1, tzinfo=timezone.utc).timestamp()
        recent_ts = datetime(2025, 1, 1, tzinfo=timezone.utc).timestamp()

        old_json = daily / "backup_2024-09-01.json"
        old_zip = daily / "backup_2024-09-01.zip"
        recent = daily / "backup_2025-01-01.json"
        unrelated = daily / "notes.txt"
        for path in (old_json, old_zip, recent, unrelated):
            path.write_text("{}")
        for path in (old_json, old_zip, unrelated):
            os.utime(path, (old_ts, old_ts))
        os.utime(recent, (recent_ts, recent_ts))

        report = await service.create_backup()

        assert report.deleted_count == 2
        assert not old_json.exists()
        assert not old_zip.exists()
        assert recent.exists()
        assert unrelated.exists()

    def test_missing_directory_returns_zero(self, service, tmp_path):
        """Test cleanup of a missing directory reports 0."""
        assert service.cleanup_old_backups(tmp_path / "nope", 90) == 0


class TestEventLoopFriendly:
    """Tests for keeping blocking work off the event loop."""

    @pytest.mark.asyncio
    async def test_file_work_runs_in_worker_thread(self, service, monkeypatch):
        """Test writing and cleanup run outside the event loop thread."""
        loop_thread = threading.get_ident()
        threads = {}

        write_files = service._write_files
        cleanup = service.cleanup_old_backups

        def recording_write(*args):
            threads["write"] = threading.get_ident()
            return write_files(*args)

        def recording_cleanup(*args):
            threads["cleanup"] = threading.get_ident()
            return cleanup(*args)

        monkeypatch.setattr(service, "_write_files", recording_write)
        monkeypatch.setattr(service, "cleanup_old_backups", recording_cleanup)

        report = await service.create_backup()

        assert report.zip_size_bytes > 0
        assert threads["write"] != loop_thread
        assert threads["cleanup"] != loop_thread


class TestBackupReport:
    """Tests for the run report."""

    @pytest.mark.asyncio
    async def test_compression_ratio(self, service):
        """Test the ratio reflects how much smaller the zip is."""
        report = await service.create_backup()
        expected = round((1 - report.zip_size_bytes / report.json_size_bytes) * 100, 1)
        assert report.compression_ratio == expected


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
