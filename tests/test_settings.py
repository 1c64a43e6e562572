"""Tests for configuration loading."""

from pathlib import Path

import pytest

from bookd.config import (
    BackupSettings,
    GoogleMapsSettings,
    MileageSettings,
    TaxSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestGoogleMapsSettings:
    """Tests for the optional API key."""

    def test_key_is_stripped(self):
        """Test whitespace around the key is removed."""
        settings = GoogleMapsSettings(api_key="  abc123  ")
        assert settings.api_key == "abc123"
        assert settings.is_configured is True

    def test_blank_key_not_configured(self):
        """Test a blank key means heuristic-only mode."""
        assert GoogleMapsSettings(api_key="   ").is_configured is False

    def test_reads_environment(self, monkeypatch):
        """Test the key is read from GOOGLE_MAPS_API_KEY."""
        monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "from-env")
        assert GoogleMapsSettings().api_key == "from-env"


class TestMileageSettings:
    """Tests for mileage defaults and derived values."""

    def test_defaults(self, monkeypatch):
        """Test the 24 hour TTL and hourly sweep defaults."""
        for name in ("CACHE_TTL_HOURS", "CACHE_SWEEP_INTERVAL_MINUTES", "MINUTES_PER_MILE"):
            monkeypatch.delenv(f"MILEAGE_{name}", raising=False)
        settings = MileageSettings()
        assert settings.cache_ttl_seconds == 24 * 60 * 60
        assert settings.cache_sweep_interval_seconds == 60 * 60
        assert settings.minutes_per_mile == 2.5

    def test_environment_override(self, monkeypatch):
        """Test values come from MILEAGE_* variables."""
        monkeypatch.setenv("MILEAGE_CACHE_TTL_HOURS", "2")
        assert MileageSettings().cache_ttl_seconds == 7200

    def test_rejects_non_positive_ttl(self):
        """Test a zero TTL is invalid."""
        with pytest.raises(ValueError):
            MileageSettings(cache_ttl_hours=0)


class TestOtherSettings:
    """Tests for tax and backup settings."""

    def test_tax_rate_bounds(self):
        """Test the default tax rate must be a percentage."""
        assert TaxSettings(default_tax_percentage=23).default_tax_percentage == 23
        with pytest.raises(ValueError):
            TaxSettings(default_tax_percentage=120)

    def test_backup_daily_dir(self):
        """Test daily backups live under <backup_dir>/daily."""
        assert BackupSettings(backup_dir="/var/bookd").daily_dir == Path("/var/bookd/daily")


class TestValidateAllSettings:
    """Tests for the startup check."""

    def test_all_valid(self, monkeypatch):
        """Test every section loads and the missing key is reported."""
        monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
        monkeypatch.delenv("TAX_DEFAULT_TAX_PERCENTAGE", raising=False)
        results = validate_all_settings()
        assert results["mileage"] is True
        assert results["tax"] is True
        assert results["google_maps"] is True
        assert results["google_maps_api_key"] is False

    def test_invalid_section_reported(self, monkeypatch):
        """Test a bad value marks its section invalid with the error."""
        monkeypatch.setenv("TAX_DEFAULT_TAX_PERCENTAGE", "150")
        results = validate_all_settings()
        assert results["tax"] is False
        assert "tax_error" in results


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
