"""Tests for configuration module."""

from pathlib import Path

from qt_qrep.config import Settings, get_settings
from qt_qrep.intersect import MIN_COUNT


def test_settings_defaults(monkeypatch):
    """Test that settings have sensible defaults."""
    monkeypatch.delenv("QREP_DENYLIST_FILE")
    settings = Settings()
    assert settings.dsn == ""
    assert settings.capture_fraction == 0.1
    assert settings.deviation == 0.05
    assert settings.min_count == MIN_COUNT
    assert settings.denylist_file.name == ".qrep-query-blacklist"
    assert settings.report_dir == Path("/tmp")
    assert settings.hosts_fraction == 0.2
    assert settings.hosts_deviation == 0.02
    assert "${HOST}" in settings.dsn_template


def test_environment_overrides(monkeypatch):
    """Test QREP_* variables override defaults."""
    monkeypatch.setenv("QREP_MIN_COUNT", "50")
    monkeypatch.setenv("QREP_REPORT_DIR", "/var/lib/qrep")
    settings = Settings()
    assert settings.min_count == 50
    assert settings.report_dir == Path("/var/lib/qrep")


def test_dotenv_file(tmp_path):
    """Test .env in the working directory is read."""
    (tmp_path / ".env").write_text("QREP_DEVIATION=0.07\n")
    assert Settings().deviation == 0.07


def test_get_settings_is_cached():
    """Test get_settings returns the same instance."""
    assert get_settings() is get_settings()
