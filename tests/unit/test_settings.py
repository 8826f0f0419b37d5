"""Unit tests for application settings."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from config.settings import (
    AppConfig,
    LogFormatName,
    LoggingSettings,
    StoreBackend,
    get_config,
    reset_config,
)
from src.core.factory import build_service, build_store
from src.storage.sample_store import InMemorySampleStore, SQLiteSampleStore


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self, tmp_path):
        """Should carry the reference retention and tolerance."""
        config = AppConfig(state_dir=tmp_path)

        assert config.store_backend == StoreBackend.SQLITE
        assert config.retention_seconds == 3600.0
        assert config.alignment_tolerance_seconds == 60.0
        assert config.default_window_minutes == 60.0
        assert config.sweep_interval_seconds == 60.0

    def test_resolved_db_path(self, tmp_path):
        """Should default the database into the state directory."""
        config = AppConfig(state_dir=tmp_path)

        assert config.resolved_db_path == tmp_path / "samples.db"

    def test_explicit_db_path(self, tmp_path):
        """Should prefer an explicit database path."""
        config = AppConfig(state_dir=tmp_path, db_path=tmp_path / "other.db")

        assert config.resolved_db_path == tmp_path / "other.db"

    def test_state_dir_created(self, tmp_path):
        """Should create the state directory."""
        state_dir = tmp_path / "nested" / "state"

        AppConfig(state_dir=state_dir)

        assert state_dir.is_dir()

    def test_env_override(self, tmp_path, monkeypatch):
        """Should read TICKERWIN_ environment variables."""
        monkeypatch.setenv("TICKERWIN_RETENTION_SECONDS", "120")
        monkeypatch.setenv("TICKERWIN_STORE_BACKEND", "memory")

        config = AppConfig(state_dir=tmp_path)

        assert config.retention_seconds == 120.0
        assert config.store_backend == StoreBackend.MEMORY

    @pytest.mark.parametrize(
        "field,value",
        [
            ("retention_seconds", 0),
            ("alignment_tolerance_seconds", -1),
            ("default_window_minutes", -5),
            ("sweep_interval_seconds", 0),
        ],
    )
    def test_invalid_values(self, tmp_path, field, value):
        """Should reject out-of-range values."""
        with pytest.raises(ValidationError):
            AppConfig(state_dir=tmp_path, **{field: value})

    def test_get_config_cached(self, tmp_path, monkeypatch):
        """Should cache until reset."""
        monkeypatch.setenv("TICKERWIN_STATE_DIR", str(tmp_path))
        reset_config()

        first = get_config()
        assert get_config() is first

        reset_config()
        assert get_config() is not first
        reset_config()


class TestLoggingSettings:
    """Tests for LoggingSettings."""

    def test_defaults(self):
        """Should default to detailed INFO logging on the console only."""
        settings = LoggingSettings()

        assert settings.level == "INFO"
        assert settings.format == LogFormatName.DETAILED
        assert settings.log_to_file is False

    def test_level_normalized(self):
        """Should accept lower-case level names."""
        assert LoggingSettings(level="debug").level == "DEBUG"

    def test_unknown_level(self):
        """Should reject unknown levels."""
        with pytest.raises(ValidationError):
            LoggingSettings(level="chatty")

    def test_env_override(self, monkeypatch):
        """Should read TICKERWIN_LOG_ variables."""
        monkeypatch.setenv("TICKERWIN_LOG_FORMAT", "json")

        assert LoggingSettings().format == LogFormatName.JSON


class TestFactory:
    """Tests for building stores and services from config."""

    def test_build_memory_store(self, tmp_path):
        """Should build an in-memory store."""
        config = AppConfig(state_dir=tmp_path, store_backend=StoreBackend.MEMORY)

        assert isinstance(build_store(config), InMemorySampleStore)

    def test_build_sqlite_store(self, tmp_path):
        """Should build a SQLite store at the resolved path."""
        config = AppConfig(state_dir=tmp_path)

        store = build_store(config)

        assert isinstance(store, SQLiteSampleStore)
        assert store.db_path == tmp_path / "samples.db"

    def test_build_service_uses_config(self, tmp_path):
        """Should pass retention and tolerance through."""
        config = AppConfig(
            state_dir=tmp_path,
            store_backend=StoreBackend.MEMORY,
            retention_seconds=300,
            alignment_tolerance_seconds=15,
        )

        service = build_service(config)

        assert service.retention == timedelta(seconds=300)
        assert service.tolerance == timedelta(seconds=15)
