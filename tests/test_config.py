"""Tests for settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from cadence.config import Settings
from cadence.scheduler import Scheduler


class TestSettings:
    """Tests for the Settings class."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = Settings()

        assert config.max_idle_seconds == 60.0
        assert config.parallel_dispatch is False
        assert config.max_workers == 4
        assert config.max_pending == 100
        assert config.get_jobs_file() == Path("jobs.yaml")

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CADENCE_MAX_IDLE_SECONDS", "5")
        monkeypatch.setenv("CADENCE_PARALLEL_DISPATCH", "true")
        monkeypatch.setenv("CADENCE_JOBS_FILE", "/etc/cadence/jobs.yaml")

        config = Settings()

        assert config.max_idle_seconds == 5.0
        assert config.parallel_dispatch is True
        assert config.get_jobs_file() == Path("/etc/cadence/jobs.yaml")

    def test_env_file(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("CADENCE_MAX_WORKERS=8\n")

        assert Settings().max_workers == 8

    def test_rejects_invalid_values(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ValidationError):
            Settings(max_workers=0)
        with pytest.raises(ValidationError):
            Settings(max_idle_seconds=0)

    def test_scheduler_uses_settings_default(self, monkeypatch):
        monkeypatch.setattr("cadence.scheduler.settings", Settings(max_idle_seconds=7))
        assert Scheduler()._max_idle == 7
