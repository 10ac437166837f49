"""Tests for YAML settings."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from nutritrend.config.settings import Settings, default_config_path


class TestSettingsLoad:
    """Tests for Settings.load."""

    def test_missing_file_gives_defaults(self, tmp_path) -> None:
        settings = Settings.load(tmp_path / "missing.yaml")
        assert settings.tracking.half_life_days == 7.0
        assert settings.targets.calories == 2000
        assert settings.logging.level == "WARNING"

    def test_partial_file(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.dump(
                {
                    "database": {"path": str(tmp_path / "custom.db")},
                    "targets": {"calories": 1800, "protein": 140},
                    "logging": {"level": "debug"},
                }
            )
        )

        settings = Settings.load(path)
        assert settings.database.path == tmp_path / "custom.db"
        assert settings.targets.calories == 1800
        assert settings.targets.protein == 140.0
        assert settings.targets.carbs == 200.0
        assert settings.logging.level == "DEBUG"

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert Settings.load(path).targets.fat == 67.0

    def test_non_positive_half_life_rejected(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("tracking:\n  half_life_days: 0\n")
        with pytest.raises(ValueError):
            Settings.load(path)


class TestSettingsSave:
    """Tests for Settings.save."""

    def test_save_then_load(self, tmp_path) -> None:
        path = tmp_path / "nested" / "config.yaml"
        settings = Settings()
        settings.tracking.half_life_days = 10.0
        settings.targets.protein_floor = 100.0
        settings.save(path)

        loaded = Settings.load(path)
        assert loaded.tracking.half_life_days == 10.0
        assert loaded.targets.protein_floor == 100.0
        assert loaded.database.path == settings.database.path


class TestConfigPath:
    """Tests for config path resolution."""

    def test_env_override(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("NUTRITREND_CONFIG", str(tmp_path / "alt.yaml"))
        assert default_config_path() == tmp_path / "alt.yaml"

    def test_default_location(self, monkeypatch) -> None:
        monkeypatch.delenv("NUTRITREND_CONFIG", raising=False)
        assert default_config_path() == Path.home() / ".nutritrend" / "config.yaml"
