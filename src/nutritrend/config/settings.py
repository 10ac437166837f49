"""Application settings and configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

CONFIG_ENV_VAR = "NUTRITREND_CONFIG"


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".nutritrend"


def _default_db_path() -> Path:
    """Return the default database path."""
    return _default_config_dir() / "nutritrend.db"


def default_config_path() -> Path:
    """Return the config file path, honouring the NUTRITREND_CONFIG override."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return _default_config_dir() / "config.yaml"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class TrackingConfig:
    """Weight trend configuration."""

    half_life_days: float = 7.0


@dataclass
class TargetsConfig:
    """Baseline daily targets used when no override or cycling day applies."""

    calories: int = 2000
    protein: float = 150.0
    carbs: float = 200.0
    fat: float = 67.0
    protein_floor: float = 120.0


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    targets: TargetsConfig = field(default_factory=TargetsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses NUTRITREND_CONFIG
                or ~/.nutritrend/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = default_config_path()

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        # Parse database config
        if "database" in data:
            db_data = data["database"] or {}
            if "path" in db_data:
                settings.database.path = Path(db_data["path"]).expanduser()

        # Parse tracking config
        if "tracking" in data:
            tracking_data = data["tracking"] or {}
            if "half_life_days" in tracking_data:
                half_life = float(tracking_data["half_life_days"])
                if half_life <= 0:
                    raise ValueError(
                        f"tracking.half_life_days must be positive, got {half_life}"
                    )
                settings.tracking.half_life_days = half_life

        # Parse baseline targets
        if "targets" in data:
            targets_data = data["targets"] or {}
            if "calories" in targets_data:
                settings.targets.calories = int(targets_data["calories"])
            for name in ("protein", "carbs", "fat", "protein_floor"):
                if name in targets_data:
                    setattr(settings.targets, name, float(targets_data[name]))

        # Parse logging config
        if "logging" in data:
            log_data = data["logging"] or {}
            if "level" in log_data:
                settings.logging.level = str(log_data["level"]).upper()

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses the default path.
        """
        if config_path is None:
            config_path = default_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "database": {
                "path": str(self.database.path),
            },
            "tracking": {
                "half_life_days": self.tracking.half_life_days,
            },
            "targets": {
                "calories": self.targets.calories,
                "protein": self.targets.protein,
                "carbs": self.targets.carbs,
                "fat": self.targets.fat,
                "protein_floor": self.targets.protein_floor,
            },
            "logging": {
                "level": self.logging.level,
            },
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load()
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Replace the global settings instance (None forces a reload on next use)."""
    global _settings
    _settings = settings
