"""Application settings and configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from fithouse.db.snapshots import STORAGE_KEY

CONFIG_ENV_VAR = "FITHOUSE_CONFIG"


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".fithouse"


def _default_config_path() -> Path:
    """Return the config file path, honouring $FITHOUSE_CONFIG."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return _default_config_dir() / "config.yaml"


def _default_db_path() -> Path:
    """Return the default database path."""
    return _default_config_dir() / "fithouse.db"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class StorageConfig:
    """Snapshot storage configuration."""

    key: str = STORAGE_KEY


@dataclass
class ExportConfig:
    """Backup export configuration."""

    directory: Path = field(default_factory=Path.cwd)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses $FITHOUSE_CONFIG
                or ~/.fithouse/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = _default_config_path()

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

        # Parse storage config
        if "storage" in data:
            storage_data = data["storage"] or {}
            if "key" in storage_data:
                settings.storage.key = str(storage_data["key"])

        # Parse export config
        if "export" in data:
            export_data = data["export"] or {}
            if "directory" in export_data:
                settings.export.directory = Path(export_data["directory"]).expanduser()

        # Parse logging config
        if "logging" in data:
            logging_data = data["logging"] or {}
            if "level" in logging_data:
                settings.logging.level = str(logging_data["level"]).upper()

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses the default
                config path
        """
        if config_path is None:
            config_path = _default_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "database": {
                "path": str(self.database.path),
            },
            "storage": {
                "key": self.storage.key,
            },
            "export": {
                "directory": str(self.export.directory),
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
