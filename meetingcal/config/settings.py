"""Settings management using Pydantic for type validation and configuration."""

import logging
import os
from pathlib import Path
from typing import Any, Optional, cast

import yaml
from pydantic import BaseModel, Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    # Console Logging
    console_enabled: bool = Field(default=True, description="Enable console logging")
    console_level: str = Field(
        default="INFO",
        description="Console log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    console_colors: bool = Field(
        default=True, description="Enable colored console output (auto-detected)"
    )

    # File Logging
    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_level: str = Field(
        default="DEBUG",
        description="File log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    file_directory: Optional[str] = Field(
        default=None, description="Custom log directory (defaults to data_dir/logs)"
    )
    file_prefix: str = Field(default="meetingcal", description="Log file prefix")
    max_log_files: int = Field(default=5, description="Maximum number of log files to keep")
    include_function_names: bool = Field(
        default=True, description="Include function names and line numbers in file logs"
    )

    # Third-party Libraries
    third_party_level: str = Field(
        default="WARNING", description="Log level for third-party libraries"
    )


class RecurrenceSettings(BaseModel):
    """Recurrence expansion settings."""

    max_candidates: int = Field(
        default=1000, ge=1, description="Maximum candidate dates considered per expansion"
    )
    default_horizon_years: int = Field(
        default=2, ge=0, description="Years past the window end searched when a rule has no end date"
    )
    timezone: Optional[str] = Field(
        default=None,
        description="IANA zone for local wall-clock times (defaults to the host's local zone)",
    )


class MeetingCalSettings(BaseSettings):
    """Application settings with environment variable support."""

    # Private attributes
    _explicit_args: set = PrivateAttr(default_factory=set)
    _env_vars_set: set = PrivateAttr(default_factory=set)

    # Application Configuration
    app_name: str = Field(default="MeetingCal", description="Application name")

    # File Paths
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config" / "meetingcal")
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local" / "share" / "meetingcal")

    # Logging Configuration
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings, description="Logging settings"
    )

    # Recurrence Configuration
    recurrence: RecurrenceSettings = Field(
        default_factory=RecurrenceSettings, description="Recurrence expansion settings"
    )

    model_config = SettingsConfigDict(
        env_prefix="MEETINGCAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    def __init__(self, **kwargs: Any) -> None:
        # Track which environment variables are set before calling parent
        env_vars_set = set()
        for key in os.environ:
            if key.upper().startswith("MEETINGCAL_"):
                env_vars_set.add(key[len("MEETINGCAL_") :].lower())

        super().__init__(**kwargs)

        self._explicit_args = set(kwargs.keys())
        self._env_vars_set = env_vars_set

        # Load YAML configuration after basic initialization
        self._load_yaml_config()

    def _find_config_file(self) -> Optional[Path]:
        """Find config file, checking project directory first, then user home."""
        # Project root is two levels up from meetingcal/config
        project_root = Path(__file__).parent.parent.parent
        project_config = project_root / "config" / "config.yaml"
        if project_config.exists():
            return project_config

        user_config = self.config_dir / "config.yaml"
        if user_config.exists():
            return user_config

        return None

    def _is_overridden(self, name: str) -> bool:
        """Check whether a setting came from kwargs or the environment."""
        return name in self._explicit_args or any(
            key == name or key.startswith(f"{name}__") for key in self._env_vars_set
        )

    def _load_basic_settings(self, config_data: dict) -> None:
        """Load basic application settings from YAML data."""
        basic_settings = ["app_name"]

        for setting in basic_settings:
            if setting in config_data and not self._is_overridden(setting):
                setattr(self, setting, config_data[setting])

    def _load_logging_config(self, config_data: dict) -> None:
        """Load logging configuration from YAML data."""
        if "logging" not in config_data or self._is_overridden("logging"):
            return

        logging_config = config_data["logging"] or {}

        for setting in LoggingSettings.model_fields:
            if setting in logging_config:
                setattr(self.logging, setting, logging_config[setting])

    def _load_recurrence_config(self, config_data: dict) -> None:
        """Load recurrence expansion settings from YAML data."""
        if "recurrence" not in config_data or self._is_overridden("recurrence"):
            return

        recurrence_config = config_data["recurrence"] or {}
        merged = self.recurrence.model_dump()
        merged.update(
            {key: value for key, value in recurrence_config.items() if key in RecurrenceSettings.model_fields}
        )
        # Re-validate so YAML values get the same bounds as env and kwargs
        self.recurrence = RecurrenceSettings(**merged)

    def _load_yaml_config(self) -> None:
        """Load configuration from YAML file if it exists."""
        config_file = self._find_config_file()
        if not config_file:
            return

        try:
            with config_file.open() as f:
                config_data = yaml.safe_load(f)

            if not config_data:
                return

            self._load_basic_settings(config_data)
            self._load_logging_config(config_data)
            self._load_recurrence_config(config_data)

        except Exception as e:
            # Don't fail if YAML loading fails, just continue with defaults/env vars
            logging.warning(f"Could not load YAML config from {config_file}: {e}")

    @property
    def config_file(self) -> Path:
        """Path to YAML configuration file."""
        return self.config_dir / "config.yaml"


# Global settings management
_settings_instance: Optional[MeetingCalSettings] = None


def get_settings() -> MeetingCalSettings:
    """Get the global settings instance, creating it lazily if needed.

    Returns:
        MeetingCalSettings: The global settings instance
    """
    if globals()["_settings_instance"] is None:
        globals()["_settings_instance"] = MeetingCalSettings()
    return cast(MeetingCalSettings, globals()["_settings_instance"])


def reset_settings() -> None:
    """Reset the global settings instance (primarily for testing)."""
    globals()["_settings_instance"] = None
