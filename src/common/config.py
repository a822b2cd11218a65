"""
Application configuration management for keyshelf.

This module provides configuration loading from environment variables
and configuration files, with type-safe settings classes.
"""

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import InvalidConfigError, MissingConfigError

DATE_FORMATS = [
    "MM/DD/YYYY",
    "DD/MM/YYYY",
    "YYYY-MM-DD",
    "DD MMM YYYY",
    "MMM DD, YYYY",
]


class GnuPGSettings(BaseSettings):
    """GnuPG keyring configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="GNUPG_",
        extra="ignore",
    )

    home: str = Field(
        default="~/.gnupg", description="GnuPG home directory holding the keyring"
    )
    binary: str = Field(default="gpg", description="Path to the gpg binary")
    use_agent: bool = Field(default=True, description="Use the GnuPG agent")

    @field_validator("home")
    @classmethod
    def expand_home(cls, v: str) -> str:
        """Expand ~ in the GnuPG home path."""
        return os.path.expanduser(v)


class StoreSettings(BaseSettings):
    """Autocrypt settings store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        extra="ignore",
    )

    data_dir: str = Field(
        default="~/.keyshelf/data", description="Directory for the Autocrypt store"
    )
    autocrypt_file: str = Field(
        default="autocrypt.json", description="Autocrypt settings file name"
    )

    @field_validator("data_dir")
    @classmethod
    def expand_data_dir(cls, v: str) -> str:
        """Expand ~ in the data directory path."""
        return os.path.expanduser(v)

    @property
    def autocrypt_path(self) -> Path:
        """Full path of the Autocrypt settings file."""
        return Path(self.data_dir) / self.autocrypt_file


class DisplaySettings(BaseSettings):
    """Display configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="DISPLAY_",
        extra="ignore",
    )

    date_format: str = Field(
        default="YYYY-MM-DD", description="Date format for key creation dates"
    )

    @field_validator("date_format")
    @classmethod
    def validate_date_format(cls, v: str) -> str:
        """Validate the date format against the supported patterns."""
        if v not in DATE_FORMATS:
            raise ValueError(f"Date format must be one of: {', '.join(DATE_FORMATS)}")
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        extra="ignore",
    )

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file: Optional[str] = Field(None, description="Log file path")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper


class Settings(BaseSettings):
    """Main application settings aggregating all configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KEYSHELF_",
        extra="ignore",
    )

    app_name: str = Field(default="keyshelf", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    gnupg: GnuPGSettings = Field(default_factory=GnuPGSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_toml(cls, path: str | Path) -> "Settings":
        """
        Load settings from a TOML configuration file.

        Args:
            path: Path to the TOML configuration file.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            MissingConfigError: If the file does not exist.
            InvalidConfigError: If the file cannot be parsed.
        """
        path = Path(path)
        if not path.exists():
            raise MissingConfigError(str(path), details={"reason": "configuration file not found"})

        try:
            with open(path, "rb") as f:
                config_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise InvalidConfigError(
                config_key="config_file",
                value=str(path),
                reason=f"Failed to parse TOML: {e}",
            )

        return cls._from_dict(config_data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Settings":
        """
        Create settings from a dictionary.

        Args:
            data: Configuration dictionary.

        Returns:
            Settings instance.
        """
        settings_kwargs: dict[str, Any] = {}

        if "app" in data:
            settings_kwargs.update(data["app"])

        if "gnupg" in data:
            settings_kwargs["gnupg"] = GnuPGSettings(**data["gnupg"])

        if "store" in data:
            settings_kwargs["store"] = StoreSettings(**data["store"])

        if "display" in data:
            settings_kwargs["display"] = DisplaySettings(**data["display"])

        if "logging" in data:
            settings_kwargs["logging"] = LoggingSettings(**data["logging"])

        return cls(**settings_kwargs)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    This function loads settings from environment variables and
    optionally from a configuration file. The result is cached
    for performance.

    Returns:
        Settings instance.
    """
    config_file = os.getenv("KEYSHELF_CONFIG_FILE")

    if config_file and Path(config_file).exists():
        settings = Settings.from_toml(config_file)
    else:
        settings = Settings()

    return settings
