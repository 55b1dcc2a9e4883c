"""
Configuration management for the release helper.

This is the tool configuration (logging, publish tool, release locator).
Per-release settings live in release_helper.settings.

Supports YAML config files with environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="plain", description="Console log format (json, plain)")
    file: str | None = Field(
        default=None,
        description="JSONL log file path with daily rotation (None for console only)",
    )


class BuildConfig(BaseModel):
    """Configuration for the external publish tool."""

    command: list[str] = Field(
        default_factory=lambda: ["dotnet"],
        description="Executable (and leading arguments) of the publish tool",
    )
    publish_verb: str = Field(default="publish", description="Sub-command that publishes the solution")
    profile_argument: str = Field(
        default="-p:PublishProfile={profile}",
        description="Argument template used when a publish profile is supplied",
    )
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Kill the publish tool after this many seconds (None waits forever)",
    )


class LocatorConfig(BaseModel):
    """Configuration for the release directory lookup."""

    release_dir_name: str = Field(default="Release", description="Name of the release directory under bin")
    executable_patterns: list[str] = Field(
        default_factory=lambda: ["*.exe"],
        description="File name patterns (case-insensitive) that mark an executable",
    )
    use_executable_bit: bool = Field(
        default=False,
        description="Also treat files with the execute permission bit as executables",
    )
    sort_entries: bool = Field(
        default=True,
        description="Visit sub directories in name order instead of file system order",
    )


class Config(BaseSettings):
    """Main configuration for the release helper."""

    model_config = SettingsConfigDict(
        env_prefix="RELEASE_HELPER_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    locator: LocatorConfig = Field(default_factory=LocatorConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment variables outrank init values, which carry the config file.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def from_yaml(cls, path: str | Path) -> Config:
        """
        Load configuration from a YAML file.

        ``RELEASE_HELPER_`` environment variables still override the file.
        """
        path = Path(path)
        if not path.exists():
            return cls()

        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def load(cls, config_path: str | None = None) -> Config:
        """
        Load configuration with precedence:
        1. Environment variables (highest)
        2. Config file
        3. Defaults (lowest)
        """
        if config_path is None:
            config_path = os.getenv("RELEASE_HELPER_CONFIG")

        if config_path is None:
            for candidate in [
                "release-helper.yaml",
                "release-helper.yml",
                "config/release-helper.yaml",
                ".release-helper.yaml",
            ]:
                if Path(candidate).exists():
                    config_path = candidate
                    break

        if config_path and Path(config_path).exists():
            return cls.from_yaml(config_path)

        return cls()

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with path.open("w", encoding="utf-8") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
