"""Configuration management for nix-switch."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated
import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_PLATFORM_PATHS = (Path("~/.config/nix-switch"),)


class SwitchSettings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(extra="ignore")

    user: str | None = Field(default=None, validation_alias="USER")
    config_dir: Path | None = Field(default=None, validation_alias="SWITCH_CONFIG_DIR")
    flake_host: str | None = Field(default=None, validation_alias="SWITCH_FLAKE_HOST")
    platform_paths: Annotated[tuple[Path, ...], NoDecode] = Field(
        default=DEFAULT_PLATFORM_PATHS, validation_alias="SWITCH_PLATFORM_PATHS"
    )
    log_level: str = Field(default="INFO", validation_alias="SWITCH_LOG_LEVEL")

    @field_validator("user", "flake_host", mode="before")
    @classmethod
    def _blank_as_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("config_dir", mode="before")
    @classmethod
    def _blank_path_as_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "SWITCH_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("platform_paths", mode="before")
    @classmethod
    def _parse_platform_paths(cls, value):
        if value is None or value == "":
            return DEFAULT_PLATFORM_PATHS
        if isinstance(value, (list, tuple)):
            return tuple(Path(str(item)) for item in value)
        if isinstance(value, str):
            parts = [part.strip() for part in value.split(os.pathsep) if part.strip()]
            return tuple(Path(part) for part in parts) or DEFAULT_PLATFORM_PATHS
        raise TypeError("SWITCH_PLATFORM_PATHS must be a list of paths or a path-separated string")


@lru_cache(maxsize=1)
def get_settings() -> SwitchSettings:
    """Return cached settings instance."""

    settings = SwitchSettings()
    if settings.config_dir is not None:
        settings.config_dir = settings.config_dir.expanduser().resolve()
    settings.platform_paths = tuple(path.expanduser().resolve() for path in settings.platform_paths)
    return settings


__all__ = ["SwitchSettings", "get_settings"]
