"""Session context resolution."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import SwitchSettings
from .platforms import PlatformProfile


class SessionError(RuntimeError):
    """Raised when the operator or configuration directory cannot be resolved."""


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Facts resolved once at startup and shared by every workflow step."""

    user: str
    platform: PlatformProfile
    config_dir: Path
    flake_host: str

    @property
    def flake_target(self) -> str:
        return f"{self.config_dir}#{self.flake_host}"


def default_config_dir(platform: PlatformProfile, user: str) -> Path:
    """Conventional flake checkout location, ``~/git/nix``."""

    return platform.home_root / user / "git" / "nix"


def resolve_session(settings: SwitchSettings, platform: PlatformProfile) -> SessionContext:
    """Build the session context, failing when the environment is incomplete."""

    user = settings.user
    if not user:
        raise SessionError("USER environment variable not set")

    # nix reads a relative flake reference as a registry name
    config_dir = (settings.config_dir or default_config_dir(platform, user)).expanduser().resolve()
    if not config_dir.is_dir():
        raise SessionError(f"Nix directory not found at {config_dir}")

    return SessionContext(
        user=user,
        platform=platform,
        config_dir=config_dir,
        flake_host=settings.flake_host or user,
    )


__all__ = ["SessionContext", "SessionError", "default_config_dir", "resolve_session"]
