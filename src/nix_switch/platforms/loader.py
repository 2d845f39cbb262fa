"""Platform selection and YAML override loading."""

from __future__ import annotations

import platform
from pathlib import Path
from typing import Iterable

import yaml
from pydantic import ValidationError

from .models import PlatformFamily, PlatformProfile

_SYSTEM_PROFILE = "/nix/var/nix/profiles/system"

BUILTIN_PLATFORMS: dict[str, PlatformProfile] = {
    "darwin": PlatformProfile(
        family="darwin",
        home_root=Path("/Users"),
        rebuild_command=("sudo", "darwin-rebuild", "switch"),
        # nix-env is not on root's PATH under nix-darwin
        generation_query=(
            "sudo",
            "/run/current-system/sw/bin/nix-env",
            "-p",
            _SYSTEM_PROFILE,
            "--list-generations",
        ),
    ),
    "linux": PlatformProfile(
        family="linux",
        home_root=Path("/home"),
        rebuild_command=("sudo", "nixos-rebuild", "switch"),
        generation_query=("sudo", "nix-env", "-p", _SYSTEM_PROFILE, "--list-generations"),
    ),
}


class PlatformLoadError(RuntimeError):
    """Raised when one or more platform override files cannot be parsed."""


def detect_family(system: str | None = None) -> PlatformFamily:
    """Map the running operating system onto a platform family."""

    name = system if system is not None else platform.system()
    return "darwin" if name == "Darwin" else "linux"


class PlatformLoader:
    """Loads platform overrides from YAML files on disk.

    Each document is a partial platform record with a ``family`` key. Its
    keys replace those of the built-in record for that family.
    """

    def __init__(self, search_paths: Iterable[Path] | None = None) -> None:
        paths = [Path(path) for path in (search_paths or [])]
        self._search_paths: list[Path] = [path for path in paths if path.is_dir()]

    @property
    def search_paths(self) -> list[Path]:
        """Return the normalized search paths."""

        return list(self._search_paths)

    def load_all(self) -> dict[str, PlatformProfile]:
        """Return the built-in platforms with all overrides applied.

        Later search paths override earlier ones when families collide.
        """

        platforms = dict(BUILTIN_PLATFORMS)
        errors: list[str] = []

        for base in self._search_paths:
            for path in sorted(base.glob("*.yml")) + sorted(base.glob("*.yaml")):
                try:
                    text = path.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as exc:
                    errors.append(f"Failed to read {path}: {exc}")
                    continue
                try:
                    document = yaml.safe_load(text)
                except yaml.YAMLError as exc:
                    errors.append(f"Failed to parse YAML in {path}: {exc}")
                    continue

                if document is None:
                    continue
                if not isinstance(document, dict):
                    errors.append(f"Platform override in {path} must be a mapping")
                    continue

                family = document.get("family")
                if not isinstance(family, str) or family not in BUILTIN_PLATFORMS:
                    errors.append(f"Unknown platform family {family!r} in {path}")
                    continue

                merged = {**platforms[family].model_dump(), **document}
                try:
                    platforms[family] = PlatformProfile.model_validate(merged)
                except ValidationError as exc:
                    errors.append(f"Platform validation error in {path}: {exc}")

        if errors:
            raise PlatformLoadError("; ".join(errors))

        return platforms

    def get(self, family: PlatformFamily) -> PlatformProfile:
        """Return the platform record for one family."""

        return self.load_all()[family]


def load_platform(
    search_paths: Iterable[Path] | None = None,
    family: PlatformFamily | None = None,
) -> PlatformProfile:
    """Select the platform record for this host, overrides included."""

    loader = PlatformLoader(search_paths)
    return loader.get(family or detect_family())


__all__ = [
    "BUILTIN_PLATFORMS",
    "PlatformLoadError",
    "PlatformLoader",
    "detect_family",
    "load_platform",
]
