"""Per-OS capability records for the rebuild workflow."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PlatformFamily = Literal["darwin", "linux"]


class PlatformProfile(BaseModel):
    """Everything that differs between nix-darwin and NixOS hosts."""

    model_config = ConfigDict(frozen=True)

    family: PlatformFamily = Field(..., description="Operating system family.")
    home_root: Path = Field(..., description="Directory holding user home directories.")
    rebuild_command: tuple[str, ...] = Field(
        ...,
        description="Privileged rebuild invocation, without the flake arguments.",
    )
    rebuild_flags: tuple[str, ...] = Field(
        default=("-L",),
        description="Flags appended after the flake target.",
    )
    generation_query: tuple[str, ...] = Field(
        ...,
        description="Command listing the system profile's generations.",
    )

    @field_validator("rebuild_command", "generation_query")
    @classmethod
    def _require_command(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value or not all(part.strip() for part in value):
            raise ValueError("Commands must be a non-empty list of non-empty arguments")
        return value

    def rebuild_args(self, flake_target: str) -> tuple[str, ...]:
        """Full rebuild command line for the given flake target."""

        return (*self.rebuild_command, "--flake", flake_target, *self.rebuild_flags)


__all__ = ["PlatformFamily", "PlatformProfile"]
