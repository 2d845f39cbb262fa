"""System generation detection."""

from __future__ import annotations

import logging
from datetime import datetime

from .commands import CommandError, CommandRunner
from .platforms import PlatformProfile

CURRENT_MARKER = "current"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def parse_current_generation(listing: str) -> str | None:
    """Extract ``Generation N`` from ``nix-env --list-generations`` output.

    Returns ``None`` when no line carries the current marker together with
    a numeric leading field.
    """

    for line in listing.splitlines():
        if CURRENT_MARKER not in line:
            continue
        fields = line.split()
        if fields and fields[0].isdigit():
            return f"Generation {fields[0]}"
    return None


def fallback_description(now: datetime | None = None) -> str:
    moment = now or datetime.now()
    return f"System update {moment.strftime(TIMESTAMP_FORMAT)}"


async def detect_generation(runner: CommandRunner, platform: PlatformProfile) -> str:
    """Describe the active system generation, never failing.

    Any problem with the query degrades to a timestamped description.
    """

    try:
        result = await runner.capture(*platform.generation_query)
    except CommandError as exc:
        logger.warning("Could not get generation info: %s", exc)
        return fallback_description()

    if not result.ok:
        logger.warning("Could not get generation info (exit code %s)", result.returncode)
        return fallback_description()

    return parse_current_generation(result.stdout) or fallback_description()


__all__ = [
    "CURRENT_MARKER",
    "TIMESTAMP_FORMAT",
    "detect_generation",
    "fallback_description",
    "parse_current_generation",
]
