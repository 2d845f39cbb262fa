from __future__ import annotations

import asyncio
import re
from datetime import datetime
from pathlib import Path

from nix_switch.commands.runner import (
    CommandNotFoundError,
    CommandResult,
    CommandRunner,
    FakeCommandRunner,
)
from nix_switch.generation import (
    detect_generation,
    fallback_description,
    parse_current_generation,
)
from nix_switch.platforms import BUILTIN_PLATFORMS

FALLBACK_PATTERN = re.compile(r"^System update \d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")

LISTING = """\
  40   2023-12-30 09:14:02
  41   2023-12-31 18:40:55
  42   2024-01-01 12:00:00   (current)
"""


def test_parse_current_generation() -> None:
    assert parse_current_generation("42   2024-01-01 12:00:00   current") == "Generation 42"
    assert parse_current_generation(LISTING) == "Generation 42"


def test_parse_without_marker_returns_none() -> None:
    assert parse_current_generation("  40   2023-12-30 09:14:02\n") is None
    assert parse_current_generation("") is None


def test_parse_requires_numeric_leading_field() -> None:
    assert parse_current_generation("error: current profile missing\n") is None


def test_fallback_description_format() -> None:
    moment = datetime(2024, 3, 5, 7, 8, 9)

    assert fallback_description(moment) == "System update 2024-03-05 07:08:09"
    assert FALLBACK_PATTERN.match(fallback_description())


def test_detect_generation_uses_platform_query() -> None:
    platform = BUILTIN_PLATFORMS["linux"]
    fake = FakeCommandRunner(
        {platform.generation_query: CommandResult(args=(), returncode=0, stdout=LISTING)}
    )

    description = asyncio.run(detect_generation(fake, platform))

    assert description == "Generation 42"
    assert fake.invocations == [("capture", platform.generation_query)]


def test_detect_generation_falls_back_on_failure(caplog) -> None:
    platform = BUILTIN_PLATFORMS["darwin"]
    fake = FakeCommandRunner({("sudo",): CommandResult(args=(), returncode=1, stderr="denied")})

    description = asyncio.run(detect_generation(fake, platform))

    assert FALLBACK_PATTERN.match(description)
    assert "Could not get generation info" in caplog.text


def test_detect_generation_falls_back_when_query_missing() -> None:
    platform = BUILTIN_PLATFORMS["linux"]
    fake = FakeCommandRunner({("sudo",): CommandNotFoundError("Executable not found: sudo")})

    assert FALLBACK_PATTERN.match(asyncio.run(detect_generation(fake, platform)))


def test_detect_generation_falls_back_without_current_line() -> None:
    platform = BUILTIN_PLATFORMS["linux"]
    fake = FakeCommandRunner(
        {("sudo",): CommandResult(args=(), returncode=0, stdout="  40   2023-12-30 09:14:02\n")}
    )

    assert FALLBACK_PATTERN.match(asyncio.run(detect_generation(fake, platform)))


def test_detect_generation_falls_back_when_query_cannot_start(tmp_path: Path) -> None:
    tool = tmp_path / "nix-env"
    tool.write_text("#!/bin/sh\necho '42 2024-01-01 12:00:00 current'\n", encoding="utf-8")
    tool.chmod(0o644)
    platform = BUILTIN_PLATFORMS["linux"].model_copy(update={"generation_query": (str(tool),)})

    description = asyncio.run(detect_generation(CommandRunner(tmp_path), platform))

    assert FALLBACK_PATTERN.match(description)
