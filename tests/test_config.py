from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from nix_switch.config import DEFAULT_PLATFORM_PATHS, SwitchSettings, get_settings
from nix_switch.platforms import BUILTIN_PLATFORMS
from nix_switch.session import SessionError, default_config_dir, resolve_session


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SWITCH_CONFIG_DIR", "SWITCH_FLAKE_HOST", "SWITCH_PLATFORM_PATHS", "SWITCH_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("USER", "alice")
    monkeypatch.setenv("SWITCH_CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("SWITCH_LOG_LEVEL", "debug")
    monkeypatch.setenv("SWITCH_PLATFORM_PATHS", os.pathsep.join(["/etc/nix-switch", str(tmp_path)]))

    settings = SwitchSettings()

    assert settings.user == "alice"
    assert settings.config_dir == tmp_path
    assert settings.log_level == "DEBUG"
    assert settings.platform_paths == (Path("/etc/nix-switch"), tmp_path)
    assert settings.flake_host is None


def test_blank_user_is_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("USER", "  ")

    assert SwitchSettings().user is None


def test_default_platform_paths(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SWITCH_PLATFORM_PATHS", "")

    assert SwitchSettings().platform_paths == DEFAULT_PLATFORM_PATHS


def test_invalid_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SWITCH_LOG_LEVEL", "chatty")

    with pytest.raises(ValidationError):
        SwitchSettings()


def test_resolve_session_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("USER", "alice")
    monkeypatch.setenv("SWITCH_CONFIG_DIR", str(tmp_path))

    session = resolve_session(SwitchSettings(), BUILTIN_PLATFORMS["linux"])

    assert session.user == "alice"
    assert session.flake_host == "alice"
    assert session.flake_target == f"{tmp_path.resolve()}#alice"


def test_resolve_session_flake_host_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("USER", "alice")
    monkeypatch.setenv("SWITCH_CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("SWITCH_FLAKE_HOST", "workstation")

    session = resolve_session(SwitchSettings(), BUILTIN_PLATFORMS["darwin"])

    assert session.flake_target.endswith("#workstation")


def test_resolve_session_requires_user(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("USER", raising=False)
    monkeypatch.setenv("SWITCH_CONFIG_DIR", str(tmp_path))

    with pytest.raises(SessionError, match="USER"):
        resolve_session(SwitchSettings(), BUILTIN_PLATFORMS["linux"])


def test_resolve_session_requires_directory(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("USER", "alice")
    monkeypatch.setenv("SWITCH_CONFIG_DIR", str(tmp_path / "absent"))

    with pytest.raises(SessionError, match="Nix directory not found"):
        resolve_session(SwitchSettings(), BUILTIN_PLATFORMS["linux"])


def test_default_config_dir() -> None:
    assert default_config_dir(BUILTIN_PLATFORMS["darwin"], "alice") == Path("/Users/alice/git/nix")
    assert default_config_dir(BUILTIN_PLATFORMS["linux"], "alice") == Path("/home/alice/git/nix")


def test_relative_config_dir_is_made_absolute(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    (tmp_path / "nix").mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("USER", "alice")
    monkeypatch.setenv("SWITCH_CONFIG_DIR", "nix")

    session = resolve_session(SwitchSettings(), BUILTIN_PLATFORMS["linux"])

    assert session.config_dir == (tmp_path / "nix").resolve()
    assert session.flake_target == f"{(tmp_path / 'nix').resolve()}#alice"


def test_get_settings_resolves_paths(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SWITCH_CONFIG_DIR", "nix")
    monkeypatch.setenv("SWITCH_PLATFORM_PATHS", "overrides")
    get_settings.cache_clear()
    try:
        settings = get_settings()
    finally:
        get_settings.cache_clear()

    assert settings.config_dir == tmp_path.resolve() / "nix"
    assert settings.platform_paths == (tmp_path.resolve() / "overrides",)
