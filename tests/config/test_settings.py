"""Tests for HostSettings: CLI flags over env vars over defaults."""

from __future__ import annotations

from pathlib import Path

import pytest

from rapunzel.config.settings import HostSettings, default_config_path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "RAPUNZEL_CONFIG_PATH",
        "RAPUNZEL_VERBOSE",
        "RAPUNZEL_LOG_JSON",
        "RAPUNZEL_LOADER_COMMAND",
        "RAPUNZEL_PROFILE_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_all_defaults(self) -> None:
        settings = HostSettings.from_cli()
        assert settings.config_path == default_config_path()
        assert settings.verbose is False
        assert settings.log_json is False
        assert settings.loader_command == "web-ext"
        assert settings.loader_fallback is None
        assert settings.profile_dir is None
        assert settings.profile_prefix == "rapunzel-profile-"

    def test_default_config_location(self) -> None:
        assert default_config_path() == Path.home() / ".rapunzel" / "config.json"

    def test_frozen(self) -> None:
        settings = HostSettings.from_cli()
        with pytest.raises(Exception):
            settings.verbose = True  # type: ignore[misc]


class TestPriority:
    def test_env_vars(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("RAPUNZEL_CONFIG_PATH", str(tmp_path / "env.json"))
        monkeypatch.setenv("RAPUNZEL_LOADER_COMMAND", "web-ext-nightly")
        settings = HostSettings.from_cli()
        assert settings.config_path == tmp_path / "env.json"
        assert settings.loader_command == "web-ext-nightly"

    def test_cli_config_beats_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("RAPUNZEL_CONFIG_PATH", str(tmp_path / "env.json"))
        settings = HostSettings.from_cli(config_path=str(tmp_path / "cli.json"))
        assert settings.config_path == tmp_path / "cli.json"

    def test_unset_flag_does_not_mask_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RAPUNZEL_VERBOSE", "1")
        settings = HostSettings.from_cli(verbose=False, log_json=False)
        assert settings.verbose is True

    def test_set_flag(self) -> None:
        assert HostSettings.from_cli(log_json=True).log_json is True
