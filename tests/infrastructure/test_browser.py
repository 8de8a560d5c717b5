"""Tests for loader/browser discovery, loader spawning, and profile preparation."""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from rapunzel.domain.errors import PreparationFailed
from rapunzel.infrastructure import browser
from tests.conftest import make_extension


class TestFindLoader:
    def test_prefers_path(self, tmp_path: Path) -> None:
        with patch.object(browser.shutil, "which", return_value="/opt/bin/web-ext"):
            assert browser.find_loader("web-ext", tmp_path / "fallback") == "/opt/bin/web-ext"

    def test_falls_back_to_fixed_path(self, tmp_path: Path) -> None:
        fallback = tmp_path / "web-ext"
        fallback.write_text("", encoding="utf-8")
        with patch.object(browser.shutil, "which", return_value=None):
            assert browser.find_loader("web-ext", fallback) == str(fallback)

    def test_absent(self, tmp_path: Path) -> None:
        with patch.object(browser.shutil, "which", return_value=None):
            assert browser.find_loader("web-ext", tmp_path / "missing") is None

    def test_platform_fallbacks(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APPDATA", "C:/Users/me/AppData/Roaming")
        assert browser.default_loader_fallback("win32") == Path(
            "C:/Users/me/AppData/Roaming/npm/web-ext.cmd"
        )
        assert browser.default_loader_fallback("linux") == Path("/usr/local/bin/web-ext")


class TestFindBrowser:
    def test_configured_path_wins(self, tmp_path: Path) -> None:
        exe = tmp_path / "firefox"
        exe.write_text("", encoding="utf-8")
        assert browser.find_browser(str(exe)) == str(exe)

    def test_candidates_in_order(self, tmp_path: Path) -> None:
        first, second = tmp_path / "first", tmp_path / "second"
        second.write_text("", encoding="utf-8")
        first.write_text("", encoding="utf-8")
        with patch.object(browser, "browser_candidates", return_value=[first, second]):
            assert browser.find_browser(str(tmp_path / "configured-missing")) == str(first)

    def test_path_search_last(self, tmp_path: Path) -> None:
        with (
            patch.object(browser, "browser_candidates", return_value=[tmp_path / "nope"]),
            patch.object(browser.shutil, "which", return_value="/snap/firefox"),
        ):
            assert browser.find_browser() == "/snap/firefox"

    def test_not_found(self, tmp_path: Path) -> None:
        with (
            patch.object(browser, "browser_candidates", return_value=[tmp_path / "nope"]),
            patch.object(browser.shutil, "which", return_value=None),
        ):
            assert browser.find_browser() is None

    @pytest.mark.parametrize(
        ("platform", "expected_first"),
        [
            ("win32", "Mozilla Firefox"),
            ("darwin", "/Applications/Firefox.app"),
            ("linux", "/usr/bin/firefox"),
        ],
    )
    def test_candidate_lists(self, platform: str, expected_first: str) -> None:
        candidates = browser.browser_candidates(platform)
        assert expected_first in candidates[0].as_posix()


class TestSpawnLoader:
    def test_command_line(self) -> None:
        assert browser.loader_command("web-ext", "/ext/a") == [
            "web-ext",
            "run",
            "--source-dir",
            "/ext/a",
            "--no-reload",
            "--keep-profile-changes",
        ]
        assert browser.loader_command("web-ext", "/ext/a", browser="/ff")[-2:] == [
            "--firefox",
            "/ff",
        ]

    def test_detached_with_null_stdio(self) -> None:
        with patch.object(browser.subprocess, "Popen") as popen:
            browser.spawn_loader("web-ext", "/ext/a")
        _args, kwargs = popen.call_args
        assert kwargs["stdin"] is subprocess.DEVNULL
        assert kwargs["stdout"] is subprocess.DEVNULL
        assert kwargs["stderr"] is subprocess.DEVNULL
        if sys.platform == "win32":
            assert kwargs["creationflags"]
        else:
            assert kwargs["start_new_session"] is True

    def test_missing_binary_raises_oserror(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            browser.spawn_loader(str(tmp_path / "no-such-tool"), str(tmp_path))


class TestExtensionId:
    def test_browser_specific_settings(self) -> None:
        manifest = {"browser_specific_settings": {"gecko": {"id": "dark@example.org"}}}
        assert browser.extension_id(manifest) == "dark@example.org"

    def test_legacy_applications_key(self) -> None:
        manifest = {"applications": {"gecko": {"id": "{1234}"}}}
        assert browser.extension_id(manifest) == "{1234}"

    @pytest.mark.parametrize(
        "manifest",
        [
            {},
            {"browser_specific_settings": "nope"},
            {"browser_specific_settings": {"gecko": {"id": ""}}},
            {"browser_specific_settings": {"gecko": {"id": "../escape"}}},
        ],
    )
    def test_placeholder(self, manifest: dict[str, object]) -> None:
        assert browser.extension_id(manifest) == "temp-extension"


class TestPrepareProfile:
    def test_user_prefs(self) -> None:
        rendered = browser.render_user_prefs()
        assert 'user_pref("xpinstall.signatures.required", false);' in rendered
        assert 'user_pref("extensions.autoDisableScopes", 0);' in rendered
        assert 'user_pref("extensions.enabledScopes", 15);' in rendered

    def test_copies_extension_tree(self, tmp_path: Path, ext_root: Path) -> None:
        manifest = {"name": "A", "browser_specific_settings": {"gecko": {"id": "a@x"}}}
        ext = make_extension(
            ext_root, "a", manifest, files={"content/main.js": "console.log(1)"}
        )
        profile = browser.prepare_profile(
            ext, manifest, prefix="test-profile-", parent=tmp_path / "profiles"
        )
        assert profile.parent == tmp_path / "profiles"
        assert profile.name.startswith("test-profile-")
        assert "xpinstall.signatures.required" in (profile / "user.js").read_text(
            encoding="utf-8"
        )
        copied = profile / "extensions" / "a@x"
        assert json.loads((copied / "manifest.json").read_text(encoding="utf-8")) == manifest
        assert (copied / "content" / "main.js").read_text(encoding="utf-8") == "console.log(1)"

    def test_fresh_directory_each_time(self, tmp_path: Path, ext_root: Path) -> None:
        ext = make_extension(ext_root, "a", {"name": "A"})
        first = browser.prepare_profile(ext, {}, parent=tmp_path / "profiles")
        second = browser.prepare_profile(ext, {}, parent=tmp_path / "profiles")
        assert first != second

    def test_copy_failure_cleans_up(self, tmp_path: Path, ext_root: Path) -> None:
        ext = make_extension(ext_root, "a", {"name": "A"})
        parent = tmp_path / "profiles"
        with (
            patch.object(browser.shutil, "copytree", side_effect=OSError("disk full")),
            pytest.raises(PreparationFailed, match="disk full"),
        ):
            browser.prepare_profile(ext, {}, parent=parent)
        assert list(parent.iterdir()) == []

    def test_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(PreparationFailed):
            browser.prepare_profile(tmp_path / "gone", {}, parent=tmp_path / "profiles")
