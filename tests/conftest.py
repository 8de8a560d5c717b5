"""Shared pytest fixtures and test helpers for rapunzel tests."""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from rapunzel.config.settings import HostSettings
from rapunzel.host.context import HostContext
from rapunzel.services import orchestrator as orchestrator_module


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo configure_logging() calls made by CLI invocations."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    app = logging.getLogger("rapunzel")
    app_level = app.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    app.setLevel(app_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Config file location inside the test's temp dir (not created)."""
    return tmp_path / "home" / ".rapunzel" / "config.json"


@pytest.fixture
def settings(tmp_path: Path, config_path: Path) -> HostSettings:
    return HostSettings(
        config_path=config_path,
        loader_fallback=tmp_path / "missing-web-ext",
        profile_dir=tmp_path / "profiles",
    )


@pytest.fixture
def host(settings: HostSettings) -> HostContext:
    """Fresh process context with no config file on disk."""
    return HostContext(settings)


@pytest.fixture
def ext_root(tmp_path: Path) -> Path:
    root = tmp_path / "extensions"
    root.mkdir()
    return root


class FakeTools:
    """Stand-in for loader/browser discovery and loader spawning.

    Set ``loader`` and ``browser`` to simulate what is installed. Spawned
    processes are MagicMocks recorded in ``spawned``.
    """

    def __init__(self) -> None:
        self.loader: str | None = None
        self.browser: str | None = None
        self.spawn_error: OSError | None = None
        self.spawned: list[dict[str, Any]] = []

    def find_loader(self, command: str = "web-ext", fallback: Path | None = None) -> str | None:
        return self.loader

    def find_browser(self, configured: str = "") -> str | None:
        return self.browser

    def spawn_loader(
        self, tool: str, source_dir: str, *, browser: str | None = None
    ) -> subprocess.Popen[bytes]:
        if self.spawn_error is not None:
            raise self.spawn_error
        process = MagicMock(spec=subprocess.Popen)
        process.pid = 4000 + len(self.spawned)
        process.poll.return_value = None
        self.spawned.append(
            {"tool": tool, "source_dir": source_dir, "browser": browser, "process": process}
        )
        return process


@pytest.fixture(autouse=True)
def tools(monkeypatch: pytest.MonkeyPatch) -> FakeTools:
    """Keep every test away from real web-ext / firefox binaries."""
    fake = FakeTools()
    monkeypatch.setattr(orchestrator_module, "find_loader", fake.find_loader)
    monkeypatch.setattr(orchestrator_module, "find_browser", fake.find_browser)
    monkeypatch.setattr(orchestrator_module, "spawn_loader", fake.spawn_loader)
    return fake


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def make_extension(
    root: Path,
    folder: str,
    manifest: dict[str, Any] | str | None = None,
    *,
    files: dict[str, str] | None = None,
) -> Path:
    """Create an extension directory under *root*.

    *manifest* may be a dict (written as JSON), a raw string (written
    verbatim, e.g. to simulate corruption), or None for no manifest.
    """
    ext_dir = root / folder
    ext_dir.mkdir(parents=True)
    if isinstance(manifest, dict):
        (ext_dir / "manifest.json").write_text(json.dumps(manifest), encoding="utf-8")
    elif isinstance(manifest, str):
        (ext_dir / "manifest.json").write_text(manifest, encoding="utf-8")
    for name, content in (files or {}).items():
        target = ext_dir / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return ext_dir
