"""Locate the loader tool and browser, spawn loaders, prepare profiles.

Two ways to get an extension into Firefox:

- ``web-ext run`` injects it into a browser instance as a temporary add-on.
  The helper spawns it detached and never waits on it.
- Without ``web-ext``, a throwaway profile is prepared on disk with
  signature enforcement relaxed and the extension copied in. Nothing is
  launched; the profile is only ready for a subsequent manual start.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Any

from rapunzel.domain.errors import PreparationFailed

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION_ID = "temp-extension"

# Written to user.js of prepared profiles.
PROFILE_PREFERENCES: dict[str, Any] = {
    "extensions.autoDisableScopes": 0,
    "extensions.enabledScopes": 15,
    "xpinstall.signatures.required": False,
    "devtools.chrome.enabled": True,
    "devtools.debugger.remote-enabled": True,
}


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def default_loader_fallback(platform: str = sys.platform) -> Path:
    """Where a global npm install puts ``web-ext`` when PATH misses it."""
    if platform == "win32":
        appdata = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "npm" / "web-ext.cmd"
    return Path("/usr/local/bin/web-ext")


def find_loader(command: str = "web-ext", fallback: Path | None = None) -> str | None:
    """Search PATH for *command*, then the fixed fallback location."""
    found = shutil.which(command)
    if found:
        return found
    candidate = fallback or default_loader_fallback()
    if candidate.is_file():
        return str(candidate)
    return None


def browser_candidates(platform: str = sys.platform) -> list[Path]:
    """Ordered install locations to check for a Firefox executable."""
    if platform == "win32":
        return [
            Path("C:/Program Files/Mozilla Firefox/firefox.exe"),
            Path("C:/Program Files (x86)/Mozilla Firefox/firefox.exe"),
            Path.home() / "AppData" / "Local" / "Mozilla Firefox" / "firefox.exe",
        ]
    if platform == "darwin":
        return [
            Path("/Applications/Firefox.app/Contents/MacOS/firefox"),
            Path("/Applications/Firefox Developer Edition.app/Contents/MacOS/firefox"),
            Path("/Applications/Firefox Nightly.app/Contents/MacOS/firefox"),
        ]
    return [
        Path("/usr/bin/firefox"),
        Path("/usr/local/bin/firefox"),
        Path("/snap/bin/firefox"),
        Path("/usr/bin/firefox-developer-edition"),
    ]


def find_browser(configured: str = "") -> str | None:
    """Return a Firefox executable: configured path, candidates, then PATH."""
    if configured and Path(configured).is_file():
        return configured
    for candidate in browser_candidates():
        if candidate.is_file():
            return str(candidate)
    return shutil.which("firefox")


# ---------------------------------------------------------------------------
# External loader
# ---------------------------------------------------------------------------


def loader_command(tool: str, source_dir: str, *, browser: str | None = None) -> list[str]:
    """Argument vector for ``web-ext run`` against *source_dir*."""
    args = [tool, "run", "--source-dir", source_dir, "--no-reload", "--keep-profile-changes"]
    if browser:
        args += ["--firefox", browser]
    return args


def spawn_loader(
    tool: str, source_dir: str, *, browser: str | None = None
) -> subprocess.Popen[bytes]:
    """Start the loader detached from the helper. Raises OSError on spawn failure.

    The child gets the null device for all stdio: inheriting stdout would
    interleave its output with protocol frames.
    """
    kwargs: dict[str, Any] = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "close_fds": True,
    }
    if sys.platform == "win32":
        kwargs["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True
    return subprocess.Popen(loader_command(tool, source_dir, browser=browser), **kwargs)


# ---------------------------------------------------------------------------
# Profile preparation
# ---------------------------------------------------------------------------


def extension_id(manifest: dict[str, Any]) -> str:
    """Gecko add-on id from the manifest, or a generic placeholder."""
    for key in ("browser_specific_settings", "applications"):
        section = manifest.get(key)
        if not isinstance(section, dict):
            continue
        gecko = section.get("gecko")
        if not isinstance(gecko, dict):
            continue
        ext_id = gecko.get("id")
        if isinstance(ext_id, str) and ext_id and not any(sep in ext_id for sep in "/\\"):
            return ext_id
    return DEFAULT_EXTENSION_ID


def render_user_prefs(prefs: dict[str, Any] | None = None) -> str:
    """Render preferences as ``user.js`` lines."""
    prefs = PROFILE_PREFERENCES if prefs is None else prefs
    return "".join(f"user_pref({json.dumps(k)}, {json.dumps(v)});\n" for k, v in prefs.items())


def prepare_profile(
    source_dir: Path,
    manifest: dict[str, Any],
    *,
    prefix: str = "rapunzel-profile-",
    parent: Path | None = None,
) -> Path:
    """Materialize a fresh profile holding a copy of *source_dir*.

    Returns the profile directory. On any filesystem failure the partial
    profile is removed and :class:`PreparationFailed` is raised.
    """
    try:
        if parent is not None:
            parent.mkdir(parents=True, exist_ok=True)
        profile = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))
    except OSError as exc:
        msg = f"Could not create temporary profile: {exc}"
        raise PreparationFailed(msg) from exc

    destination = profile / "extensions" / extension_id(manifest)
    try:
        (profile / "user.js").write_text(render_user_prefs(), encoding="utf-8")
        shutil.copytree(source_dir, destination)
    except OSError as exc:
        shutil.rmtree(profile, ignore_errors=True)
        msg = f"Could not copy {source_dir} into profile: {exc}"
        raise PreparationFailed(msg) from exc

    logger.debug("Prepared profile %s with %s", profile, destination.name)
    return profile
