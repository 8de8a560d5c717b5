"""Process settings: CLI flags, env vars, and code defaults in one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``RAPUNZEL_*`` prefix
  3. Code defaults

These govern how the helper process runs (where the config file lives,
which loader tool to look for, log format). The user-editable extension
settings live in :class:`~rapunzel.config.models.HelperConfig`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings

CONFIG_DIRNAME = ".rapunzel"
CONFIG_FILENAME = "config.json"


def default_config_path() -> Path:
    """Fixed per-user config location: ``~/.rapunzel/config.json``."""
    return Path.home() / CONFIG_DIRNAME / CONFIG_FILENAME


class HostSettings(BaseSettings):
    """Frozen settings for one helper process.

    Attributes:
        config_path: Location of the JSON config file.
        loader_command: Name of the external loader tool searched on PATH.
        loader_fallback: Explicit fallback location for the loader tool;
            None uses the per-platform default.
        profile_dir: Parent directory for temporary browser profiles;
            None uses the system temp directory.
        profile_prefix: Name prefix for temporary profile directories.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "RAPUNZEL_",
    }

    config_path: Path = Field(default_factory=default_config_path)
    verbose: bool = False
    log_json: bool = False

    loader_command: str = "web-ext"
    loader_fallback: Path | None = None
    profile_dir: Path | None = None
    profile_prefix: str = "rapunzel-profile-"

    @classmethod
    def from_cli(cls, *, config_path: str | None = None, **cli_flags: Any) -> HostSettings:
        """Construct settings from a CLI invocation.

        Unset flags (None or False) are dropped so they fall through to env
        vars and defaults instead of masking them.
        """
        overrides = {key: value for key, value in cli_flags.items() if value}
        if config_path:
            overrides["config_path"] = Path(config_path).expanduser()
        return cls(**overrides)
