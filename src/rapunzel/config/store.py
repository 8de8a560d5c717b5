"""Load and persist :class:`HelperConfig` as a JSON file.

INVARIANT: config problems never fail the caller. Unreadable or invalid
files degrade to defaults, failed writes leave the in-memory config intact.
Both are logged to stderr.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from rapunzel.config.models import HelperConfig

logger = logging.getLogger(__name__)


class ConfigStore:
    """File-backed store for the helper config."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> HelperConfig:
        """Read the config file, merging persisted keys over defaults."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return HelperConfig()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read config %s: %s", self._path, exc)
            return HelperConfig()

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring invalid config %s: %s", self._path, exc)
            return HelperConfig()
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: not a JSON object", self._path)
            return HelperConfig()
        return self._validate(data)

    def _validate(self, data: dict[str, Any]) -> HelperConfig:
        """Validate *data*, dropping only the keys whose values are invalid."""
        try:
            return HelperConfig.model_validate(data)
        except ValidationError as exc:
            bad_keys = {err["loc"][0] for err in exc.errors() if err["loc"]}
        logger.warning(
            "Config %s: invalid values for %s, using defaults for them",
            self._path,
            ", ".join(sorted(map(str, bad_keys))),
        )
        kept = {key: value for key, value in data.items() if key not in bad_keys}
        try:
            return HelperConfig.model_validate(kept)
        except ValidationError as exc:
            logger.warning("Ignoring invalid config %s: %s", self._path, exc)
            return HelperConfig()

    def save(self, config: HelperConfig) -> bool:
        """Atomically write *config*. Returns False if the write failed."""
        content = json.dumps(config.payload(), indent=2, ensure_ascii=False) + "\n"
        tmp_path: Path | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            os.replace(tmp_path, self._path)
        except OSError as exc:
            logger.warning("Could not save config %s: %s", self._path, exc)
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink(missing_ok=True)
            return False
        return True

    def load_or_create(self) -> HelperConfig:
        """Load the config, writing defaults first if no file exists yet."""
        config = self.load()
        if not self._path.exists():
            self.save(config)
        return config
