"""In-memory record of loaded extensions.

Single writer: only :class:`~rapunzel.services.orchestrator.LoadOrchestrator`
mutates the registry, and only from the sequential dispatch loop, so there
is no lock. Parallelizing loads would require serializing these writes.

Never persisted. A helper restart forgets every record even though spawned
loaders may keep running.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime

from rapunzel.domain.types import LoadMethod


def normalize_path(path: str) -> str:
    """Registry key for *path*: absolute, user-expanded, no trailing separator."""
    return os.path.abspath(os.path.expanduser(path))


@dataclass
class LoadedExtensionRecord:
    """One loaded extension.

    ``process`` is a non-owning handle: the loader runs detached and may
    exit on its own at any time.
    """

    path: str
    method: LoadMethod
    process: subprocess.Popen[bytes] | None = None
    loaded_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    profile_path: str | None = None


class StateRegistry:
    """Mapping of normalized extension path to :class:`LoadedExtensionRecord`."""

    def __init__(self) -> None:
        self._records: dict[str, LoadedExtensionRecord] = {}

    def add(self, record: LoadedExtensionRecord) -> None:
        """Insert or replace the record for ``record.path``."""
        record.path = normalize_path(record.path)
        self._records[record.path] = record

    def get(self, path: str) -> LoadedExtensionRecord | None:
        return self._records.get(normalize_path(path))

    def remove(self, path: str) -> LoadedExtensionRecord | None:
        """Drop and return the record for *path*, or None if absent."""
        return self._records.pop(normalize_path(path), None)

    def __iter__(self) -> Iterator[LoadedExtensionRecord]:
        """Iterate a snapshot in load order, so callers may remove while looping."""
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)
