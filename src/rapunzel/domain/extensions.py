"""Extension descriptors produced by folder scans.

Descriptors are ephemeral: recomputed on every scan and never persisted.
``path`` is the uniqueness key.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

DEFAULT_VERSION = "0.0.0"
DEFAULT_MANIFEST_VERSION = 2


class ExtensionDescriptor(BaseModel):
    """A scanned extension whose manifest parsed as a JSON object."""

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    name: str
    version: str = DEFAULT_VERSION
    description: str = ""
    path: str
    folder: str
    manifest_version: int = DEFAULT_MANIFEST_VERSION

    @classmethod
    def from_manifest(cls, ext_dir: Path, manifest: dict[str, Any]) -> ExtensionDescriptor:
        """Build a descriptor, falling back to defaults for missing keys."""
        manifest_version = manifest.get("manifest_version")
        if not isinstance(manifest_version, int) or isinstance(manifest_version, bool):
            manifest_version = DEFAULT_MANIFEST_VERSION
        return cls(
            name=str(manifest.get("name") or ext_dir.name),
            version=str(manifest.get("version") or DEFAULT_VERSION),
            description=str(manifest.get("description") or ""),
            path=str(ext_dir),
            folder=ext_dir.name,
            manifest_version=manifest_version,
        )

    def payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class SkippedEntry(BaseModel):
    """A candidate directory whose manifest exists but could not be used."""

    model_config = {"frozen": True}

    path: str
    folder: str
    reason: str


class ScanReport(BaseModel):
    """Full result of one folder walk.

    ``entries`` holds usable descriptors and rejects together, in
    directory-listing order.
    """

    model_config = {"frozen": True}

    entries: list[ExtensionDescriptor | SkippedEntry] = Field(default_factory=list)

    @property
    def extensions(self) -> list[ExtensionDescriptor]:
        return [e for e in self.entries if isinstance(e, ExtensionDescriptor)]

    @property
    def skipped(self) -> list[SkippedEntry]:
        return [e for e in self.entries if isinstance(e, SkippedEntry)]

    @property
    def total(self) -> int:
        """Number of candidate directories that carried a manifest."""
        return len(self.entries)
