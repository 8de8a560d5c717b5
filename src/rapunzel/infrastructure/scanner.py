"""Discover candidate extensions in a folder.

A candidate is an immediate subdirectory holding a ``manifest.json``.
Validation stops at "the manifest parses as a JSON object": permissions,
icons and scripts are the browser's business.

INVARIANT: one bad entry never aborts a scan. A missing or unreadable
folder yields an empty result, not an error.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from rapunzel.domain.errors import InvalidManifest
from rapunzel.domain.extensions import ExtensionDescriptor, ScanReport, SkippedEntry

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"


def read_manifest(ext_dir: Path) -> dict[str, Any]:
    """Parse ``manifest.json`` in *ext_dir*.

    Raises :class:`InvalidManifest` if the file is missing, unreadable, not
    JSON, or not a JSON object.
    """
    manifest_path = ext_dir / MANIFEST_FILENAME
    try:
        # utf-8-sig: manifests saved by Windows editors often carry a BOM.
        raw = manifest_path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        msg = f"No {MANIFEST_FILENAME} in {ext_dir}"
        raise InvalidManifest(msg) from exc
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read {manifest_path}: {exc}"
        raise InvalidManifest(msg) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"Invalid manifest in {ext_dir}: {exc}"
        raise InvalidManifest(msg) from exc

    if not isinstance(data, dict):
        msg = f"Manifest in {ext_dir} is not a JSON object"
        raise InvalidManifest(msg)
    return data


def scan_report(folder: str | Path | None) -> ScanReport:
    """Walk *folder* and classify every manifest-bearing subdirectory.

    Entries appear in directory-listing order, which is platform dependent.
    """
    if not folder:
        return ScanReport()
    root = Path(os.path.abspath(folder))
    if not root.is_dir():
        return ScanReport()

    try:
        with os.scandir(root) as it:
            entries = list(it)
    except OSError as exc:
        logger.warning("Failed to scan folder %s: %s", root, exc)
        return ScanReport()

    found: list[ExtensionDescriptor | SkippedEntry] = []
    for entry in entries:
        try:
            if not entry.is_dir():
                continue
        except OSError:
            continue
        ext_dir = root / entry.name
        if not (ext_dir / MANIFEST_FILENAME).is_file():
            continue
        try:
            manifest = read_manifest(ext_dir)
        except InvalidManifest as exc:
            logger.warning("Skipping %s: %s", ext_dir, exc)
            found.append(SkippedEntry(path=str(ext_dir), folder=entry.name, reason=str(exc)))
            continue
        found.append(ExtensionDescriptor.from_manifest(ext_dir, manifest))

    report = ScanReport(entries=found)
    logger.debug(
        "Scanned %s: %d extensions, %d skipped", root, len(report.extensions), len(report.skipped)
    )
    return report


def scan(folder: str | Path | None) -> list[ExtensionDescriptor]:
    """Return descriptors for every valid extension in *folder*."""
    return scan_report(folder).extensions
