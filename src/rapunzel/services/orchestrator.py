"""LoadOrchestrator: bring one extension to "loaded" or "unloaded".

Strategies, tried in order:

1. External loader (``web-ext``): spawned detached, success declared as soon
   as the spawn call returns.
2. Profile preparation: only when the loader tool is absent. Prepares a
   temporary profile on disk; the extension is not live until a browser is
   started with it.

Both strategies record the load in the :class:`StateRegistry`; only the
external loader leaves a process handle to terminate on unload.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rapunzel.domain.errors import ExtensionError, LoaderUnavailable
from rapunzel.domain.extensions import ScanReport, SkippedEntry
from rapunzel.domain.types import ErrorCode, LoadMethod
from rapunzel.infrastructure.browser import (
    find_browser,
    find_loader,
    prepare_profile,
    spawn_loader,
)
from rapunzel.infrastructure.scanner import read_manifest
from rapunzel.services.registry import LoadedExtensionRecord, StateRegistry, normalize_path
from rapunzel.services.result import LoadAllResult, LoadResult, UnloadAllResult, UnloadResult

if TYPE_CHECKING:
    import subprocess

    from rapunzel.config.models import HelperConfig
    from rapunzel.config.settings import HostSettings

logger = logging.getLogger(__name__)

PROFILE_NOTE = (
    "Extension prepared in a temporary profile; start Firefox with this profile to use it"
)


class LoadOrchestrator:
    """Sole writer of the :class:`StateRegistry`.

    Usage::

        orchestrator = LoadOrchestrator(registry, settings)
        result = orchestrator.load("/ext/a", config)
        if not result.success:
            ...  # result.code, result.error
    """

    def __init__(self, registry: StateRegistry, settings: HostSettings) -> None:
        self._registry = registry
        self._settings = settings

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def locate_loader(self) -> str | None:
        return find_loader(self._settings.loader_command, self._settings.loader_fallback)

    def locate_browser(self, config: HelperConfig) -> str | None:
        return find_browser(config.firefox_path)

    # ------------------------------------------------------------------
    # Single-item operations
    # ------------------------------------------------------------------

    def load(self, path: str, config: HelperConfig) -> LoadResult:
        """Load the extension at *path*. Never raises for domain failures.

        Loading a path that is already loaded replaces its record: the
        previous loader is terminated first.
        """
        key = normalize_path(path)
        try:
            manifest = read_manifest(Path(key))
            if self._registry.get(key) is not None:
                logger.info("Reloading %s", key)
                self.unload(key)
            record = self._load(key, manifest, config)
        except ExtensionError as exc:
            logger.warning("Load failed for %s: %s", key, exc)
            return LoadResult(success=False, path=path, code=exc.code, error=str(exc))

        self._registry.add(record)
        logger.info("Loaded %s via %s", key, record.method)
        return LoadResult(
            success=True,
            path=path,
            method=record.method,
            extension_name=str(manifest.get("name") or Path(key).name),
            profile_path=record.profile_path,
            note=PROFILE_NOTE if record.method is LoadMethod.PROFILE else None,
        )

    def unload(self, path: str) -> UnloadResult:
        """Forget *path*, terminating its loader if one is tracked.

        An unknown path is a routine outcome (``NotLoaded``), not a fault.
        """
        record = self._registry.remove(path)
        if record is None:
            return UnloadResult(
                success=False,
                path=path,
                code=ErrorCode.NOT_LOADED,
                error="Extension not found in loaded list",
            )
        if record.process is not None:
            _terminate(record.process)
        logger.info("Unloaded %s", record.path)
        return UnloadResult(success=True, path=path)

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def load_all(self, report: ScanReport, config: HelperConfig) -> LoadAllResult:
        """Load every scanned extension sequentially.

        Entries the scan rejected are reported as failures in their listing
        position, so results line up one-to-one with the scanned candidates.
        """
        results: list[LoadResult] = []
        for entry in report.entries:
            if isinstance(entry, SkippedEntry):
                results.append(
                    LoadResult(
                        success=False,
                        path=entry.path,
                        extension_name=entry.folder,
                        code=ErrorCode.INVALID_MANIFEST,
                        error=entry.reason,
                    )
                )
                continue
            result = self.load(entry.path, config)
            results.append(result.model_copy(update={"extension_name": entry.name}))
        return LoadAllResult(results=results)

    def unload_all(self) -> UnloadAllResult:
        """Unload a snapshot of every tracked path."""
        return UnloadAllResult(results=[self.unload(record.path) for record in self._registry])

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _load(
        self, key: str, manifest: dict[str, Any], config: HelperConfig
    ) -> LoadedExtensionRecord:
        tool = self.locate_loader()
        if tool is not None:
            return self._spawn(tool, key, config)

        browser = self.locate_browser(config)
        if browser is None:
            msg = "Neither web-ext nor a Firefox executable was found"
            raise LoaderUnavailable(msg)

        profile = prepare_profile(
            Path(key),
            manifest,
            prefix=self._settings.profile_prefix,
            parent=self._settings.profile_dir,
        )
        return LoadedExtensionRecord(
            path=key, method=LoadMethod.PROFILE, profile_path=str(profile)
        )

    def _spawn(self, tool: str, key: str, config: HelperConfig) -> LoadedExtensionRecord:
        # Only pin the browser when the user configured one explicitly.
        browser: str | None = None
        if config.firefox_path and Path(config.firefox_path).is_file():
            browser = config.firefox_path
        try:
            process = spawn_loader(tool, key, browser=browser)
        except OSError as exc:
            msg = f"Could not start {tool}: {exc}"
            raise LoaderUnavailable(msg) from exc
        logger.debug("Spawned %s (pid %s) for %s", tool, process.pid, key)
        return LoadedExtensionRecord(path=key, method=LoadMethod.EXTERNAL_LOADER, process=process)


def _terminate(process: subprocess.Popen[bytes]) -> None:
    """Best-effort terminate. The loader may already have exited."""
    try:
        if process.poll() is None:
            process.terminate()
    except OSError as exc:
        logger.debug("Terminating pid %s failed: %s", process.pid, exc)
