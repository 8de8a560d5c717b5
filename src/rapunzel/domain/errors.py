"""Domain exceptions raised below the orchestrator boundary.

INVARIANT: none of these escape :class:`~rapunzel.services.orchestrator.LoadOrchestrator`.
The orchestrator converts them into ``success: false`` result values.
"""

from __future__ import annotations

from rapunzel.domain.types import ErrorCode


class ExtensionError(Exception):
    """Base for load/unload failures. Subclasses pin a wire ``code``."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR


class InvalidManifest(ExtensionError):
    """The bundle has no readable ``manifest.json`` or it is not a JSON object."""

    code = ErrorCode.INVALID_MANIFEST


class LoaderUnavailable(ExtensionError):
    """Neither the external loader tool nor a browser executable could be used."""

    code = ErrorCode.LOADER_UNAVAILABLE


class PreparationFailed(ExtensionError):
    """Filesystem failure while materializing a temporary browser profile."""

    code = ErrorCode.PREPARATION_FAILED
