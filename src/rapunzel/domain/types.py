"""Load methods and wire-level error codes.

Both enums serialize to the exact strings the browser-side UI reads, so
members can be dropped straight into response payloads.
"""

from __future__ import annotations

from enum import StrEnum


class LoadMethod(StrEnum):
    """How an extension was brought to the "loaded" state."""

    EXTERNAL_LOADER = "web-ext"
    PROFILE = "profile"


class ErrorCode(StrEnum):
    """Stable ``code`` values carried by failed results and error frames."""

    # Framing
    FRAME_EMPTY = "FrameEmpty"
    FRAME_TOO_LARGE = "FrameTooLarge"
    MALFORMED_BODY = "MalformedBody"

    # Requests
    INVALID_REQUEST = "InvalidRequest"
    UNKNOWN_ACTION = "UnknownAction"
    INTERNAL_ERROR = "InternalError"

    # Load / unload
    INVALID_MANIFEST = "InvalidManifest"
    LOADER_UNAVAILABLE = "LoaderUnavailable"
    PREPARATION_FAILED = "PreparationFailed"
    NOT_LOADED = "NotLoaded"
