"""Request and response tags for the native messaging protocol.

Requests are keyed by ``action``, responses by ``type``. Every request
yields exactly one response.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from rapunzel.domain.types import ErrorCode


class Action(StrEnum):
    """Closed set of request actions the helper understands."""

    STATUS = "status"
    SCAN = "scan"
    SET_FOLDER = "set_folder"
    LOAD = "load"
    LOAD_ALL = "load_all"
    UNLOAD = "unload"
    UNLOAD_ALL = "unload_all"


class ResponseType(StrEnum):
    STATUS = "status"
    EXTENSIONS_LIST = "extensions_list"
    FOLDER_SET = "folder_set"
    LOAD_RESULT = "load_result"
    LOAD_ALL_RESULT = "load_all_result"
    UNLOAD_RESULT = "unload_result"
    UNLOAD_ALL_RESULT = "unload_all_result"
    ERROR = "error"


class Request(BaseModel):
    """Inbound request. ``action`` stays a plain string so unknown values
    can be reported as ``UnknownAction`` rather than failing validation."""

    model_config = {"frozen": True, "extra": "ignore"}

    action: str
    path: str | None = None


class InvalidRequest(Exception):
    """A request is structurally valid JSON but unusable for its action."""


def response(kind: ResponseType, **fields: Any) -> dict[str, Any]:
    """Build a response payload tagged with ``type``."""
    return {"type": kind.value, **fields}


def error_response(code: ErrorCode, message: str) -> dict[str, Any]:
    return response(ResponseType.ERROR, code=code.value, error=message)
