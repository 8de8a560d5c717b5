"""Result values returned by the load orchestrator.

INVARIANT: load and unload never raise for domain failures. They return
one of these models with ``success=False`` plus a ``code`` and ``error``.
The dispatcher turns them into response payloads via ``payload()``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from rapunzel.domain.types import ErrorCode, LoadMethod


class _WireModel(BaseModel):
    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    def payload(self) -> dict[str, Any]:
        """camelCase dict without unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class LoadResult(_WireModel):
    """Outcome of loading one extension.

    Attributes:
        success: Whether a load strategy completed.
        path: The path as requested.
        method: Strategy used on success.
        extension_name: Manifest name (or folder name) of the bundle.
        profile_path: Prepared profile directory (profile method only).
        note: Human-readable caveat about the load's guarantees.
        code: Failure code when ``success`` is False.
        error: Failure message when ``success`` is False.
    """

    success: bool
    path: str
    method: LoadMethod | None = None
    extension_name: str | None = None
    profile_path: str | None = None
    note: str | None = None
    code: ErrorCode | None = None
    error: str | None = None


class UnloadResult(_WireModel):
    success: bool
    path: str
    code: ErrorCode | None = None
    error: str | None = None


class LoadAllResult(BaseModel):
    """Per-item results of a bulk load, in processing order."""

    model_config = {"frozen": True}

    results: list[LoadResult] = Field(default_factory=list)

    @property
    def total_loaded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def total_failed(self) -> int:
        return len(self.results) - self.total_loaded

    def payload(self) -> dict[str, Any]:
        items = [{"name": r.extension_name, **r.payload()} for r in self.results]
        return {
            "results": items,
            "totalLoaded": self.total_loaded,
            "totalFailed": self.total_failed,
        }


class UnloadAllResult(BaseModel):
    """Per-item results of a bulk unload, in registry order."""

    model_config = {"frozen": True}

    results: list[UnloadResult] = Field(default_factory=list)

    @property
    def total_unloaded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def total_failed(self) -> int:
        return len(self.results) - self.total_unloaded

    def payload(self) -> dict[str, Any]:
        return {
            "results": [r.payload() for r in self.results],
            "totalUnloaded": self.total_unloaded,
            "totalFailed": self.total_failed,
        }
