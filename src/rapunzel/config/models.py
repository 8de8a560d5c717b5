"""Pydantic model for the per-user helper config file.

Sparse JSON contract: defaults baked here, the file only needs the keys the
user changed. Keys are camelCase on disk (``extensionFolder``) and
snake_case in Python (``extension_folder``).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel


class HelperConfig(BaseModel):
    """Contents of ``~/.rapunzel/config.json``.

    Frozen: ``set_folder`` replaces the instance via ``model_copy``. Unknown
    keys written by other tools are kept and round-trip on save.
    """

    model_config = {
        "frozen": True,
        "extra": "allow",
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    extension_folder: str = ""
    firefox_path: str = ""
    watch_enabled: bool = False

    @field_validator("extension_folder", "firefox_path", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def payload(self) -> dict[str, Any]:
        """Serialize with on-disk key names."""
        return self.model_dump(by_alias=True)
