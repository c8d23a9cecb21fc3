"""Settings schema for AppMenu."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, field_validator

DEFAULT_ROOT_PATH = "/Applications"
SYSTEM_ROOT_PATH = "/System/Applications"


class AppMenuSettings(BaseModel):
    schema_version: int = Field(default=1)
    root_path: str = Field(default="", description="Folder to mirror; empty means the default applications folder")
    ignoring_parens: bool = Field(default=False, description="Skip folders named like '(Old Stuff)'")

    @field_validator("root_path")
    @classmethod
    def expand_root(cls, value: str) -> str:
        value = value.strip()
        if not value:
            return ""
        return os.path.expanduser(value)

    def effective_root_path(self) -> str:
        return self.root_path or DEFAULT_ROOT_PATH

    def secondary_root_path(self) -> str:
        return secondary_root_for(self.effective_root_path())

    def setting_items(self) -> list[tuple[str, str]]:
        return [(key, str(value)) for key, value in self.model_dump().items()]


def secondary_root_for(root_path: str) -> str:
    """Since Catalina some bundled apps live beside /Applications in a second folder."""
    if root_path.rstrip("/") == DEFAULT_ROOT_PATH:
        return SYSTEM_ROOT_PATH
    return ""
