"""Load/save AppMenu settings."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from appmenu.config.models import AppMenuSettings
from appmenu.paths import settings_path
from appmenu.runtime_logging import get_runtime_logger


class SettingsStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = path or settings_path()
        self._logger = get_runtime_logger(component="settings")

    def load(self) -> AppMenuSettings:
        if not self.path.exists():
            settings = AppMenuSettings()
            self.save(settings)
            return settings

        raw = self.path.read_text(encoding="utf-8")
        try:
            return AppMenuSettings.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            # Keep the unreadable payload next to the fresh defaults.
            backup = self.path.with_suffix(".corrupt.json")
            backup.write_text(raw, encoding="utf-8")
            self._logger.warning("settings.load.corrupt", path=str(self.path), error=str(exc))
            settings = AppMenuSettings()
            self.save(settings)
            return settings

    def save(self, settings: AppMenuSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(settings.model_dump(mode="json"), indent=2, sort_keys=True)
        self.path.write_text(f"{payload}\n", encoding="utf-8")

    def update(self, key: str, value: Any) -> AppMenuSettings:
        data = self.load().model_dump()
        if key not in data:
            raise KeyError(f"Unknown setting: {key}")
        data[key] = value

        updated = AppMenuSettings.model_validate(data)
        self.save(updated)
        self._logger.info("settings.updated", key=key)
        return updated
