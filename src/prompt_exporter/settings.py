"""Persistent extension settings.

Settings live in a flat JSON key-value file shared by all extensions of the
host; this extension reads and writes only the entry under its own name.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import EXTENSION_NAME
from .errors import ConfigError
from .logging import get_logger

logger = get_logger(__name__)

ENV_SETTINGS_PATH = "PROMPT_EXPORTER_SETTINGS"
HOME_SETTINGS_PATH = Path.home() / ".prompt-exporter" / "extension_settings.json"

SETTING_KEYS = ("enabled", "auto_export", "debug_mode")


class ExporterSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    enabled: bool = True
    auto_export: bool = Field(default=False, alias="autoExport")
    debug_mode: bool = Field(default=False, alias="debugMode")

    def to_record(self) -> dict[str, bool]:
        return self.model_dump(by_alias=True)


def resolve_settings_path(path: str | Path | None = None) -> Path:
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get(ENV_SETTINGS_PATH)
    if env_path and env_path.strip():
        return Path(env_path.strip()).expanduser()
    return HOME_SETTINGS_PATH


class SettingsStore:
    """Key-value settings file keyed by extension name."""

    def __init__(self, path: Path, *, key: str = EXTENSION_NAME) -> None:
        self.path = path
        self.key = key
        self._settings: ExporterSettings | None = None

    @property
    def current(self) -> ExporterSettings:
        if self._settings is None:
            self._settings = self.load_or_init()
        return self._settings

    def _read_all(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise ConfigError(f"Failed to read settings file {self.path}: {e}") from e
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Malformed JSON in {self.path}: {e}") from None
        if not isinstance(data, dict):
            raise ConfigError(
                f"Invalid settings file {self.path}; expected a JSON object."
            )
        return data

    def load_or_init(self) -> ExporterSettings:
        """Load this extension's entry, writing the defaults on first run."""
        data = self._read_all()
        entry = data.get(self.key)
        if not entry:
            settings = ExporterSettings()
            logger.info("settings.initialized", path=str(self.path))
            self._settings = settings
            self.save()
            return settings
        if not isinstance(entry, dict):
            raise ConfigError(
                f"Invalid `{self.key}` entry in {self.path}; expected an object."
            )
        try:
            settings = ExporterSettings.model_validate(entry)
        except ValidationError as e:
            raise ConfigError(f"Invalid `{self.key}` entry in {self.path}: {e}") from e
        logger.debug("settings.loaded", settings=settings.to_record())
        self._settings = settings
        return settings

    def save(self) -> None:
        data = self._read_all()
        data[self.key] = self.current.to_record()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to write settings file {self.path}: {e}") from e

    def update(self, **changes: bool) -> ExporterSettings:
        unknown = set(changes) - set(SETTING_KEYS)
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
        self._settings = self.current.model_copy(update=changes)
        self.save()
        return self._settings
