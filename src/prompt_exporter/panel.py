from __future__ import annotations

from .export import ExportResult
from .extension import PromptExporterExtension
from .logging import get_logger, set_debug_gate
from .settings import ExporterSettings

logger = get_logger(__name__)

__all__ = ["ControlPanel"]


class ControlPanel:
    """Settings toggles and the manual export action.

    Every toggle persists immediately.
    """

    def __init__(self, extension: PromptExporterExtension) -> None:
        self._extension = extension

    @property
    def settings(self) -> ExporterSettings:
        return self._extension.settings.current

    @property
    def status(self) -> str:
        last = self._extension.last_export
        return f"Last export: {last if last is not None else 'never'}"

    def _toggle(self, key: str, value: bool) -> ExporterSettings:
        updated = self._extension.settings.update(**{key: bool(value)})
        logger.info("settings.changed", setting=key, value=bool(value))
        return updated

    def set_enabled(self, value: bool) -> ExporterSettings:
        return self._toggle("enabled", value)

    def set_auto_export(self, value: bool) -> ExporterSettings:
        return self._toggle("auto_export", value)

    def set_debug_mode(self, value: bool) -> ExporterSettings:
        updated = self._toggle("debug_mode", value)
        set_debug_gate(self._extension.debug or updated.debug_mode)
        return updated

    def export_now(self) -> ExportResult:
        logger.debug("panel.export_clicked")
        return self._extension.export_and_notify()
