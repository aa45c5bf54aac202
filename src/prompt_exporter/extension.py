"""Extension session: wires capture, export, settings and notifications."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from .capture import CaptureStore
from .downloads import Downloader
from .errors import NoDataError
from .events import CHAT_COMPLETION_PROMPT_READY, EventSource
from .export import ExportResult, ExportService
from .logging import get_logger, set_debug_gate
from .notify import Notifier, NullNotifier
from .settings import SettingsStore

logger = get_logger(__name__)

__all__ = ["PromptExporterExtension"]


class PromptExporterExtension:
    """One running instance of the extension.

    Owns its capture store and export counter; nothing is shared between
    instances. ``start`` subscribes to the host event, ``stop`` unsubscribes.
    """

    def __init__(
        self,
        events: EventSource,
        settings: SettingsStore,
        downloader: Downloader,
        *,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] | None = None,
        scratch_dir: Path | None = None,
        debug: bool = False,
    ) -> None:
        self.settings = settings
        self.debug = debug
        self.notifier = notifier or NullNotifier()
        self.store = CaptureStore(settings, notifier=self.notifier)
        self.exporter = ExportService(
            self.store, downloader, clock=clock, scratch_dir=scratch_dir
        )
        self.store.auto_export = self.export_and_notify
        self.last_export: str | None = None
        self.last_result: ExportResult | None = None
        self._events = events
        self._handler = self.store.on_prompt_ready
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._started:
            return
        logger.info("extension.starting")
        current = self.settings.load_or_init()
        set_debug_gate(self.debug or current.debug_mode)
        self._events.on(CHAT_COMPLETION_PROMPT_READY, self._handler)
        self._started = True
        logger.info("extension.started", settings=current.to_record())

    def stop(self) -> None:
        if not self._started:
            return
        self._events.off(CHAT_COMPLETION_PROMPT_READY, self._handler)
        self._started = False
        logger.info("extension.stopped", exports=self.store.export_count)

    def __enter__(self) -> PromptExporterExtension:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def export_and_notify(self) -> ExportResult:
        result = self.exporter.export_latest()
        self.last_result = result
        if result.ok:
            self.last_export = result.file_name
            self.notifier.success(
                f"Prompt structure exported: {result.file_name}", "Export complete"
            )
        elif isinstance(result.error, NoDataError):
            self.notifier.warning(str(result.error), "Warning")
        else:
            self.notifier.error(f"Export failed: {result.error}", "Error")
        return result
