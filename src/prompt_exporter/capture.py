"""Capture store: the latest prompt structure and the export counter."""

from __future__ import annotations

import json
import math
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from .errors import SerializationError
from .logging import get_logger
from .notify import Notifier, NullNotifier
from .settings import ExporterSettings

logger = get_logger(__name__)

__all__ = ["CaptureStore", "SettingsSource", "snapshot_payload"]

_OMIT = object()


class SettingsSource(Protocol):
    @property
    def current(self) -> ExporterSettings: ...


def _jsonable(value: Any, active: set[int]) -> Any:
    if callable(value):
        return _OMIT
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, Mapping):
        marker = id(value)
        if marker in active:
            raise ValueError("Circular reference detected")
        active.add(marker)
        try:
            result = {}
            for key, item in value.items():
                converted = _jsonable(item, active)
                if converted is not _OMIT:
                    result[key] = converted
            return result
        finally:
            active.discard(marker)
    if isinstance(value, (list, tuple)):
        marker = id(value)
        if marker in active:
            raise ValueError("Circular reference detected")
        active.add(marker)
        try:
            return [
                None if converted is _OMIT else converted
                for converted in (_jsonable(item, active) for item in value)
            ]
        finally:
            active.discard(marker)
    return value


def snapshot_payload(payload: Any) -> Any:
    """Return a structurally independent copy of ``payload``.

    The copy is a JSON encode/decode round trip, not ``copy.deepcopy``, so the
    stored value is exactly what an export writes. Members without a JSON form
    follow ``JSON.stringify`` rules: callables are dropped from objects and
    become ``null`` in arrays, NaN and infinities become ``null``, tuples become
    lists. Cycles and other unsupported values raise ``SerializationError``.
    """
    try:
        prepared = _jsonable(payload, set())
        if prepared is _OMIT:
            raise TypeError(f"Object of type {type(payload).__name__} has no JSON form")
        text = json.dumps(prepared, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationError(
            f"Prompt structure is not JSON-serializable: {exc}"
        ) from exc
    return json.loads(text)


class CaptureStore:
    """Holds the most recent prompt structure for export.

    Implements ``PromptReadyListener``; register ``on_prompt_ready`` with the
    host event source.
    """

    def __init__(
        self,
        settings: SettingsSource,
        *,
        notifier: Notifier | None = None,
        auto_export: Callable[[], object] | None = None,
    ) -> None:
        self._settings = settings
        self._notifier = notifier or NullNotifier()
        self._latest: Any = None
        self._export_count = 0
        self.auto_export = auto_export

    @property
    def latest(self) -> Any:
        return self._latest

    @property
    def has_data(self) -> bool:
        return self._latest is not None

    @property
    def export_count(self) -> int:
        return self._export_count

    def next_export_index(self) -> int:
        index = self._export_count
        self._export_count += 1
        return index

    def record(self, payload: Any) -> None:
        settings = self._settings.current
        if not settings.enabled:
            logger.debug("capture.skipped", reason="disabled")
            return

        self._latest = snapshot_payload(payload)
        logger.debug("capture.snapshot", payload=self._latest)
        logger.info("capture.recorded")

        if settings.auto_export and self.auto_export is not None:
            logger.debug("capture.auto_export")
            self.auto_export()

    def on_prompt_ready(self, payload: Any) -> None:
        try:
            self.record(payload)
        except Exception as exc:
            logger.exception("capture.failed", error=str(exc))
            self._notifier.error(f"Failed to capture prompt structure: {exc}", "Error")
