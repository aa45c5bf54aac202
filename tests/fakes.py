from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path

from prompt_exporter.settings import ExporterSettings


@dataclass
class StaticSettings:
    current: ExporterSettings = field(default_factory=ExporterSettings)


@dataclass
class RecordingNotifier:
    messages: list[tuple[str, str, str]] = field(default_factory=list)

    def success(self, message: str, title: str) -> None:
        self.messages.append(("success", message, title))

    def warning(self, message: str, title: str) -> None:
        self.messages.append(("warning", message, title))

    def error(self, message: str, title: str) -> None:
        self.messages.append(("error", message, title))

    def levels(self) -> list[str]:
        return [level for level, _, _ in self.messages]


class FailingDownloader:
    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or OSError("disk full")
        self.seen_blobs: list[Path] = []

    def deliver(self, blob: Path, file_name: str, media_type: str) -> Path:
        self.seen_blobs.append(blob)
        raise self.exc


FIXED_NOW = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)


def fixed_clock(now: datetime = FIXED_NOW) -> Callable[[], datetime]:
    return lambda: now


def ticking_clock(
    start: datetime = FIXED_NOW, step: timedelta = timedelta(milliseconds=1)
) -> Callable[[], datetime]:
    current = [start]

    def _tick() -> datetime:
        value = current[0]
        current[0] = value + step
        return value

    return _tick
