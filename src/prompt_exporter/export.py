"""Export service: turns the captured prompt structure into a JSON artifact."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .capture import CaptureStore
from .downloads import Downloader, transient_blob
from .errors import DownloadError, ExportError, NoDataError
from .logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "ARTIFACT_PREFIX",
    "MEDIA_TYPE",
    "ExportResult",
    "ExportService",
    "artifact_name",
    "artifact_timestamp",
    "render_payload",
]

ARTIFACT_PREFIX = "prompt_struct"
MEDIA_TYPE = "application/json"


@dataclass(frozen=True, slots=True)
class ExportResult:
    file_name: str | None = None
    path: Path | None = None
    error: ExportError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def artifact_timestamp(now: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, made safe for file names.

    ``2024-05-01T12:30:45.123Z`` becomes ``2024-05-01T12-30-45-123Z``.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    iso = f"{now:%Y-%m-%dT%H:%M:%S}.{now.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def artifact_name(index: int, now: datetime) -> str:
    return f"{ARTIFACT_PREFIX}_{index}_{artifact_timestamp(now)}.json"


LONE_SURROGATE_RE = re.compile("[\ud800-\udfff]")


def _escape_surrogate(match: re.Match[str]) -> str:
    return f"\\u{ord(match.group()):04x}"


def render_payload(value: Any) -> str:
    """Pretty-print ``value`` as 2-space indented JSON.

    Unpaired surrogates can only occur inside JSON strings; they are written as
    ``\\uXXXX`` escapes so the text always encodes to UTF-8.
    """
    text = json.dumps(value, indent=2, ensure_ascii=False)
    return LONE_SURROGATE_RE.sub(_escape_surrogate, text)


class ExportService:
    def __init__(
        self,
        store: CaptureStore,
        downloader: Downloader,
        *,
        clock: Callable[[], datetime] | None = None,
        scratch_dir: Path | None = None,
    ) -> None:
        self._store = store
        self._downloader = downloader
        self._clock = clock or _utc_now
        self._scratch_dir = scratch_dir

    def export_latest(self) -> ExportResult:
        """Export the captured prompt structure.

        Never raises: failures come back as ``ExportResult.error``. The export
        counter advances as soon as a name is generated, so a failed delivery
        still consumes its index.
        """
        if not self._store.has_data:
            logger.warning("export.no_data")
            return ExportResult(
                error=NoDataError(
                    "No prompt structure captured yet; send a message first"
                )
            )

        file_name = artifact_name(self._store.next_export_index(), self._clock())
        logger.debug("export.started", file_name=file_name)
        try:
            body = render_payload(self._store.latest).encode("utf-8")
            with transient_blob(body, directory=self._scratch_dir) as blob:
                path = self._downloader.deliver(blob, file_name, MEDIA_TYPE)
        except Exception as exc:
            error = DownloadError(str(exc) or type(exc).__name__)
            error.__cause__ = exc
            logger.error(
                "export.failed",
                file_name=file_name,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return ExportResult(file_name=file_name, error=error)

        logger.info("export.completed", file_name=file_name, path=str(path))
        return ExportResult(file_name=file_name, path=path)
