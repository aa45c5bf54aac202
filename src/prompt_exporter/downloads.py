"""Artifact delivery: transient blobs and download targets."""

from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from .logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "ENV_DOWNLOADS_DIR",
    "Downloader",
    "DirectoryDownloader",
    "resolve_downloads_dir",
    "transient_blob",
]

ENV_DOWNLOADS_DIR = "PROMPT_EXPORTER_DOWNLOADS"
DEFAULT_DOWNLOADS_DIR = Path.home() / "Downloads"


def resolve_downloads_dir(path: str | Path | None = None) -> Path:
    if path:
        return Path(path).expanduser()
    env_dir = os.environ.get(ENV_DOWNLOADS_DIR)
    if env_dir and env_dir.strip():
        return Path(env_dir.strip()).expanduser()
    return DEFAULT_DOWNLOADS_DIR


@contextmanager
def transient_blob(data: bytes, *, directory: Path | None = None) -> Iterator[Path]:
    """Hold ``data`` in a temporary file for the duration of the block.

    The file is removed on exit whether or not the block raised.
    """
    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix="prompt-exporter-", suffix=".blob", dir=directory)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        yield path
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("download.blob_release_failed", path=str(path), error=str(exc))


class Downloader(Protocol):
    def deliver(self, blob: Path, file_name: str, media_type: str) -> Path:
        """Save ``blob`` under ``file_name`` and return where it landed."""
        ...


class DirectoryDownloader:
    """Saves artifacts into a downloads directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def deliver(self, blob: Path, file_name: str, media_type: str) -> Path:
        if Path(file_name).name != file_name:
            raise ValueError(f"Invalid artifact name {file_name!r}")
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / file_name
        shutil.copyfile(blob, target)
        logger.debug(
            "download.saved", path=str(target), media_type=media_type
        )
        return target
