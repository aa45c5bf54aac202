import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from prompt_exporter.downloads import DirectoryDownloader
from prompt_exporter.events import EventBus
from prompt_exporter.extension import PromptExporterExtension
from prompt_exporter.settings import SettingsStore
from tests.fakes import RecordingNotifier, fixed_clock


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    logging.getLogger("prompt_exporter").setLevel(logging.NOTSET)


@pytest.fixture
def downloads_dir(tmp_path: Path) -> Path:
    return tmp_path / "downloads"


@pytest.fixture
def settings_store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / "extension_settings.json")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def extension(
    bus: EventBus,
    settings_store: SettingsStore,
    downloads_dir: Path,
    notifier: RecordingNotifier,
    tmp_path: Path,
) -> PromptExporterExtension:
    return PromptExporterExtension(
        bus,
        settings_store,
        DirectoryDownloader(downloads_dir),
        notifier=notifier,
        clock=fixed_clock(),
        scratch_dir=tmp_path / "scratch",
    )
