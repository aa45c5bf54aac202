from __future__ import annotations

import sys
from functools import partial
from pathlib import Path
from typing import Any

import anyio
import msgspec
import typer

from .. import __version__
from ..downloads import DirectoryDownloader, resolve_downloads_dir
from ..errors import ConfigError
from ..events import CHAT_COMPLETION_PROMPT_READY, EventBus
from ..extension import PromptExporterExtension
from ..logging import get_logger, setup_logging
from ..notify import RichNotifier
from ..panel import ControlPanel
from ..settings import SettingsStore, resolve_settings_path
from .settings import SETTINGS_PATH_OPTION, settings_set, settings_show

logger = get_logger(__name__)

_OUT_OPTION = typer.Option(
    None,
    "--out",
    help="Directory exported files are saved to (default: ~/Downloads).",
)
_DEBUG_OPTION = typer.Option(
    False, "--debug", help="Debug-level, human-readable console logging."
)


def _exit_config_error(exc: ConfigError) -> None:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=1) from exc


def build_extension(
    *,
    settings_path: Path | None,
    out: Path | None,
    bus: EventBus | None = None,
    debug: bool = False,
) -> tuple[PromptExporterExtension, EventBus]:
    bus = bus or EventBus()
    store = SettingsStore(resolve_settings_path(settings_path))
    extension = PromptExporterExtension(
        bus,
        store,
        DirectoryDownloader(resolve_downloads_dir(out)),
        notifier=RichNotifier(),
        debug=debug,
    )
    return extension, bus


def _decode_event(line: str) -> tuple[bool, Any]:
    try:
        return True, msgspec.json.decode(line)
    except msgspec.DecodeError as exc:
        logger.warning("watch.invalid_line", error=str(exc), line=line[:200])
        return False, None


async def _pump_stdin(bus: EventBus) -> int:
    delivered = 0
    async for raw in anyio.wrap_file(sys.stdin):
        line = raw.strip()
        if not line:
            continue
        ok, payload = _decode_event(line)
        if not ok:
            continue
        bus.emit(CHAT_COMPLETION_PROMPT_READY, payload)
        delivered += 1
    return delivered


def watch(
    settings_path: Path | None = SETTINGS_PATH_OPTION,
    out: Path | None = _OUT_OPTION,
    debug: bool = _DEBUG_OPTION,
) -> None:
    """Capture prompt structures from JSON Lines on stdin."""
    setup_logging(debug=debug)
    extension, bus = build_extension(settings_path=settings_path, out=out, debug=debug)
    try:
        extension.start()
    except ConfigError as e:
        _exit_config_error(e)
    with extension:
        delivered = anyio.run(partial(_pump_stdin, bus))
    typer.echo(
        f"captured {delivered} event(s), exported {extension.store.export_count} file(s)"
    )


def export(
    payload_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="JSON file holding one prompt structure."
    ),
    settings_path: Path | None = SETTINGS_PATH_OPTION,
    out: Path | None = _OUT_OPTION,
    debug: bool = _DEBUG_OPTION,
) -> None:
    """Capture one prompt structure from a file and export it."""
    setup_logging(debug=debug)
    try:
        raw = payload_file.read_bytes()
    except OSError as e:
        typer.echo(f"error: failed to read {payload_file}: {e}", err=True)
        raise typer.Exit(code=1) from e
    try:
        payload = msgspec.json.decode(raw)
    except msgspec.DecodeError as e:
        typer.echo(f"error: malformed JSON in {payload_file}: {e}", err=True)
        raise typer.Exit(code=1) from e

    extension, bus = build_extension(settings_path=settings_path, out=out, debug=debug)
    try:
        extension.start()
    except ConfigError as e:
        _exit_config_error(e)
    with extension:
        bus.emit(CHAT_COMPLETION_PROMPT_READY, payload)
        if extension.last_result is None:
            ControlPanel(extension).export_now()
    result = extension.last_result
    if result is None or not result.ok:
        raise typer.Exit(code=1)
    typer.echo(str(result.path))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def app_main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Capture chat-completion prompt structures and export them as JSON."""


def create_app() -> typer.Typer:
    app = typer.Typer(
        add_completion=False,
        no_args_is_help=True,
        help="Capture chat-completion prompt structures and export them as JSON.",
    )
    settings_app = typer.Typer(help="Read and modify extension settings.")
    settings_app.command(name="show")(settings_show)
    settings_app.command(name="set")(settings_set)
    app.command(name="watch")(watch)
    app.command(name="export")(export)
    app.add_typer(settings_app, name="settings")
    app.callback()(app_main)
    return app


def main() -> None:
    app = create_app()
    app()


if __name__ == "__main__":
    main()
