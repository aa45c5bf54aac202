from __future__ import annotations

import json
from pathlib import Path

import typer

from ..downloads import DirectoryDownloader, resolve_downloads_dir
from ..errors import ConfigError
from ..events import EventBus
from ..extension import PromptExporterExtension
from ..panel import ControlPanel
from ..settings import SettingsStore, resolve_settings_path

SETTINGS_PATH_OPTION = typer.Option(
    None,
    "--settings",
    help="Path to the extension settings file.",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise typer.BadParameter(f"expected true/false, got {value!r}")


def _load_store(settings_path: Path | None) -> SettingsStore:
    store = SettingsStore(resolve_settings_path(settings_path))
    try:
        store.load_or_init()
    except ConfigError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1) from e
    return store


def settings_show(settings_path: Path | None = SETTINGS_PATH_OPTION) -> None:
    """Print the current settings."""
    store = _load_store(settings_path)
    typer.echo(f"# {store.path}")
    typer.echo(json.dumps(store.current.to_record(), indent=2))


def settings_set(
    key: str = typer.Argument(..., help="enabled, auto-export or debug-mode."),
    value: str = typer.Argument(..., help="true or false."),
    settings_path: Path | None = SETTINGS_PATH_OPTION,
) -> None:
    """Change one setting and save it."""
    flag = _parse_bool(value)
    store = _load_store(settings_path)
    panel = ControlPanel(
        PromptExporterExtension(
            EventBus(), store, DirectoryDownloader(resolve_downloads_dir())
        )
    )
    setters = {
        "enabled": panel.set_enabled,
        "auto-export": panel.set_auto_export,
        "debug-mode": panel.set_debug_mode,
    }
    setter = setters.get(key.strip().lower().replace("_", "-"))
    if setter is None:
        typer.echo(
            f"error: unknown setting {key!r}; expected one of: {', '.join(setters)}",
            err=True,
        )
        raise typer.Exit(code=1)
    try:
        updated = setter(flag)
    except ConfigError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(json.dumps(updated.to_record(), indent=2))
