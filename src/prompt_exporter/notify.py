"""Toast-style user notifications."""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.text import Text

__all__ = ["Notifier", "RichNotifier", "NullNotifier"]


class Notifier(Protocol):
    def success(self, message: str, title: str) -> None: ...

    def warning(self, message: str, title: str) -> None: ...

    def error(self, message: str, title: str) -> None: ...


class RichNotifier:
    """Prints notifications to stderr so stdout stays free for piping."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True, highlight=False)

    def _show(self, style: str, message: str, title: str) -> None:
        line = Text()
        line.append(f"{title}: ", style=f"bold {style}")
        line.append(message, style=style)
        self._console.print(line)

    def success(self, message: str, title: str) -> None:
        self._show("green", message, title)

    def warning(self, message: str, title: str) -> None:
        self._show("yellow", message, title)

    def error(self, message: str, title: str) -> None:
        self._show("red", message, title)


class NullNotifier:
    def success(self, message: str, title: str) -> None:
        pass

    def warning(self, message: str, title: str) -> None:
        pass

    def error(self, message: str, title: str) -> None:
        pass
