"""Host event source seam.

The host application owns its event bus; the extension only needs
``on``/``off`` for one event. ``EventBus`` is a minimal in-process bus used by
the CLI and tests.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeAlias, runtime_checkable

from .logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "CHAT_COMPLETION_PROMPT_READY",
    "EventHandler",
    "EventSource",
    "PromptReadyListener",
    "EventBus",
]

CHAT_COMPLETION_PROMPT_READY = "chat_completion_prompt_ready"

EventHandler: TypeAlias = Callable[[Any], object]


@runtime_checkable
class PromptReadyListener(Protocol):
    """Receives the prompt structure each time the host finishes building it."""

    def on_prompt_ready(self, payload: Any) -> None: ...


@runtime_checkable
class EventSource(Protocol):
    def on(self, event: str, handler: EventHandler) -> None: ...

    def off(self, event: str, handler: EventHandler) -> None: ...


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            return
        if not handlers:
            del self._handlers[event]

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))

    def emit(self, event: str, *args: Any) -> None:
        """Call every handler in registration order.

        A failing handler is logged and does not stop the remaining ones.
        """
        for handler in list(self._handlers.get(event, ())):
            try:
                handler(*args)
            except Exception as exc:
                logger.exception(
                    "events.handler_failed",
                    event_name=event,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(exc),
                )
