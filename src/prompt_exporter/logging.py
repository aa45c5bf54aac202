from __future__ import annotations

import errno
import logging
import re
import sys
from collections.abc import Mapping
from typing import Any

import structlog

from . import EXTENSION_NAME

API_KEY_RE = re.compile(r"\bsk-[A-Za-z0-9_-]{16,}\b")
BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]{8,}")

_PACKAGE_LOGGER = "prompt_exporter"


def _redact_text(text: str) -> str:
    redacted = API_KEY_RE.sub("sk-[REDACTED]", text)
    return BEARER_RE.sub(r"\1[REDACTED]", redacted)


def _redact_value(value: Any, memo: dict[int, Any]) -> Any:
    """Return ``value`` with every nested string redacted.

    Containers are rebuilt, never mutated; ``memo`` maps container ids already
    seen to their redacted copies.
    """
    if isinstance(value, str):
        return _redact_text(value)
    if isinstance(value, Mapping):
        marker = id(value)
        if marker in memo:
            return memo[marker]
        result: dict[Any, Any] = {}
        memo[marker] = result
        for key, item in value.items():
            result[key] = _redact_value(item, memo)
        return result
    if isinstance(value, (list, tuple)):
        marker = id(value)
        if marker in memo:
            return memo[marker]
        items: list[Any] = []
        memo[marker] = items
        items.extend(_redact_value(item, memo) for item in value)
        return items if isinstance(value, list) else tuple(items)
    return value


def redact_secret_processor(_, __, event_dict):
    """Processor to redact API keys from log messages and fields.

    Prompt payloads are logged in debug mode and may carry provider keys
    anywhere in their nesting.
    """
    memo: dict[int, Any] = {}
    for key, value in list(event_dict.items()):
        if isinstance(value, (str, Mapping, list, tuple)):
            event_dict[key] = _redact_value(value, memo)
    return event_dict


def add_extension_name(_, __, event_dict):
    event_dict.setdefault("extension", EXTENSION_NAME)
    return event_dict


class SafeStreamHandler(logging.StreamHandler):
    def handleError(self, record: logging.LogRecord) -> None:
        exc = sys.exc_info()[1]
        if isinstance(exc, BrokenPipeError):
            try:
                self.stream.close()
            except Exception:
                pass
            return
        if isinstance(exc, OSError) and exc.errno == errno.EPIPE:
            try:
                self.stream.close()
            except Exception:
                pass
            return
        super().handleError(record)


def set_debug_gate(enabled: bool) -> None:
    """Let debug events through only while debug mode is on."""
    level = logging.DEBUG if enabled else logging.INFO
    logging.getLogger(_PACKAGE_LOGGER).setLevel(level)


def setup_logging(*, debug: bool = False) -> None:
    """Configure structlog with console or JSON output and secret redaction."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            add_extension_name,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_secret_processor,
            structlog.dev.ConsoleRenderer(colors=True)
            if debug
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = SafeStreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logging.basicConfig(
        handlers=[handler],
        level=logging.DEBUG,
        force=True,
    )
    set_debug_gate(debug)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
