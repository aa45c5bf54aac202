from __future__ import annotations

__all__ = [
    "PromptExporterError",
    "ConfigError",
    "SerializationError",
    "ExportError",
    "NoDataError",
    "DownloadError",
]


class PromptExporterError(RuntimeError):
    pass


class ConfigError(PromptExporterError):
    pass


class SerializationError(PromptExporterError):
    """The payload has no JSON form (cycle or unsupported value)."""


class ExportError(PromptExporterError):
    pass


class NoDataError(ExportError):
    """Export was requested before any prompt structure was captured."""


class DownloadError(ExportError):
    """Delivering the artifact failed; the cause is chained."""
