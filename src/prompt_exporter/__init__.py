from __future__ import annotations

__version__ = "0.3.0"

EXTENSION_NAME = "prompt-exporter"
