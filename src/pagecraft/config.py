"""Local configuration for pagecraft."""

from __future__ import annotations

import os


DEFAULT_HISTORY_MAX_SIZE = 100
DEFAULT_HISTORY_DEBOUNCE_MS = 300
DEFAULT_PERF_WARN_MS = 10.0
DEFAULT_DOCUMENT_VERSION = "1.0.0"
DEFAULT_DOCUMENT_TITLE = "Untitled"
DEFAULT_ROOT_MATERIAL = "page"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Number of undoable actions retained before the oldest are folded into the base snapshot.
PAGECRAFT_HISTORY_MAX_SIZE = int(os.getenv("PAGECRAFT_HISTORY_MAX_SIZE", str(DEFAULT_HISTORY_MAX_SIZE)))
PAGECRAFT_HISTORY_DEBOUNCE_MS = int(os.getenv("PAGECRAFT_HISTORY_DEBOUNCE_MS", str(DEFAULT_HISTORY_DEBOUNCE_MS)))
PAGECRAFT_PERF_MONITORING = _env_flag("PAGECRAFT_PERF_MONITORING", False)
PAGECRAFT_PERF_WARN_MS = float(os.getenv("PAGECRAFT_PERF_WARN_MS", str(DEFAULT_PERF_WARN_MS)))
PAGECRAFT_DOCUMENT_TITLE = os.getenv("PAGECRAFT_DOCUMENT_TITLE", DEFAULT_DOCUMENT_TITLE)
