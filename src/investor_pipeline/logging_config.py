"""Utilities to configure consistent logging across the pipeline."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Handlers installed by the last `configure_logging` call.
_installed: list[logging.Handler] = []


def resolve_level(level: int | str) -> int:
    """Turn a level name ("debug", "WARNING") or number into a logging level.

    Raises:
        ValueError: if the name is not a standard logging level.
    """
    if isinstance(level, int):
        return level
    value = getattr(logging, level.strip().upper(), None)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def configure_logging(log_path: Path | None = None, level: int | str = logging.INFO) -> list[logging.Handler]:
    """Attach the pipeline's stdout and file handlers to the root logger.

    Progress and summaries go to stdout so each stage reads like a report
    when run from a terminal. Calling this again replaces the handlers from
    the previous call; handlers installed by anything else are left alone.
    urllib3 connection chatter is only shown at DEBUG.

    Args:
        log_path: Optional path to a file where logs will be written.
        level: Logging level or level name (defaults to INFO).

    Returns:
        The handlers that were installed.
    """
    numeric = resolve_level(level)
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    _installed.extend(handlers)

    root.setLevel(numeric)
    logging.getLogger("urllib3").setLevel(logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING)
    return handlers
