"""Append-only diagnostic log written next to the project."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def attach_file_log(
    target: logging.Logger,
    path: str | Path,
    *,
    level: int = logging.DEBUG,
) -> logging.Handler | None:
    """Append *target*'s records to *path*.

    Returns the handler, or ``None`` (after a warning) when the file
    cannot be opened.
    """
    log_path = Path(path)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as exc:
        logger.warning("Cannot open log file %s: %s", log_path, exc)
        return None

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    target.addHandler(handler)
    if target.level == logging.NOTSET or target.level > level:
        target.setLevel(level)
    return handler


def detach_file_log(target: logging.Logger, handler: logging.Handler | None) -> None:
    """Remove and close a handler returned by :func:`attach_file_log`."""
    if handler is None:
        return
    target.removeHandler(handler)
    handler.close()
