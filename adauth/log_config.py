"""Logging setup.

Console output always, plus an optional daily-rotated file when a path is
given. Passwords and session tokens are never passed to log calls anywhere in
the package, so no filtering happens here.
"""
from __future__ import annotations

import logging
import os
from logging.handlers import TimedRotatingFileHandler

_LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Track our handlers so reconfiguration replaces them instead of stacking.
_handlers: list[logging.Handler] = []


def normalize_level(level: str | None) -> int:
    level_str = (level or "INFO").strip().upper()
    if level_str not in _LEVELS:
        level_str = "INFO"
    return getattr(logging, level_str)


def setup_logging(level: str = "INFO", log_file: str | None = None, retention_days: int = 30) -> None:
    log_level = normalize_level(level)
    root = logging.getLogger()

    for h in _handlers:
        root.removeHandler(h)
        h.close()
    _handlers.clear()

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(formatter)
    _handlers.append(ch)

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        fh = TimedRotatingFileHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=max(1, min(365, int(retention_days or 30))),
            encoding="utf-8",
            utc=True,
        )
        fh.suffix = "%Y-%m-%d"
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        _handlers.append(fh)

    root.setLevel(log_level)
    for h in _handlers:
        root.addHandler(h)

    # ldap3 is chatty at DEBUG
    logging.getLogger("ldap3").setLevel(max(log_level, logging.WARNING))
    logging.getLogger("uvicorn.access").setLevel(max(log_level, logging.WARNING))

    logging.getLogger("adauth").info("Logging configured: level=%s", logging.getLevelName(log_level))
