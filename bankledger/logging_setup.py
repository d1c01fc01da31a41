"""
logging_setup.py - Where replay diagnostics go

The replay emits three kinds of log records:

- DEBUG: per-record no-ops (insufficient funds, unknown tx, locked account)
  and account creation, tagged with the ingest worker's thread name
- WARNING: cross-client disputes, unparseable amounts, skipped rows
- ERROR: streams that stopped early

stdout is reserved for the account CSV, so the handler writes to stderr.
The ``bankledger`` CLI calls configure_logging() once before ingesting;
library users who never call it get silence through a NullHandler.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Optional, Union

_PKG_LOGGER_NAME = "bankledger"
LOG_LEVEL_ENV = "BANKLEDGER_LOG_LEVEL"
# Thread name tells concurrent ingest workers apart
DEFAULT_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s [%(threadName)s] %(message)s"

_CONFIGURED = False


def _parse_level(level: Union[int, str, None]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = getattr(logging, name, None)
        if isinstance(numeric, int):
            return numeric
        raise ValueError(f"Unknown log level: {level!r}")
    env_val = os.getenv(LOG_LEVEL_ENV)
    if env_val:
        return _parse_level(env_val)
    # Per-record no-ops are DEBUG and stay hidden by default
    return logging.WARNING


def configure_logging(
    level: Union[int, str, None] = None,
    *,
    fmt: Optional[str] = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """
    Route ``bankledger`` log records to ``stream``.

    Only the first call has an effect. Records no longer propagate to the
    root logger afterwards.

    Args:
        level: --log-level value (name or number). Without one,
               BANKLEDGER_LOG_LEVEL is read, then WARNING is used.
        fmt: Format string; the default shows the worker thread.
        stream: Destination; stderr unless a test captures it.

    Raises:
        ValueError: If ``level`` names no logging level (the CLI exits 2)
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = _parse_level(level)
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)

    for h in list(pkg_logger.handlers):
        if isinstance(h, logging.NullHandler):
            pkg_logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_LOG_FORMAT))

    pkg_logger.setLevel(resolved)
    pkg_logger.addHandler(handler)
    pkg_logger.propagate = False

    _CONFIGURED = True


def reset_logging() -> None:
    """Drop every ``bankledger`` handler; tests call this between CLI runs."""
    global _CONFIGURED
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True
    _CONFIGURED = False


def get_logger(name: str) -> logging.Logger:
    """Module logger for ledger, processor, rows and ingestion code."""
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
