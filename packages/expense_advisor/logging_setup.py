"""Logging for the ``expense_advisor`` package.

Library modules only ever ask for a logger via :func:`get_logger`; the single
stream handler is owned by :func:`configure_logging`, which the CLI calls from
its root callback. Until then the package logger carries a ``NullHandler`` so
embedding applications see nothing unless they configure logging themselves.

The level comes from, in order: the explicit argument (the CLI's
``--log-level``), ``EXPENSE_ADVISOR_LOG_LEVEL``, then ``INFO``. Reconciliation
rule and per-action detail logs at ``DEBUG``; ingest and command summaries
log at ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PKG_LOGGER_NAME = "expense_advisor"
LEVEL_ENV_VAR = "EXPENSE_ADVISOR_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handler: logging.Handler | None = None


def _parse_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> logging.Handler:
    """Attach the package's stream handler, or re-level it if already attached.

    A second call only changes the level, and only when ``level`` is passed
    explicitly; handler, format and stream stay as first configured. Returns
    the handler.
    """

    global _handler
    logger = logging.getLogger(PKG_LOGGER_NAME)

    if _handler is not None:
        if level is not None:
            resolved = _parse_level(level)
            logger.setLevel(resolved)
            _handler.setLevel(resolved)
        return _handler

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or LOG_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    _handler = handler
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return ``expense_advisor.<name>``; a fully qualified name is kept as is."""

    pkg_logger = logging.getLogger(PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    if name != PKG_LOGGER_NAME and not name.startswith(PKG_LOGGER_NAME + "."):
        name = f"{PKG_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


__all__ = ["LEVEL_ENV_VAR", "configure_logging", "get_logger"]
