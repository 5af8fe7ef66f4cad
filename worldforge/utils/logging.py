from __future__ import annotations

import logging
import sys
from typing import Iterable

from loguru import logger

_CONTEXT_KEYS = ("world_id", "operation", "section", "attempt")

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
    "| <level>{level:<8}</level> "
    "| world={extra[world_id]} op={extra[operation]} section={extra[section]} attempt={extra[attempt]} "
    "| {name}:{line} {message}"
)

SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")


def _with_context(record: dict) -> None:
    extra = record["extra"]
    for key in _CONTEXT_KEYS:
        extra.setdefault(key, "-")


class _LoguruBridge(logging.Handler):
    """Forwards stdlib log records (uvicorn, httpx) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.bind(operation=record.name).opt(exception=record.exc_info, depth=6).log(level, record.getMessage())


def bridge_stdlib_loggers(names: Iterable[str]) -> None:
    handler = _LoguruBridge()
    for name in names:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.propagate = False


def setup_logging(level: str, *, stdlib_loggers: Iterable[str] = ()) -> None:
    """Configure loguru for CLI and server runs.

    Loggers named in ``stdlib_loggers`` are re-routed through the same sink so
    server access lines carry the usual context columns.
    """
    logger.remove()
    logger.configure(patcher=_with_context)
    logger.add(sys.stderr, level=level, backtrace=True, diagnose=False, format=_FORMAT)
    bridge_stdlib_loggers(stdlib_loggers)
