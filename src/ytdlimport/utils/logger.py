from __future__ import annotations

import os
import sys
import tempfile

from loguru import logger

from .paths import log_dir

# 1. Log directory: per-user data dir, temp dir when that is not writable
LOG_DIR = str(log_dir())

if not os.path.exists(LOG_DIR):
    try:
        os.makedirs(LOG_DIR)
    except Exception:
        LOG_DIR = os.path.join(tempfile.gettempdir(), "ytdl-import_logs")
        os.makedirs(LOG_DIR, exist_ok=True)


# 2. Reset loguru defaults
logger.remove()


# 3. Console sink
CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

_console_sink = getattr(sys, "__stderr__", None) or sys.stderr
_console_handler_id: int | None = None


def set_console_level(level: str) -> None:
    """(Re)install the console sink at the given level."""

    global _console_handler_id
    if _console_handler_id is not None:
        logger.remove(_console_handler_id)
        _console_handler_id = None
    if _console_sink is not None:
        _console_handler_id = logger.add(_console_sink, level=level.upper(), format=CONSOLE_FORMAT)


set_console_level(os.environ.get("YTDLIMPORT_LOG_LEVEL", "INFO"))


# 4. File sink: everything from DEBUG up, rotated at midnight, kept 7 days
logger.add(
    os.path.join(LOG_DIR, "ytdl-import_{time:YYYY-MM-DD}.log"),
    level="DEBUG",
    rotation="00:00",
    retention="7 days",
    compression="zip",
    encoding="utf-8",
    enqueue=True,
    backtrace=True,
    diagnose=False,
)


def get_logger(*_args, **_kwargs):
    return logger
