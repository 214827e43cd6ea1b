from __future__ import annotations

import logging
import os
import sys
import traceback
from datetime import datetime
from pathlib import Path

_LOGGER = logging.getLogger("basssynth.logging")
_ROOT_LOGGER = "basssynth"
_LOG_DIR_ENV = "BASSSYNTH_LOG_DIR"
_LOG_LEVEL_ENV = "BASSSYNTH_LOG_LEVEL"
_LOG_FILE = "basssynth.log"
_STREAM_HANDLER_NAME = "basssynth.stderr"


def configure_logging() -> logging.Logger:
    """Attach handlers to the package logger once.

    A NullHandler is always present; a stderr handler is added only when
    ``BASSSYNTH_LOG_LEVEL`` names a level.
    """

    logger = logging.getLogger(_ROOT_LOGGER)
    if not any(isinstance(handler, logging.NullHandler) for handler in logger.handlers):
        logger.addHandler(logging.NullHandler())

    level_name = os.environ.get(_LOG_LEVEL_ENV, "").strip().upper()
    if not level_name:
        return logger
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        _LOGGER.warning("Ignoring unknown log level %r", level_name)
        return logger

    logger.setLevel(level)
    if any(handler.get_name() == _STREAM_HANDLER_NAME for handler in logger.handlers):
        return logger
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_STREAM_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    return logger


def get_log_dir() -> Path:
    configured = os.environ.get(_LOG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".cache" / "basssynth" / "logs"


def get_log_path() -> Path:
    return get_log_dir() / _LOG_FILE


def log_exception(context: str, exc: BaseException) -> Path | None:
    try:
        log_dir = get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        path = get_log_path()
        timestamp = datetime.now().isoformat()
        with path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{timestamp}] {context} failed: {type(exc).__name__}: {exc}\n")
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=handle)
            handle.write("\n")
        return path
    except Exception as log_exc:
        _LOGGER.warning("Failed to write log file: %s", log_exc, exc_info=True)
        return None
