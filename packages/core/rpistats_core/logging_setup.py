"""JSON-lines log file, console echo of warnings, and crash hooks."""

from __future__ import annotations

import faulthandler
import json
import logging
import logging.handlers
import sys
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import config_root


_LOGGER_NAME = "rpistats"
# LogRecord attributes copied into the JSON payload when a caller sets them via ``extra``.
_EXTRA_FIELDS = ("event", "metric", "crash_id")


def log_dir() -> Path:
    path = config_root() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                payload[name] = getattr(record, name)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_logging(
    keep_files: int = 7,
    console: bool = True,
    level: str = "INFO",
    directory: Path | None = None,
) -> logging.Logger:
    """Attach handlers to the ``rpistats`` logger once; later calls are no-ops."""
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    directory = directory or log_dir()
    directory.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(directory / "rpistats.log"),
        when="midnight",
        backupCount=max(2, keep_files),
        encoding="utf-8",
    )
    file_handler.setFormatter(JsonFormatter())
    logger.addHandler(file_handler)

    if console:
        # stdout carries the JSON results, so the console echo goes to stderr.
        echo = logging.StreamHandler(sys.stderr)
        echo.setLevel(logging.WARNING)
        echo.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        logger.addHandler(echo)

    logger.debug("logging configured", extra={"event": "logging_configured"})
    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def _log_crash(kind: str, exc_info: tuple) -> None:
    crash_id = str(uuid.uuid4())
    get_logger().critical(
        f"{kind} crash_id={crash_id}",
        exc_info=exc_info,
        extra={"event": kind.replace(" ", "_"), "crash_id": crash_id},
    )


def install_crash_hooks(directory: Path | None = None) -> None:
    """Log uncaught exceptions (main and worker threads) and dump fatal faults to fault.log."""
    sys.excepthook = lambda exc_type, exc, tb: _log_crash("uncaught exception", (exc_type, exc, tb))
    threading.excepthook = lambda args: _log_crash(
        "thread exception", (args.exc_type, args.exc_value, args.exc_traceback)
    )

    fault_file = ((directory or log_dir()) / "fault.log").open("a", encoding="utf-8")
    faulthandler.enable(file=fault_file, all_threads=True)
    get_logger().debug("crash hooks installed", extra={"event": "crash_hooks_installed"})
