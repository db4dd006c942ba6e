# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for clipkg.

Every log entry is a single JSON line carrying a timestamp, level, source
module and message. Build steps attach context (target platform, archive path,
download URL) through the `extra` kwarg, which ends up as extra keys on the
JSON object. Library code never calls print().

How this works:
  - Python's standard `logging` module does the routing; JsonFormatter turns
    each record into one JSON line.
  - One handler writes to stdout, a second one optionally to a file.
  - `get_logger` is the only way to create loggers. Modules call it once at
    import time with their `__name__`.
  - `set_log_level` retunes every clipkg logger at once, which is what the CLI
    does after parsing `--log-level`.

The JSON structure looks like:
  {"ts": "2026-...", "level": "INFO", "module": "clipkg.standalone.fetcher", "msg": "Downloading runtime", ...}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

_ROOT_LOGGER_NAME = "clipkg"

# LogRecord attributes that are plumbing, not context.
_STANDARD_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "relativeCreated",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "pathname",
        "filename",
        "module",
        "levelno",
        "levelname",
        "processName",
        "process",
        "threadName",
        "thread",
        "message",
        "msecs",
        "taskName",
    }
)


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Mandatory fields:
      ts: ISO 8601 UTC timestamp
      level: log level name
      module: the logger name
      msg: the formatted message string

    Anything passed through `extra` is merged in as-is. When the call carries
    exc_info, the formatted traceback goes under "exc".
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_log_level(level_name: str) -> int:
    """Turn a level name string into the corresponding logging constant."""
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
    return getattr(logging, upper)


def _attach_file_handler(
    logger: logging.Logger, log_file: Path, level: int, formatter: logging.Formatter
) -> None:
    target = str(log_file.resolve())
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Create (or fetch) a structured JSON logger.

    Calling this again for the same name returns the same logger with its
    level updated. The stdout handler is attached once; a file handler is
    attached the first time a given log_file is passed.

    Args:
        name: Logger name, typically __name__ of the calling module.
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional path to a log file. If provided, logs go to both
                  stdout and the file.

    Returns:
        A configured logging.Logger that outputs structured JSON.
    """
    logger = logging.getLogger(name)
    level = _resolve_log_level(log_level)
    logger.setLevel(level)
    formatter = JsonFormatter()

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
    else:
        stdout_handler = logging.StreamHandler(stream=sys.stdout)
        stdout_handler.setLevel(level)
        stdout_handler.setFormatter(formatter)
        logger.addHandler(stdout_handler)

    if log_file is not None:
        _attach_file_handler(logger, log_file, level, formatter)

    logger.propagate = False

    return logger


def set_log_level(log_level: str) -> None:
    """
    Apply a level to every clipkg logger created so far.

    Module loggers are created at import time with the default level, so the
    CLI calls this once it knows what the user asked for.
    """
    level = _resolve_log_level(log_level)
    for name in list(logging.Logger.manager.loggerDict):
        if name != _ROOT_LOGGER_NAME and not name.startswith(_ROOT_LOGGER_NAME + "."):
            continue
        logger = logging.getLogger(name)
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
