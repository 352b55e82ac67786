"""Logging setup for the CMS server and CLI.

Everything logs under the ``mini_cms`` logger. The console gets a rich
handler stamped with full dates, since the server runs for days; an optional
file handler writes JSON lines so request failures and article events can be
grepped or shipped elsewhere.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.logging import RichHandler

from mini_cms.config import LoggingConfig

ROOT_LOGGER = "mini_cms"
_CONSOLE_TIME_FORMAT = "[%Y-%m-%d %H:%M:%S]"
_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(cfg: LoggingConfig, log_dir: Path | None = None) -> logging.Logger:
    """Configure the ``mini_cms`` logger from config.

    Calling it again replaces (and closes) the handlers of the previous call,
    so the CLI and tests can reconfigure freely.

    Args:
        cfg: Logging section of the app config
        log_dir: Overrides ``cfg.log_dir`` for the file handler
    """
    level = _level_from_string(cfg.level)
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    if cfg.console:
        logger.addHandler(_console_handler(level))

    if cfg.file:
        target_dir = log_dir if log_dir is not None else Path(cfg.log_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(target_dir / cfg.filename, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(_build_file_formatter(cfg.format))
        logger.addHandler(file_handler)

    return logger


def _console_handler(level: int) -> RichHandler:
    handler = RichHandler(
        rich_tracebacks=True,
        show_time=True,
        show_level=True,
        show_path=False,
        omit_repeated_times=False,
        log_time_format=_CONSOLE_TIME_FORMAT,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def log_event(logger: logging.Logger | None, message: str, **fields: Any) -> None:
    """Log an INFO record whose keyword fields become structured extras."""
    if logger is None:
        return
    logger.info(message, extra=fields)


class JsonlFormatter(logging.Formatter):
    """One JSON object per record, with extras and any traceback inlined."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_extract_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


def _extract_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in record.__dict__.items() if key not in _RESERVED}


def _build_file_formatter(fmt: str) -> logging.Formatter:
    if fmt == "jsonl":
        return JsonlFormatter()
    return logging.Formatter(_PLAIN_FORMAT)


def _level_from_string(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO
