"""Root logger construction with json, console and logfmt output."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

PANIC_LEVEL = logging.ERROR + 5
FATAL_LEVEL = logging.CRITICAL

_LEVELS = {
    "debug": logging.DEBUG,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "panic": PANIC_LEVEL,
    "fatal": FATAL_LEVEL,
}

_LEVEL_NAMES = (
    (FATAL_LEVEL, "fatal"),
    (PANIC_LEVEL, "panic"),
    (logging.ERROR, "error"),
    (logging.WARNING, "warn"),
    (logging.INFO, "info"),
)

LOGGER_NAME = "vigilante"


def _level_name(levelno: int) -> str:
    for threshold, name in _LEVEL_NAMES:
        if levelno >= threshold:
            return name
    return "debug"


def _timestamp(record: logging.LogRecord) -> str:
    moment = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _fields(record: logging.LogRecord) -> dict:
    fields = getattr(record, "fields", None)
    return dict(fields) if isinstance(fields, dict) else {}


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "lvl": _level_name(record.levelno),
            "ts": _timestamp(record),
            "msg": record.getMessage(),
        }
        entry.update(_fields(record))
        if record.exc_info:
            entry["stacktrace"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class _ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        parts = [_timestamp(record), _level_name(record.levelno), record.getMessage()]
        fields = _fields(record)
        if fields:
            parts.append(json.dumps(fields, default=str))
        line = "\t".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _logfmt_value(value: object) -> str:
    text = value if isinstance(value, str) else str(value)
    if not text or any(ch in text for ch in ' ="\\') or any(ord(ch) < 0x20 for ch in text):
        return json.dumps(text)
    return text


class _LogfmtFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        pairs = [
            ("ts", _timestamp(record)),
            ("lvl", _level_name(record.levelno)),
            ("msg", record.getMessage()),
        ]
        pairs.extend(_fields(record).items())
        if record.exc_info:
            pairs.append(("stacktrace", self.formatException(record.exc_info)))
        return " ".join(f"{key}={_logfmt_value(value)}" for key, value in pairs)


def new_root_logger(log_format: str, log_level: str) -> logging.Logger:
    """Configure and return the root application logger writing to stderr.

    Unknown levels fall back to info; unknown formats raise ValueError.
    """
    if log_format == "json":
        formatter: logging.Formatter = _JSONFormatter()
    elif log_format in ("auto", "console"):
        formatter = _ConsoleFormatter()
    elif log_format == "logfmt":
        formatter = _LogfmtFormatter()
    else:
        raise ValueError(f"unrecognized log format {log_format!r}")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(_LEVELS.get(log_level, logging.INFO))
    logger.propagate = False
    return logger