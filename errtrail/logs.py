"""Pluggable loggers that accept a message plus a mapping of fields."""

from __future__ import annotations

import logging
import sys
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, TextIO


def format_fields(fields: Mapping[str, Any] | None) -> str:
    """Render fields as "{k: v, k2: v2}", or an empty string when there are none."""
    if not fields:
        return ""
    return "{" + ", ".join(f"{key}: {value}" for key, value in fields.items()) + "}"


class Logger(ABC):
    """Interface for the loggers the registry writes through."""

    @abstractmethod
    def debug(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        """Log at debug level."""

    @abstractmethod
    def info(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        """Log at info level."""

    @abstractmethod
    def warn(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        """Log at warning level."""

    @abstractmethod
    def error(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        """Log at error level."""

    @abstractmethod
    def fatal(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        """Log at fatal level and terminate the process."""


class StdLogger(Logger):
    """Writes "[LEVEL] message {fields}" lines to a text stream."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def _write(self, level: str, msg: str, fields: Mapping[str, Any] | None) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        line = f"[{level}] {msg} {format_fields(fields)}\n"
        with self._lock:
            stream.write(line)
            stream.flush()

    def debug(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        self._write("DEBUG", msg, fields)

    def info(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        self._write("INFO", msg, fields)

    def warn(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        self._write("WARN", msg, fields)

    def error(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        self._write("ERROR", msg, fields)

    def fatal(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        self._write("FATAL", msg, fields)
        raise SystemExit(1)


class LoggingLogger(Logger):
    """Forwards to a standard-library logging.Logger.

    The fields are appended to the message and attached to the log record
    as its ``fields`` attribute.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger if logger is not None else logging.getLogger("errtrail")

    def _log(self, level: int, msg: str, fields: Mapping[str, Any] | None) -> None:
        rendered = format_fields(fields)
        text = f"{msg} {rendered}" if rendered else msg
        self._logger.log(level, "%s", text, extra={"fields": dict(fields or {})})

    def debug(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        self._log(logging.DEBUG, msg, fields)

    def info(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        self._log(logging.INFO, msg, fields)

    def warn(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        self._log(logging.WARNING, msg, fields)

    def error(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        self._log(logging.ERROR, msg, fields)

    def fatal(self, msg: str, fields: Mapping[str, Any] | None = None) -> None:
        self._log(logging.ERROR, msg, fields)
        raise SystemExit(1)