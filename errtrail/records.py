"""Error records, search parameters and output sinks."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from errtrail.consts import Domain, Severity


def _format_timestamp(ts: datetime) -> str:
    text = ts.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class ErrorRecord:
    """Everything known about one error, kept for later lookup and debugging."""

    id: str
    code: str
    domain: Domain | str
    severity: Severity | int
    status: int
    message: str
    timestamp: datetime = field(default_factory=_now)
    stack: str = ""
    metadata: dict[str, str] | None = None
    file: str = ""
    line: int = 0
    function: str = ""
    user_id: str = ""
    request_id: str = ""
    session_id: str = ""
    trace_id: str = ""
    environment: str = ""
    version: str = ""

    def to_dict(self, debug_mode: bool = False) -> dict[str, Any]:
        """Return a JSON-ready mapping; empty optional fields are left out.

        In debug mode, or for high and critical severities, source location
        and stack are moved into a nested ``debug_info`` mapping.
        """
        include_debug = debug_mode or self.severity in (Severity.HIGH, Severity.CRITICAL)
        data: dict[str, Any] = {
            "id": self.id,
            "code": self.code,
            "domain": str(self.domain),
            "severity": int(self.severity),
            "status": self.status,
            "message": self.message,
            "timestamp": _format_timestamp(self.timestamp),
        }
        debug_fields = {
            "file": self.file,
            "line": self.line,
            "function": self.function,
            "stack": self.stack,
        }
        optional: dict[str, Any] = {
            "stack": "" if include_debug else self.stack,
            "metadata": dict(self.metadata) if self.metadata else None,
            "file": "" if include_debug else self.file,
            "line": 0 if include_debug else self.line,
            "function": "" if include_debug else self.function,
            "user_id": self.user_id,
            "request_id": self.request_id,
            "session_id": self.session_id,
            "trace_id": self.trace_id,
            "environment": self.environment,
            "version": self.version,
        }
        data.update((key, value) for key, value in optional.items() if value)
        if include_debug:
            data["debug_info"] = {key: value for key, value in debug_fields.items() if value}
        return data

    def to_json(self, debug_mode: bool = False) -> str:
        """Serialise the record as JSON text."""
        return json.dumps(self.to_dict(debug_mode))


@dataclass
class SearchCriteria:
    """Search parameters; the first one set decides the search."""

    domain: Domain | str | None = None
    severity: Severity | int | None = None
    code: str = ""
    status: int | None = None
    user_id: str = ""
    request_id: str = ""
    from_time: datetime | None = None
    to_time: datetime | None = None


@dataclass
class PaginationOptions:
    """Offset and page size for paginated searches."""

    offset: int = 0
    limit: int = 100


@dataclass
class SearchResult:
    """One page of search results."""

    records: list[ErrorRecord] = field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 0
    has_more: bool = False

    def to_dict(self, debug_mode: bool = False) -> dict[str, Any]:
        """Return a JSON-ready mapping of the page."""
        return {
            "records": [record.to_dict(debug_mode) for record in self.records],
            "total": self.total,
            "offset": self.offset,
            "limit": self.limit,
            "has_more": self.has_more,
        }


class OutputSink(ABC):
    """A backend that error records are written to."""

    @abstractmethod
    def write(self, record: ErrorRecord) -> None:
        """Write one record; raise on failure."""

    @abstractmethod
    def close(self) -> None:
        """Release any resources held by the sink."""


class NullOutputSink(OutputSink):
    """A sink that discards everything."""

    def write(self, record: ErrorRecord) -> None:
        return None

    def close(self) -> None:
        return None