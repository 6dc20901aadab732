"""The error type and the functions that create, register and identify errors."""

from __future__ import annotations

import os
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, NamedTuple

from errtrail import state
from errtrail.consts import Domain, Severity, is_valid_severity, severity_name
from errtrail.correlation import CorrelationContext, extract_correlation_ids
from errtrail.records import ErrorRecord
from errtrail.stacks import capture_stack, get_caller_info


def _now() -> datetime:
    return datetime.now().astimezone()


def _format_timestamp(ts: datetime) -> str:
    text = ts.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def _parse_timestamp(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _as_severity(value: int) -> Severity | int:
    return Severity(value) if is_valid_severity(value) else value


@dataclass(eq=False)
class Error(Exception):
    """An error carrying domain, severity, status, code and correlation data."""

    id: str
    code: str
    domain: Domain | str
    severity: Severity | int
    status: int
    message: str
    timestamp: datetime = field(default_factory=_now)
    stack: str = ""
    metadata: dict[str, str] | None = None
    err: BaseException | None = None
    request_id: str = ""
    session_id: str = ""
    user_id: str = ""
    trace_id: str = ""

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.err is not None:
            self.__cause__ = self.err

    def _prefix(self) -> str:
        return (
            f"{self.id} [{self.domain}:{severity_name(self.severity)}:"
            f"{self.status}:{self.code}] {self.message}"
        )

    def __str__(self) -> str:
        if self.err is not None:
            return f"{self._prefix()}: {self.err}"
        return self._prefix()

    def detail(self) -> str:
        """Return the message followed by the captured stack."""
        return f"{self}\nStack: {self.stack}"

    def to_dict(self, debug_mode: bool | None = None) -> dict[str, Any]:
        """Return a JSON-ready mapping; empty optional fields are left out.

        When ``debug_mode`` is None the shared registry's setting is used.
        """
        if debug_mode is None:
            debug_mode = state.get_registry().config.debug_mode
        data: dict[str, Any] = {
            "id": self.id,
            "code": self.code,
            "domain": str(self.domain),
            "severity": int(self.severity),
            "status": self.status,
            "message": self.message,
            "timestamp": _format_timestamp(self.timestamp),
        }
        optional: dict[str, Any] = {
            "stack": self.stack,
            "metadata": dict(self.metadata) if self.metadata else None,
            "underlying_error": str(self.err) if self.err is not None else "",
            "request_id": self.request_id,
            "session_id": self.session_id,
            "user_id": self.user_id,
            "trace_id": self.trace_id,
        }
        data.update((key, value) for key, value in optional.items() if value)
        include_debug = debug_mode or self.severity in (Severity.HIGH, Severity.CRITICAL)
        if include_debug and self.stack:
            data["debug_info"] = {"stack": self.stack}
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Error:
        """Rebuild an error from a mapping made by ``to_dict``."""
        ts = data.get("timestamp")
        timestamp = _parse_timestamp(ts) if ts else datetime(1, 1, 1, tzinfo=timezone.utc)
        underlying = data.get("underlying_error") or ""
        stack = data.get("stack") or ""
        debug_info = data.get("debug_info") or {}
        if debug_info.get("stack"):
            stack = debug_info["stack"]
        metadata = data.get("metadata")
        return cls(
            id=data.get("id", ""),
            code=data.get("code", ""),
            domain=data.get("domain", ""),
            severity=_as_severity(int(data.get("severity", 0))),
            status=int(data.get("status", 0)),
            message=data.get("message", ""),
            timestamp=timestamp,
            stack=stack,
            metadata=dict(metadata) if metadata else None,
            err=Exception(underlying) if underlying else None,
            request_id=data.get("request_id", ""),
            session_id=data.get("session_id", ""),
            user_id=data.get("user_id", ""),
            trace_id=data.get("trace_id", ""),
        )


class ParsedID(NamedTuple):
    timestamp: int
    domain: str
    ops: str
    severity: Severity | int
    status: int


def generate_id(domain: Domain | str, ops: str, severity: Severity | int, status: int) -> str:
    """Build an ID of the form <HEXTIME>-<domain>-<ops>-<severity>-<status>."""
    if not ops:
        ops = "n/a"
    ts_hex = format(int(time.time()), "X")
    return f"{ts_hex}-{domain}-{ops}-{int(severity)}-{status}"


def parse_id(error_id: str) -> ParsedID:
    """Split an error ID into its parts; raise ValueError when it is malformed."""
    parts = error_id.split("-")
    if len(parts) != 5:
        raise ValueError("invalid error ID format")
    try:
        timestamp = int(parts[0], 16)
    except ValueError:
        raise ValueError("invalid timestamp in error ID") from None
    try:
        severity = int(parts[3])
    except ValueError:
        raise ValueError("invalid severity code in error ID") from None
    try:
        status = int(parts[4])
    except ValueError:
        raise ValueError("invalid status in error ID") from None
    return ParsedID(timestamp, parts[1], parts[2], _as_severity(severity), status)


def get_environment() -> str:
    """Return $ENVIRONMENT, else $ENV, else "development"."""
    return os.environ.get("ENVIRONMENT") or os.environ.get("ENV") or "development"


def get_version() -> str:
    """Return $VERSION, else $APP_VERSION, else "unknown"."""
    return os.environ.get("VERSION") or os.environ.get("APP_VERSION") or "unknown"


def _create(
    ctx: CorrelationContext | None,
    underlying: BaseException | None,
    domain: Domain | str,
    severity: Severity | int,
    status: int,
    code: str,
    message: str,
    metadata: dict[str, str] | None,
    verb: str,
) -> Error:
    registry = state.get_registry()
    logger = state.get_logger()
    if not registry.has_domain(domain):
        logger.warn(
            f"{verb} error with unknown domain", {"domain": str(domain), "code": code}
        )
    if not registry.has_severity(severity):
        logger.warn(
            f"{verb} error with unknown severity",
            {"severity": severity_name(severity), "code": code},
        )

    caller = get_caller_info()
    ids = extract_correlation_ids(ctx, metadata)
    ops = (metadata or {}).get("operation", "")

    error = Error(
        id=generate_id(domain, ops, severity, status),
        code=code,
        domain=domain,
        severity=severity,
        status=status,
        message=message,
        stack=capture_stack(registry.config, severity),
        metadata=metadata,
        err=underlying,
        request_id=ids.request_id,
        session_id=ids.session_id,
        user_id=ids.user_id,
        trace_id=ids.trace_id,
    )
    record = ErrorRecord(
        id=error.id,
        code=code,
        domain=domain,
        severity=severity,
        status=status,
        message=message,
        timestamp=error.timestamp,
        stack=error.stack,
        metadata=metadata,
        file=caller.file,
        line=caller.line,
        function=caller.function,
        environment=get_environment(),
        version=get_version(),
        request_id=ids.request_id,
        session_id=ids.session_id,
        user_id=ids.user_id,
        trace_id=ids.trace_id,
    )
    registry.register(record)
    return error


def new_error_with_context(
    ctx: CorrelationContext | None,
    domain: Domain | str,
    severity: Severity | int,
    status: int,
    code: str,
    message: str,
    metadata: dict[str, str] | None = None,
) -> Error:
    """Create and register an error, taking correlation IDs from the context."""
    return _create(ctx, None, domain, severity, status, code, message, metadata, "Creating")


def new_error(
    domain: Domain | str,
    severity: Severity | int,
    status: int,
    code: str,
    message: str,
    metadata: dict[str, str] | None = None,
) -> Error:
    """Create and register an error."""
    return _create(None, None, domain, severity, status, code, message, metadata, "Creating")


def wrap_error_with_context(
    ctx: CorrelationContext | None,
    underlying: BaseException | None,
    domain: Domain | str,
    severity: Severity | int,
    status: int,
    code: str,
    message: str,
    metadata: dict[str, str] | None = None,
) -> Error:
    """Wrap an existing exception, taking correlation IDs from the context."""
    return _create(
        ctx, underlying, domain, severity, status, code, message, metadata, "Wrapping"
    )


def wrap_error(
    underlying: BaseException | None,
    domain: Domain | str,
    severity: Severity | int,
    status: int,
    code: str,
    message: str,
    metadata: dict[str, str] | None = None,
) -> Error:
    """Wrap an existing exception in a registered error."""
    return _create(
        None, underlying, domain, severity, status, code, message, metadata, "Wrapping"
    )


def new_auth_error(code: str, message: str, metadata: dict[str, str] | None = None) -> Error:
    return new_error(Domain.AUTH, Severity.MEDIUM, 401, code, message, metadata)


def new_auth_error_with_context(
    ctx: CorrelationContext | None,
    code: str,
    message: str,
    metadata: dict[str, str] | None = None,
) -> Error:
    return new_error_with_context(ctx, Domain.AUTH, Severity.MEDIUM, 401, code, message, metadata)


def new_db_error(code: str, message: str, metadata: dict[str, str] | None = None) -> Error:
    return new_error(Domain.DB, Severity.HIGH, 500, code, message, metadata)


def new_db_error_with_context(
    ctx: CorrelationContext | None,
    code: str,
    message: str,
    metadata: dict[str, str] | None = None,
) -> Error:
    return new_error_with_context(ctx, Domain.DB, Severity.HIGH, 500, code, message, metadata)


def _api_severity(status: int) -> Severity:
    if status >= 500:
        return Severity.HIGH
    if status >= 400:
        return Severity.MEDIUM
    return Severity.LOW


def new_api_error(
    status: int, code: str, message: str, metadata: dict[str, str] | None = None
) -> Error:
    """Create an API error whose severity follows from the status code."""
    return new_error(Domain.API, _api_severity(status), status, code, message, metadata)


def new_api_error_with_context(
    ctx: CorrelationContext | None,
    status: int,
    code: str,
    message: str,
    metadata: dict[str, str] | None = None,
) -> Error:
    return new_error_with_context(
        ctx, Domain.API, _api_severity(status), status, code, message, metadata
    )


def new_critical_error(
    domain: Domain | str, code: str, message: str, metadata: dict[str, str] | None = None
) -> Error:
    return new_error(domain, Severity.CRITICAL, 500, code, message, metadata)


def new_critical_error_with_context(
    ctx: CorrelationContext | None,
    domain: Domain | str,
    code: str,
    message: str,
    metadata: dict[str, str] | None = None,
) -> Error:
    return new_error_with_context(ctx, domain, Severity.CRITICAL, 500, code, message, metadata)


def new_validation_error(
    code: str, message: str, details: dict[str, str] | None = None
) -> Error:
    return new_error(Domain.VALIDATION, Severity.MEDIUM, 400, code, message, details)