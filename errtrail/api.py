"""Module-level helpers over the shared registry: checks, lookup, search and HTTP glue."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from typing import Any, TextIO

from errtrail import state
from errtrail.callback import ErrorCallback
from errtrail.config import Config
from errtrail.consts import Domain, Severity, severity_name
from errtrail.errors import Error, new_critical_error
from errtrail.logs import Logger
from errtrail.records import ErrorRecord, PaginationOptions, SearchCriteria, SearchResult

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]


class ErrorNotFound(LookupError):
    """Raised when no error record exists for an ID."""


def _find_error(err: BaseException | None) -> Error | None:
    """Return the first Error found by following the exception chain."""
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, Error):
            return err
        seen.add(id(err))
        err = err.__cause__ or (None if err.__suppress_context__ else err.__context__)
    return None


def is_status(err: BaseException | None, target: int) -> bool:
    """Tell whether the first Error in the chain has this status."""
    found = _find_error(err)
    return found is not None and found.status == target


def is_code(err: BaseException | None, code: str) -> bool:
    """Tell whether the first Error in the chain has this code."""
    found = _find_error(err)
    return found is not None and found.code == code


def is_domain(err: BaseException | None, domain: Domain | str) -> bool:
    """Tell whether the first Error in the chain has this domain."""
    found = _find_error(err)
    return found is not None and found.domain == domain


def is_severity(err: BaseException | None, severity: Severity | int) -> bool:
    """Tell whether the first Error in the chain has this severity."""
    found = _find_error(err)
    return found is not None and found.severity == severity


def get_error_id(err: BaseException | None) -> str:
    """Return the ID of the first Error in the chain, or ""."""
    found = _find_error(err)
    return found.id if found is not None else ""


def lookup_error(error_id: str) -> ErrorRecord:
    """Return the stored record for an ID; raise ErrorNotFound when there is none."""
    record = state.get_registry().lookup(error_id)
    if record is None:
        raise ErrorNotFound(f"error with ID {error_id} not found")
    return record


def _rfc3339(record: ErrorRecord) -> str:
    text = record.timestamp.isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def print_error_details(error_id: str, file: TextIO | None = None) -> None:
    """Print everything recorded about an error; raise ErrorNotFound if unknown."""
    record = lookup_error(error_id)
    out = file if file is not None else sys.stdout
    lines = [
        "=== ERROR DETAILS ===",
        f"ID: {record.id}",
        f"Code: {record.code}",
        f"Domain: {record.domain}",
        f"Severity: {severity_name(record.severity)}",
        f"Status: {record.status}",
        f"Message: {record.message}",
        f"Timestamp: {_rfc3339(record)}",
        f"File: {record.file}:{record.line}",
        f"Function: {record.function}",
        f"Environment: {record.environment}",
        f"Version: {record.version}",
    ]
    if record.user_id:
        lines.append(f"User ID: {record.user_id}")
    if record.request_id:
        lines.append(f"Request ID: {record.request_id}")
    if record.session_id:
        lines.append(f"Session ID: {record.session_id}")
    if record.metadata:
        lines.append("Metadata:")
        lines.extend(f"  {key}: {value}" for key, value in record.metadata.items())
    lines.append(f"Stack Trace:\n{record.stack}")
    lines.append("=====================")
    out.write("\n".join(lines) + "\n")


def search_errors(criteria: SearchCriteria) -> list[ErrorRecord]:
    """Search the shared registry by the first criterion that is set."""
    return state.get_registry().search(criteria)


def search_errors_with_pagination(
    criteria: SearchCriteria, pagination: PaginationOptions
) -> SearchResult:
    """Search the shared registry and return one page of results."""
    return state.get_registry().search_with_pagination(criteria, pagination)


def get_config() -> Config:
    """Return the shared registry's configuration."""
    return state.get_registry().config


def set_config(config: Config) -> None:
    """Replace the shared registry's configuration."""
    state.get_registry().config = config


def get_callback_errors() -> list[Exception]:
    return state.get_registry().get_callback_errors()


def clear_callback_errors() -> None:
    state.get_registry().clear_callback_errors()


def register_error_callback(name: str, callback: ErrorCallback) -> None:
    """Register a callback run for every error registered in the shared registry."""
    state.get_callback_manager().register_callback(name, callback)


def unregister_error_callback(name: str) -> None:
    state.get_callback_manager().unregister_callback(name)


def add_domain(domain: Domain | str) -> None:
    state.get_registry().add_domain(domain)


def remove_domain(domain: Domain | str) -> bool:
    return state.get_registry().remove_domain(domain)


def has_domain(domain: Domain | str) -> bool:
    return state.get_registry().has_domain(domain)


def list_domains() -> list[Domain | str]:
    return state.get_registry().list_domains()


def add_severity(severity: Severity | int) -> None:
    state.get_registry().add_severity(severity)


def remove_severity(severity: Severity | int) -> bool:
    return state.get_registry().remove_severity(severity)


def has_severity(severity: Severity | int) -> bool:
    return state.get_registry().has_severity(severity)


def list_severities() -> list[Severity | int]:
    return state.get_registry().list_severities()


def set_global_logger(logger: Logger) -> None:
    """Use this logger for the shared registry and for error creation."""
    state.get_registry().set_logger(logger)
    state.set_logger(logger)


def get_global_logger() -> Logger:
    return state.get_logger()


def error_middleware(app: WSGIApp) -> WSGIApp:
    """Wrap a WSGI application so unhandled exceptions become a registered 500."""

    def wrapped(environ: dict, start_response: Callable[..., Any]) -> list[bytes]:
        try:
            result = app(environ, start_response)
            try:
                return list(result)
            finally:
                close = getattr(result, "close", None)
                if close is not None:
                    close()
        except Exception:
            err = new_critical_error(Domain.SYSTEM, "SYS_002", "Unhandled panic", None)
            print_error_details(err.id)
            start_response(
                "500 Internal Server Error",
                [
                    ("Content-Type", "text/plain; charset=utf-8"),
                    ("X-Content-Type-Options", "nosniff"),
                ],
                sys.exc_info(),
            )
            return [b"Internal Server Error\n"]

    return wrapped


def render_error_page(
    status: int,
    title: str,
    message: str,
    suggestion: str,
    details: str,
    retry_url: str,
) -> tuple[int, str]:
    """Return the status and a simple HTML error page."""
    html = (
        f"<html><head><title>{title}</title></head><body>"
        f"<h1>{title}</h1>"
        f"<p>{message}</p>"
        f"<p>{suggestion}</p>"
        f"<p>{details}</p>"
        f"<a href='{retry_url}'>Retry</a>"
        "</body></html>"
    )
    return status, html