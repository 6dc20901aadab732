"""Registry that stores, logs, dispatches and writes out error records."""

from __future__ import annotations

import queue
import threading
from typing import Any

from errtrail.callback import ErrorCallbackManager
from errtrail.config import Config, DomainManager, SeverityManager, default_config
from errtrail.consts import CallbackMode, Domain, Severity, severity_name
from errtrail.logs import Logger, StdLogger
from errtrail.records import ErrorRecord, PaginationOptions, SearchCriteria, SearchResult
from errtrail.store import ErrorStore

_STOP = object()


class ErrorRegistry:
    """Keeps error records and feeds them to callbacks and output sinks.

    Records are written to the configured output sinks by a background
    thread through a bounded buffer; when the buffer is full the record is
    dropped from the sinks with a warning, though it stays in the store.
    """

    def __init__(
        self,
        filename: str = "errors.json",
        config: Config | None = None,
        callback_manager: ErrorCallbackManager | None = None,
    ) -> None:
        self.filename = filename
        self._lock = threading.RLock()
        self._config = config if config is not None else default_config()
        self.callback_manager = (
            callback_manager if callback_manager is not None else ErrorCallbackManager()
        )
        self.domain_manager = DomainManager()
        self.severity_manager = SeverityManager()
        self._logger: Logger = StdLogger()
        self.storage = ErrorStore()
        self._queue: queue.Queue[Any] = queue.Queue(
            maxsize=max(self._config.write_buffer_size, 1)
        )
        self._callback_errors: list[Exception] = []
        self._callback_errors_lock = threading.Lock()
        self._closed = False
        self._writer = threading.Thread(
            target=self._background_writer, name="errtrail-writer", daemon=True
        )
        self._writer.start()

    @property
    def config(self) -> Config:
        with self._lock:
            return self._config

    @config.setter
    def config(self, value: Config) -> None:
        with self._lock:
            self._config = value

    @property
    def logger(self) -> Logger:
        with self._lock:
            return self._logger

    def __enter__(self) -> ErrorRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _background_writer(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            for sink in list(self.config.output_sinks):
                try:
                    sink.write(item)
                except Exception as exc:
                    self.logger.error(
                        "Failed to write to output sink",
                        {"error": str(exc), "error_id": item.id},
                    )

    def close(self) -> None:
        """Stop the writer after pending records are written, then close the sinks."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(_STOP)
        self._writer.join()
        for sink in list(self.config.output_sinks):
            try:
                sink.close()
            except Exception as exc:
                self.logger.error("Failed to close output sink", {"error": str(exc)})

    def register(self, record: ErrorRecord) -> None:
        """Store a record, log it by severity, run callbacks and queue it for the sinks."""
        with self._lock:
            logger = self._logger
            if not self.domain_manager.has_domain(record.domain):
                logger.warn(
                    "Unknown domain used in error",
                    {"domain": str(record.domain), "error_id": record.id},
                )
            if not self.severity_manager.has_severity(record.severity):
                logger.warn(
                    "Unknown severity used in error",
                    {"severity": severity_name(record.severity), "error_id": record.id},
                )

            self.storage.add(record)

            fields: dict[str, Any] = {
                "error_id": record.id,
                "domain": str(record.domain),
                "code": record.code,
                "status": record.status,
                "file": record.file,
                "line": record.line,
                "function": record.function,
            }
            if record.user_id:
                fields["user_id"] = record.user_id
            if record.request_id:
                fields["request_id"] = record.request_id
            if record.trace_id:
                fields["trace_id"] = record.trace_id

            log = {
                Severity.CRITICAL: logger.fatal,
                Severity.HIGH: logger.error,
                Severity.MEDIUM: logger.warn,
                Severity.LOW: logger.info,
            }.get(record.severity, logger.error)
            log(record.message, fields)

            self._execute_callbacks(record)

            try:
                self._queue.put_nowait(record)
            except queue.Full:
                logger.warn("Write buffer full, dropping error record", {"error_id": record.id})

    def _execute_callbacks(self, record: ErrorRecord) -> None:
        mode = self._config.callback_mode
        if mode == CallbackMode.SYNC or (
            mode == CallbackMode.MIXED and record.severity == Severity.CRITICAL
        ):
            self.callback_manager.execute_callbacks_sync(record)
        else:
            self.callback_manager.execute_callbacks(record)

    def search(self, criteria: SearchCriteria) -> list[ErrorRecord]:
        """Search by the first criterion that is set, in a fixed order.

        With no criterion set, the records with an empty domain are returned.
        """
        storage = self.storage
        if criteria.domain is not None:
            return storage.search_by_domain(criteria.domain)
        if criteria.severity is not None:
            return storage.search_by_severity(criteria.severity)
        if criteria.code:
            return storage.search_by_code(criteria.code)
        if criteria.status is not None:
            return storage.search_by_status(criteria.status)
        if criteria.user_id:
            return storage.search_by_user_id(criteria.user_id)
        if criteria.request_id:
            return storage.search_by_request_id(criteria.request_id)
        return storage.search_by_domain("")

    def search_with_pagination(
        self, criteria: SearchCriteria, pagination: PaginationOptions
    ) -> SearchResult:
        """Search, then return the page selected by offset and limit."""
        with self._lock:
            matches = self.search(criteria)
        total = len(matches)
        start = pagination.offset
        if start > total:
            return SearchResult(
                records=[],
                total=total,
                offset=pagination.offset,
                limit=pagination.limit,
                has_more=False,
            )
        end = min(start + pagination.limit, total)
        return SearchResult(
            records=matches[start:end],
            total=total,
            offset=pagination.offset,
            limit=pagination.limit,
            has_more=end < total,
        )

    def lookup(self, error_id: str) -> ErrorRecord | None:
        """Return the record with this ID, or None."""
        with self._lock:
            return self.storage.get(error_id)

    def get_callback_errors(self) -> list[Exception]:
        """Return a copy of the errors collected from callbacks."""
        with self._callback_errors_lock:
            return list(self._callback_errors)

    def clear_callback_errors(self) -> None:
        with self._callback_errors_lock:
            self._callback_errors.clear()

    def add_domain(self, domain: Domain | str) -> None:
        self.domain_manager.add_domain(domain)
        self.logger.info("Domain added", {"domain": str(domain)})

    def remove_domain(self, domain: Domain | str) -> bool:
        """Remove a domain; return whether it was known."""
        removed = self.domain_manager.remove_domain(domain)
        if removed:
            self.logger.info("Domain removed", {"domain": str(domain)})
        else:
            self.logger.warn("Attempted to remove non-existent domain", {"domain": str(domain)})
        return removed

    def has_domain(self, domain: Domain | str) -> bool:
        return self.domain_manager.has_domain(domain)

    def list_domains(self) -> list[Domain | str]:
        return self.domain_manager.list_domains()

    def add_severity(self, severity: Severity | int) -> None:
        self.severity_manager.add_severity(severity)
        self.logger.info("Severity added", {"severity": severity_name(severity)})

    def remove_severity(self, severity: Severity | int) -> bool:
        """Remove a severity; return whether it was known."""
        removed = self.severity_manager.remove_severity(severity)
        if removed:
            self.logger.info("Severity removed", {"severity": severity_name(severity)})
        else:
            self.logger.warn(
                "Attempted to remove non-existent severity",
                {"severity": severity_name(severity)},
            )
        return removed

    def has_severity(self, severity: Severity | int) -> bool:
        return self.severity_manager.has_severity(severity)

    def list_severities(self) -> list[Severity | int]:
        return self.severity_manager.list_severities()

    def set_logger(self, logger: Logger) -> None:
        with self._lock:
            self._logger = logger