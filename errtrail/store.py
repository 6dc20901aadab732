"""In-memory storage and search of error records."""

from __future__ import annotations

import threading
from collections.abc import Callable

from errtrail.consts import Domain, Severity
from errtrail.records import ErrorRecord


class ErrorStore:
    """Thread-safe in-memory store of error records keyed by ID."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: dict[str, ErrorRecord] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def add(self, record: ErrorRecord) -> None:
        """Store a record, replacing any with the same ID."""
        with self._lock:
            self._records[record.id] = record

    def get(self, error_id: str) -> ErrorRecord | None:
        """Return the record with this ID, or None."""
        with self._lock:
            return self._records.get(error_id)

    def _select(self, predicate: Callable[[ErrorRecord], bool]) -> list[ErrorRecord]:
        with self._lock:
            return [record for record in self._records.values() if predicate(record)]

    def search_by_domain(self, domain: Domain | str) -> list[ErrorRecord]:
        return self._select(lambda record: record.domain == domain)

    def search_by_severity(self, severity: Severity | int) -> list[ErrorRecord]:
        return self._select(lambda record: record.severity == severity)

    def search_by_code(self, code: str) -> list[ErrorRecord]:
        return self._select(lambda record: record.code == code)

    def search_by_status(self, status: int) -> list[ErrorRecord]:
        return self._select(lambda record: record.status == status)

    def search_by_user_id(self, user_id: str) -> list[ErrorRecord]:
        return self._select(lambda record: record.user_id == user_id)

    def search_by_request_id(self, request_id: str) -> list[ErrorRecord]:
        return self._select(lambda record: record.request_id == request_id)

    def clear(self) -> None:
        """Remove every record."""
        with self._lock:
            self._records = {}