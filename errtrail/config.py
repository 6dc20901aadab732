"""Configuration and the dynamic sets of known domains and severities."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from errtrail.consts import CallbackMode, Domain, IDFormat, Severity
from errtrail.records import OutputSink

_PREDEFINED_DOMAINS = (
    Domain.AUTH,
    Domain.DB,
    Domain.API,
    Domain.NETWORK,
    Domain.SYSTEM,
    Domain.USER,
)

_PREDEFINED_SEVERITIES = (
    Severity.LOW,
    Severity.MEDIUM,
    Severity.HIGH,
    Severity.CRITICAL,
)


@dataclass
class Config:
    """Registry configuration; the defaults are the default configuration."""

    capture_stack: bool = True
    stack_severity_level: Severity = Severity.HIGH
    max_retry_writes: int = 3
    write_buffer_size: int = 100
    id_format: IDFormat = IDFormat.TIMESTAMP
    callback_mode: CallbackMode = CallbackMode.ASYNC
    pagination_limit: int = 100
    environment: str = "development"
    debug_mode: bool = False
    output_sinks: list[OutputSink] = field(default_factory=list)
    indexing_enabled: bool = True
    filter_internal_stack: bool = False
    correlation_id_enabled: bool = True


def default_config() -> Config:
    """Return a fresh default configuration."""
    return Config()


class DomainManager:
    """Thread-safe set of known domains, seeded with the predefined ones."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._domains: dict[Domain | str, None] = dict.fromkeys(_PREDEFINED_DOMAINS)

    def add_domain(self, domain: Domain | str) -> None:
        with self._lock:
            self._domains[domain] = None

    def remove_domain(self, domain: Domain | str) -> bool:
        """Remove a domain; return whether it was known."""
        with self._lock:
            if domain in self._domains:
                del self._domains[domain]
                return True
            return False

    def has_domain(self, domain: Domain | str) -> bool:
        with self._lock:
            return domain in self._domains

    def list_domains(self) -> list[Domain | str]:
        with self._lock:
            return list(self._domains)


class SeverityManager:
    """Thread-safe set of known severities, seeded with the predefined ones."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._severities: dict[Severity | int, None] = dict.fromkeys(_PREDEFINED_SEVERITIES)

    def add_severity(self, severity: Severity | int) -> None:
        with self._lock:
            self._severities[severity] = None

    def remove_severity(self, severity: Severity | int) -> bool:
        """Remove a severity; return whether it was known."""
        with self._lock:
            if severity in self._severities:
                del self._severities[severity]
                return True
            return False

    def has_severity(self, severity: Severity | int) -> bool:
        with self._lock:
            return severity in self._severities

    def list_severities(self) -> list[Severity | int]:
        with self._lock:
            return list(self._severities)