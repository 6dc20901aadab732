"""Severity levels, domains and mode enumerations used across the package."""

from __future__ import annotations

from enum import Enum, IntEnum


class _StrEnum(str, Enum):
    """String enumeration whose str() and format() give the plain value."""

    def __str__(self) -> str:
        return str(self.value)

    def __format__(self, spec: str) -> str:
        return format(str(self.value), spec)


class Severity(IntEnum):
    """Severity levels for errors, ordered from least to most severe."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    def __str__(self) -> str:
        return self.name

    def __format__(self, spec: str) -> str:
        return format(self.name, spec)


class CallbackMode(_StrEnum):
    """How error callbacks are run when an error is registered."""

    ASYNC = "async"
    SYNC = "sync"
    MIXED = "mixed"


class IDFormat(_StrEnum):
    """Format of generated error identifiers."""

    RANDOM = "random"
    UUID = "uuid"
    TIMESTAMP = "timestamp"
    METADATA = "metadata"


class Domain(_StrEnum):
    """Predefined logical groupings for errors.

    Any plain string may also be used as a domain; members compare equal
    to their string values.
    """

    VALIDATION = "validation"
    SYSTEM = "system"
    NETWORK = "network"
    USER = "user"
    API = "api"
    AUTH = "auth"
    DB = "database"


def severity_name(severity: int) -> str:
    """Return the upper-case name of a severity, or "UNKNOWN"."""
    try:
        return Severity(int(severity)).name
    except ValueError:
        return "UNKNOWN"


def is_valid_severity(severity: int) -> bool:
    """Tell whether a severity lies within the predefined range."""
    return Severity.LOW <= int(severity) <= Severity.CRITICAL