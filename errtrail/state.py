"""Process-wide registry, callback manager and logger."""

from __future__ import annotations

import threading

from errtrail.callback import ErrorCallbackManager
from errtrail.logs import Logger, StdLogger
from errtrail.registry import ErrorRegistry

DEFAULT_REGISTRY_FILE = "errors.json"

_lock = threading.RLock()
_registry: ErrorRegistry | None = None
_callback_manager: ErrorCallbackManager | None = None
_logger: Logger | None = None


def get_callback_manager() -> ErrorCallbackManager:
    """Return the shared callback manager, creating it on first use."""
    global _callback_manager
    with _lock:
        if _callback_manager is None:
            _callback_manager = ErrorCallbackManager()
        return _callback_manager


def get_registry() -> ErrorRegistry:
    """Return the shared registry, creating it on first use."""
    global _registry
    with _lock:
        if _registry is None:
            _registry = ErrorRegistry(
                DEFAULT_REGISTRY_FILE, callback_manager=get_callback_manager()
            )
        return _registry


def get_logger() -> Logger:
    """Return the shared logger used when errors are created."""
    global _logger
    with _lock:
        if _logger is None:
            _logger = StdLogger()
        return _logger


def set_logger(logger: Logger) -> None:
    """Replace the shared logger used when errors are created."""
    global _logger
    with _lock:
        _logger = logger


def reset() -> None:
    """Close the shared registry and start afresh with new shared objects."""
    global _registry, _callback_manager, _logger
    with _lock:
        old = _registry
        _registry = None
        _callback_manager = None
        _logger = None
    if old is not None:
        old.close()