"""Named callbacks that are run whenever an error is registered."""

from __future__ import annotations

import threading
from collections.abc import Callable

from errtrail.records import ErrorRecord

ErrorCallback = Callable[[ErrorRecord], None]


def _run_guarded(callback: ErrorCallback, record: ErrorRecord) -> None:
    try:
        callback(record)
    except Exception as exc:  # a failing callback must not disturb error creation
        print(f"Error callback panicked: {exc}")


class ErrorCallbackManager:
    """Thread-safe collection of error callbacks keyed by a unique name."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._callbacks: dict[str, ErrorCallback] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._callbacks

    def _snapshot(self) -> list[ErrorCallback]:
        with self._lock:
            return list(self._callbacks.values())

    def register_callback(self, name: str, callback: ErrorCallback) -> None:
        """Register a callback, replacing any callback of the same name."""
        with self._lock:
            self._callbacks[name] = callback

    def unregister_callback(self, name: str) -> None:
        """Remove the callback of this name, if there is one."""
        with self._lock:
            self._callbacks.pop(name, None)

    def execute_callbacks(self, record: ErrorRecord) -> list[threading.Thread]:
        """Run every callback in its own background thread.

        The started threads are returned so callers may join them.
        """
        threads = []
        for callback in self._snapshot():
            thread = threading.Thread(
                target=_run_guarded,
                args=(callback, record),
                name="errtrail-callback",
                daemon=True,
            )
            thread.start()
            threads.append(thread)
        return threads

    def execute_callbacks_sync(self, record: ErrorRecord) -> None:
        """Run every callback in the calling thread, one after another."""
        for callback in self._snapshot():
            _run_guarded(callback, record)