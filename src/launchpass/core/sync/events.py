from __future__ import annotations

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Signal:
    """A list of callbacks fired in connection order.

    A subscriber that raises is logged and skipped so one broken listener
    cannot abort an import.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._callbacks: list[Callable[..., Any]] = []

    def connect(self, callback: Callable[..., Any]) -> None:
        with self._lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)

    def disconnect(self, callback: Callable[..., Any]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def emit(self, *args: Any) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(*args)
            except Exception:  # noqa: BLE001
                logger.exception("Subscriber to %s failed", self.name)


class ImportEvents:
    """Lifecycle notifications of the sync engine.

    started(), progress(percent: float), finished(success: bool), error()
    """

    def __init__(self) -> None:
        self.started = Signal("import_started")
        self.progress = Signal("import_progress")
        self.finished = Signal("import_finished")
        self.error = Signal("import_error")
