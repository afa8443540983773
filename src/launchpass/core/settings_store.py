from __future__ import annotations

import json
import logging
from pathlib import Path
import threading
from typing import Any, Protocol

from launchpass.core.fileio import atomic_write_text

logger = logging.getLogger(__name__)


class SettingsStore(Protocol):
    """Process-wide key-value settings that survive restarts."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemorySettingsStore:
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class JsonSettingsStore:
    """Settings persisted as one JSON object, rewritten atomically on every change.

    A missing or unreadable file starts an empty store; the next write
    replaces it.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._values = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring settings file %s: top-level value is not an object", self.path)
            return {}
        return payload

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value
            self._flush()

    def delete(self, key: str) -> None:
        with self._lock:
            if key in self._values:
                del self._values[key]
                self._flush()

    def _flush(self) -> None:
        atomic_write_text(self.path, json.dumps(self._values, indent=2, sort_keys=True))
