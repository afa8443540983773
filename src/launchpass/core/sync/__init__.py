"""Removable-to-local library import."""

from launchpass.core.sync.engine import (
    ImportCancelled,
    ImportJob,
    ImportSourceError,
    SyncEngine,
    copy_file,
    copy_folder,
)
from launchpass.core.sync.events import ImportEvents, Signal

__all__ = [
    "ImportCancelled",
    "ImportEvents",
    "ImportJob",
    "ImportSourceError",
    "Signal",
    "SyncEngine",
    "copy_file",
    "copy_folder",
]
