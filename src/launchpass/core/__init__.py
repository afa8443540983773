"""Data-source discovery, import and teardown for LaunchPass."""

from launchpass.core.descriptor_store import MalformedDescriptorError, read_descriptor, write_descriptor
from launchpass.core.locator import ScanResult, SourceLocator
from launchpass.core.models import Descriptor, LibraryType, ResolvedRoot, SourceLocation
from launchpass.core.source_manager import SourceManager
from launchpass.core.sync import ImportCancelled, ImportJob, ImportSourceError, SyncEngine

__all__ = [
    "Descriptor",
    "ImportCancelled",
    "ImportJob",
    "ImportSourceError",
    "LibraryType",
    "MalformedDescriptorError",
    "ResolvedRoot",
    "ScanResult",
    "SourceLocation",
    "SourceLocator",
    "SourceManager",
    "SyncEngine",
    "read_descriptor",
    "write_descriptor",
]
