"""Library adapters for supported library formats."""

from launchpass.core.loaders.base import LibraryAdapter, ProgressCallback
from launchpass.core.loaders.launchbox_xml import LaunchBoxLibrary
from launchpass.core.loaders.registry import (
    DEFAULT_ADAPTERS,
    LibraryLoader,
    UnsupportedLibraryTypeError,
    resolve_library_root,
)

__all__ = [
    "DEFAULT_ADAPTERS",
    "LaunchBoxLibrary",
    "LibraryAdapter",
    "LibraryLoader",
    "ProgressCallback",
    "UnsupportedLibraryTypeError",
    "resolve_library_root",
]
