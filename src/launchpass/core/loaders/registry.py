from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from launchpass.core.errors import LaunchPassError
from launchpass.core.loaders.base import LibraryAdapter
from launchpass.core.loaders.launchbox_xml import LaunchBoxLibrary
from launchpass.core.models import LibraryType, ResolvedRoot
from launchpass.core.playlists import PlayLaterList
from launchpass.core.settings_store import SettingsStore

logger = logging.getLogger(__name__)

DEFAULT_ADAPTERS: dict[LibraryType, type[LibraryAdapter]] = {
    LibraryType.LAUNCHBOX: LaunchBoxLibrary,
}


class UnsupportedLibraryTypeError(LaunchPassError):
    """Raised when no adapter is registered for a descriptor's library type."""


def resolve_library_root(resolved_root: ResolvedRoot) -> Path:
    """Absolute library folder: the descriptor's relative path joined to its own folder, with ./.. collapsed."""
    base = resolved_root.descriptor_path.parent
    joined = base / resolved_root.descriptor.relative_path.replace("\\", "/")
    return Path(os.path.normpath(os.path.abspath(joined)))


class LibraryLoader:
    """Builds the adapter matching a descriptor's library type."""

    def __init__(
        self,
        adapters: Mapping[LibraryType, type[LibraryAdapter]] | None = None,
        play_later_dir: Path | None = None,
        settings: SettingsStore | None = None,
    ) -> None:
        self._adapters: dict[LibraryType, type[LibraryAdapter]] = dict(adapters or DEFAULT_ADAPTERS)
        self.play_later_dir = play_later_dir
        self.settings = settings

    def register(self, library_type: LibraryType, adapter: type[LibraryAdapter]) -> None:
        self._adapters[library_type] = adapter

    def load_from(self, resolved_root: ResolvedRoot) -> LibraryAdapter:
        library_type = resolved_root.descriptor.library_type
        adapter_cls = self._adapters.get(library_type)
        if adapter_cls is None:
            raise UnsupportedLibraryTypeError(f"No library adapter registered for '{library_type.value}'.")

        root_folder = resolve_library_root(resolved_root)
        play_later = None
        if self.play_later_dir is not None:
            play_later = PlayLaterList.for_library(self.play_later_dir, root_folder)
        logger.debug("Resolved %s library at %s", library_type.value, root_folder)
        return adapter_cls(
            root_folder,
            resolved_root.descriptor,
            play_later=play_later,
            settings=self.settings,
        )
