from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

from launchpass.core.models import Descriptor, Game, LibraryType
from launchpass.core.playlists import PlayLaterList, Playlist
from launchpass.core.settings_store import SettingsStore

ProgressCallback = Callable[[str], None]


class LibraryAdapter(ABC):
    """One library format, rooted at an absolute folder.

    The sync engine and the source manager only talk to this interface, so a
    new format is added by registering another subclass.
    """

    library_type: LibraryType | None = None

    def __init__(
        self,
        root_folder: Path,
        descriptor: Descriptor,
        play_later: PlayLaterList | None = None,
        settings: SettingsStore | None = None,
    ) -> None:
        self.root_folder = root_folder
        self.descriptor = descriptor
        self.play_later = play_later
        self.settings = settings
        self.games: list[Game] = []
        self.playlists: list[Playlist] = []
        self.warnings: list[str] = []
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load(self, progress_callback: ProgressCallback | None = None) -> None:
        """Read the catalog once; later calls are no-ops."""
        if self._loaded:
            return
        self._load(progress_callback)
        self._loaded = True

    @abstractmethod
    def _load(self, progress_callback: ProgressCallback | None) -> None:
        """Populate games and playlists from the catalog."""

    @abstractmethod
    def get_assets(self) -> list[str]:
        """Relative paths (files or folders) that make up the game collection, in copy order."""
