from __future__ import annotations

import logging
from pathlib import Path
import shutil

from launchpass.config.defaults import ACTIVE_LOCATION_KEY
from launchpass.config.paths import AppPaths
from launchpass.core.descriptor_store import descriptor_path
from launchpass.core.errors import LaunchPassError
from launchpass.core.loaders.base import LibraryAdapter, ProgressCallback
from launchpass.core.loaders.registry import LibraryLoader
from launchpass.core.locator import ScanResult, SourceLocator
from launchpass.core.models import SourceLocation
from launchpass.core.settings_store import JsonSettingsStore, SettingsStore
from launchpass.core.sync.engine import ImportJob, SyncEngine
from launchpass.core.sync.events import ImportEvents, Signal
from launchpass.core.thumbnails import NullThumbnailCache, ThumbnailCache

logger = logging.getLogger(__name__)


class SourceManager:
    """Owns the active library and its persisted location.

    `activate` and `get_active` are the only writers of the active library
    reference; callers share this object instead of a global.
    """

    def __init__(
        self,
        locator: SourceLocator,
        loader: LibraryLoader,
        settings: SettingsStore,
        thumbnail_cache: ThumbnailCache | None = None,
        events: ImportEvents | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.locator = locator
        self.loader = loader
        self.settings = settings
        self.thumbnail_cache = thumbnail_cache or NullThumbnailCache()
        self.sync = SyncEngine(
            locator, loader, settings, locator.local_root, events=events, progress_callback=progress_callback
        )
        self.progress_callback = progress_callback
        self.source_error = Signal("source_error")
        self._active: LibraryAdapter | None = None

    @classmethod
    def from_paths(
        cls,
        paths: AppPaths,
        settings: SettingsStore | None = None,
        thumbnail_cache: ThumbnailCache | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> SourceManager:
        paths.ensure()
        store = settings if settings is not None else JsonSettingsStore(paths.settings_file)
        locator = SourceLocator(paths.local_cache_root, removable_roots=paths.removable_roots or None)
        loader = LibraryLoader(play_later_dir=paths.play_later_dir, settings=store)
        return cls(locator, loader, store, thumbnail_cache=thumbnail_cache, progress_callback=progress_callback)

    @property
    def events(self) -> ImportEvents:
        return self.sync.events

    @property
    def active_location(self) -> SourceLocation:
        value = self.settings.get(ACTIVE_LOCATION_KEY)
        try:
            return SourceLocation(value) if value else SourceLocation.NONE
        except ValueError:
            logger.warning("Unknown active location %r in settings; using None.", value)
            return SourceLocation.NONE

    def _set_active_location(self, location: SourceLocation) -> None:
        self.settings.set(ACTIVE_LOCATION_KEY, location.value)

    @property
    def import_finished(self) -> bool:
        return self.sync.import_finished

    def scan(self) -> ScanResult:
        return self.locator.scan_all()

    def has_source(self, location: SourceLocation) -> bool:
        return self.locator.has_source(location)

    def get_data_source(self, location: SourceLocation) -> LibraryAdapter | None:
        """Adapter for the last scan result at `location`, not yet loaded."""
        if location == SourceLocation.NONE:
            return None
        resolved = self.locator.resolved(location)
        if resolved is None:
            return None
        return self.loader.load_from(resolved)

    def activate(self, location: SourceLocation) -> LibraryAdapter | None:
        self._set_active_location(location)
        try:
            self._active = self._open(location)
        except (LaunchPassError, OSError):
            self._active = None
            logger.exception("Could not activate %s source.", location.value)
            self.source_error.emit()
            raise
        self.thumbnail_cache.set(self._active, location)
        logger.info("Active source is now %s", location.value)
        return self._active

    def get_active(self) -> LibraryAdapter | None:
        if self._active is not None:
            return self._active

        self.scan()
        location = self.active_location
        try:
            self._active = self._open(location)
        except (LaunchPassError, OSError):
            logger.exception("Could not open %s source.", location.value)
            self.source_error.emit()
            raise
        self.thumbnail_cache.set(self._active, location)
        return self._active

    def _open(self, location: SourceLocation) -> LibraryAdapter | None:
        library = self.get_data_source(location)
        if library is not None:
            library.load(self.progress_callback)
        return library

    def start_import(self) -> ImportJob | None:
        return self.sync.start_import()

    def import_library(self, timeout: float | None = None) -> bool:
        return self.sync.import_library(timeout)

    def cancel_import(self) -> bool:
        return self.sync.cancel_import()

    def is_import_in_progress(self) -> bool:
        return self.sync.is_import_in_progress()

    def delete_local_source(self) -> None:
        """Remove the local mirror, its descriptor and its play-later list.

        Every deletion is best effort; a missing item is not an error.
        """
        job = self.sync.active_job
        if job is not None:
            job.cancel()
            job.wait()

        self.sync.import_finished = True

        try:
            resolved = self.locator.resolved(SourceLocation.LOCAL) or self.locator.scan_location(SourceLocation.LOCAL)
            local = self.loader.load_from(resolved) if resolved is not None else None
        except LaunchPassError as exc:
            logger.warning("Local descriptor unreadable; play-later list not removed: %s", exc)
            local = None
        if local is not None and local.play_later is not None:
            try:
                local.play_later.delete()
            except OSError as exc:
                logger.warning("Could not delete play-later list %s: %s", local.play_later.path, exc)

        if self.active_location == SourceLocation.LOCAL:
            self._set_active_location(SourceLocation.NONE)
            self._active = None

        _remove_path(self.sync.mirror_root)
        _remove_path(descriptor_path(self.locator.local_root))

        self.thumbnail_cache.invalidate(SourceLocation.LOCAL)
        self.locator.forget(SourceLocation.LOCAL)
        logger.info("Local source deleted.")


def _remove_path(path: Path) -> None:
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Could not delete %s: %s", path, exc)
