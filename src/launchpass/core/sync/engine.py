from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
import shutil
import threading

from launchpass.config.defaults import IMPORT_FINISHED_KEY, LOCAL_MIRROR_DIRNAME, LOCAL_MIRROR_RELATIVE_PATH
from launchpass.core.descriptor_store import write_descriptor
from launchpass.core.errors import LaunchPassError
from launchpass.core.loaders.base import ProgressCallback
from launchpass.core.loaders.registry import LibraryLoader
from launchpass.core.locator import SourceLocator
from launchpass.core.models import Descriptor, ResolvedRoot, SourceLocation
from launchpass.core.settings_store import SettingsStore
from launchpass.core.sync.events import ImportEvents

logger = logging.getLogger(__name__)


class ImportCancelled(LaunchPassError):
    """Raised inside the copy body when the job's cancel event is set."""


class ImportSourceError(LaunchPassError):
    """Raised when the removable library or the local cache root cannot be used."""


class ImportJob:
    """State of one import run. Never persisted and never reused."""

    def __init__(self) -> None:
        self.cancel_event = threading.Event()
        self.total_assets = 0
        self.completed = 0
        self.assets_missing = 0
        self.files_copied = 0
        self.files_skipped = 0
        self.result: bool | None = None
        self.error: BaseException | None = None
        self._finished = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def done(self) -> bool:
        return self._finished.is_set()

    @property
    def percent(self) -> float:
        if self.total_assets == 0:
            return 0.0
        return self.completed / self.total_assets * 100.0

    def cancel(self) -> None:
        self.cancel_event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise ImportCancelled("Import cancelled.")

    def wait(self, timeout: float | None = None) -> bool | None:
        """Block until the job ends; returns its outcome, or None on timeout."""
        if not self._finished.wait(timeout):
            return None
        return self.result


class SyncEngine:
    """Mirrors the removable library into the local cache.

    Only one import runs at a time. The copy body runs on a background
    thread; `ImportFinished` is False from the moment a job starts until
    a copy completes successfully.
    """

    def __init__(
        self,
        locator: SourceLocator,
        loader: LibraryLoader,
        settings: SettingsStore,
        local_root: Path,
        events: ImportEvents | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self._locator = locator
        self._loader = loader
        self._settings = settings
        self.local_root = local_root
        self.events = events or ImportEvents()
        self._progress_callback = progress_callback
        self._lock = threading.Lock()
        self._job: ImportJob | None = None

    @property
    def mirror_root(self) -> Path:
        return self.local_root / LOCAL_MIRROR_DIRNAME

    @property
    def import_finished(self) -> bool:
        return bool(self._settings.get(IMPORT_FINISHED_KEY, True))

    @import_finished.setter
    def import_finished(self, value: bool) -> None:
        self._settings.set(IMPORT_FINISHED_KEY, bool(value))

    @property
    def active_job(self) -> ImportJob | None:
        return self._job

    def is_import_in_progress(self) -> bool:
        return self._job is not None

    def start_import(self) -> ImportJob | None:
        """Start mirroring in the background; returns None while another import runs."""
        with self._lock:
            if self._job is not None:
                logger.warning("Import already in progress; request ignored.")
                return None
            job = ImportJob()
            self._job = job

        try:
            self.import_finished = False
        except BaseException:
            with self._lock:
                self._job = None
            raise
        self.events.started.emit()

        worker = threading.Thread(target=self._run, args=(job,), name="launchpass-import", daemon=True)
        worker.start()
        return job

    def import_library(self, timeout: float | None = None) -> bool:
        """Run one import and wait for it; False when rejected, failed, cancelled or timed out."""
        job = self.start_import()
        if job is None:
            return False
        return bool(job.wait(timeout))

    def cancel_import(self) -> bool:
        job = self._job
        if job is None:
            return False
        job.cancel()
        logger.info("Import cancellation requested.")
        return True

    def _run(self, job: ImportJob) -> None:
        success = False
        try:
            success = self._execute(job)
        finally:
            job.result = success
            self.events.finished.emit(success)
            job._finished.set()

    def _execute(self, job: ImportJob) -> bool:
        try:
            self._copy_to_local(job)
            self.import_finished = True
            logger.info(
                "Import complete: assets=%d, copied=%d, skipped=%d, missing=%d",
                job.total_assets,
                job.files_copied,
                job.files_skipped,
                job.assets_missing,
            )
            return True
        except ImportCancelled:
            logger.info("Import cancelled after %d of %d assets.", job.completed, job.total_assets)
            return False
        except Exception as exc:  # noqa: BLE001
            job.error = exc
            logger.exception("Import failed after %d of %d assets.", job.completed, job.total_assets)
            self.events.error.emit()
            return False
        finally:
            with self._lock:
                self._job = None

    def _copy_to_local(self, job: ImportJob) -> None:
        source = self._removable_source()
        library = self._loader.load_from(source)
        library.load(self._progress_callback)

        source_root = library.root_folder
        if not source_root.is_dir():
            raise ImportSourceError(f"Removable library folder is not available: {source_root}")
        try:
            self.local_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ImportSourceError(f"Local cache folder is not available: {self.local_root}") from exc

        assets = library.get_assets()
        job.total_assets = len(assets)
        logger.info("Importing %d assets from %s", job.total_assets, source_root)

        # The local descriptor exists before any bulk copy so an interrupted import is still discoverable.
        local_descriptor = Descriptor(
            library_type=source.descriptor.library_type,
            relative_path=LOCAL_MIRROR_RELATIVE_PATH,
            emulator_settings=library.descriptor.emulator_settings,
        )
        descriptor_file = write_descriptor(self.local_root, local_descriptor)
        self._locator.remember(
            ResolvedRoot(location=SourceLocation.LOCAL, descriptor=local_descriptor, descriptor_path=descriptor_file)
        )

        mirror_root = self.mirror_root
        mirror_root.mkdir(parents=True, exist_ok=True)

        for relative in assets:
            job.raise_if_cancelled()
            _copy_asset(source_root, mirror_root, relative, job)
            job.completed += 1
            self.events.progress.emit(job.completed / job.total_assets * 100.0)

    def _removable_source(self) -> ResolvedRoot:
        source = self._locator.resolved(SourceLocation.REMOVABLE)
        if source is None:
            source = self._locator.scan_location(SourceLocation.REMOVABLE)
        if source is None:
            raise ImportSourceError("No removable library found.")
        return source


def _copy_asset(source_root: Path, mirror_root: Path, relative: str, job: ImportJob) -> None:
    relative_path = PurePosixPath(relative)
    if relative_path.is_absolute() or ".." in relative_path.parts:
        logger.warning("Ignoring asset path outside the library: %s", relative)
        job.assets_missing += 1
        return

    source_item = source_root.joinpath(*relative_path.parts)
    if not source_item.exists():
        # Catalogs may list optional media that was never downloaded.
        logger.debug("Asset missing on source, skipped: %s", relative)
        job.assets_missing += 1
        return

    destination_folder = mirror_root.joinpath(*relative_path.parent.parts)
    destination_folder.mkdir(parents=True, exist_ok=True)

    if source_item.is_file():
        copy_file(source_item, destination_folder, job, overwrite_if_newer=True)
    elif source_item.is_dir():
        copy_folder(source_item, destination_folder, job)


def copy_file(source: Path, destination_folder: Path, job: ImportJob, overwrite_if_newer: bool = True) -> bool:
    """Copy `source` into `destination_folder`; returns False when the copy was skipped.

    With `overwrite_if_newer`, an existing destination is kept unless the
    source modification time is strictly newer.
    """
    job.raise_if_cancelled()
    destination = destination_folder / source.name
    if overwrite_if_newer and destination.exists():
        if source.stat().st_mtime_ns <= destination.stat().st_mtime_ns:
            job.files_skipped += 1
            return False

    # copy2 keeps the source mtime, which makes the next import skip this file.
    shutil.copy2(source, destination)
    job.files_copied += 1
    return True


def copy_folder(source: Path, destination_container: Path, job: ImportJob, desired_name: str | None = None) -> None:
    """Mirror `source` into `destination_container/<name>`: files first, then subfolders, depth first."""
    pending: list[tuple[Path, Path]] = [(source, destination_container / (desired_name or source.name))]
    while pending:
        source_folder, destination_folder = pending.pop()
        destination_folder.mkdir(parents=True, exist_ok=True)

        entries = sorted(source_folder.iterdir(), key=lambda path: path.name.lower())
        for entry in entries:
            if entry.is_file():
                copy_file(entry, destination_folder, job, overwrite_if_newer=True)

        subfolders = [entry for entry in entries if entry.is_dir() and not entry.is_symlink()]
        for subfolder in reversed(subfolders):
            pending.append((subfolder, destination_folder / subfolder.name))
