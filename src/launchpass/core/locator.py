from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable

import psutil

from launchpass.core.descriptor_store import MalformedDescriptorError, descriptor_path, read_descriptor
from launchpass.core.models import ResolvedRoot, SourceLocation

logger = logging.getLogger(__name__)

RootsProvider = Callable[[], Iterable[Path]]

_REMOVABLE_OPTS = {"removable", "cdrom"}
_REMOVABLE_MOUNT_PARENTS = ("/media", "/run/media", "/Volumes")


def removable_volume_roots() -> list[Path]:
    """Mount points of removable volumes, in a stable (sorted) order.

    Windows reports removable drives through partition options; on Linux and
    macOS desktop automounters place them under /media, /run/media or /Volumes.
    """
    roots: list[Path] = []
    for partition in psutil.disk_partitions(all=False):
        opts = {opt.strip().lower() for opt in partition.opts.split(",")}
        mountpoint = partition.mountpoint
        if opts & _REMOVABLE_OPTS or _under_removable_parent(mountpoint):
            roots.append(Path(mountpoint))
    return sorted(set(roots), key=lambda path: str(path).lower())


def _under_removable_parent(mountpoint: str) -> bool:
    posix = PurePosixPath(mountpoint.replace("\\", "/"))
    for parent in _REMOVABLE_MOUNT_PARENTS:
        parent_path = PurePosixPath(parent)
        if posix != parent_path and parent_path in posix.parents:
            return True
    return False


@dataclass(slots=True)
class ScanResult:
    local: ResolvedRoot | None = None
    removable: ResolvedRoot | None = None
    errors: dict[SourceLocation, MalformedDescriptorError] = field(default_factory=dict)

    def get(self, location: SourceLocation) -> ResolvedRoot | None:
        if location == SourceLocation.LOCAL:
            return self.local
        if location == SourceLocation.REMOVABLE:
            return self.removable
        return None


class SourceLocator:
    """Finds library descriptors on the local cache root and on removable volumes.

    Scanning only reads; it never creates or modifies anything on disk.
    """

    def __init__(self, local_root: Path, removable_roots: RootsProvider | Iterable[Path] | None = None) -> None:
        self.local_root = local_root
        if removable_roots is None:
            self._removable_roots: RootsProvider = removable_volume_roots
        elif callable(removable_roots):
            self._removable_roots = removable_roots
        else:
            fixed = tuple(removable_roots)
            self._removable_roots = lambda: fixed
        self._last_scan = ScanResult()

    @property
    def last_scan(self) -> ScanResult:
        return self._last_scan

    def scan_all(self) -> ScanResult:
        result = ScanResult()
        for location in (SourceLocation.LOCAL, SourceLocation.REMOVABLE):
            try:
                resolved = self.scan_location(location)
            except MalformedDescriptorError as exc:
                logger.warning("Descriptor for %s source is malformed: %s", location.value, exc)
                result.errors[location] = exc
                continue
            if location == SourceLocation.LOCAL:
                result.local = resolved
            else:
                result.removable = resolved
        self._last_scan = result
        logger.info(
            "Scan finished: local=%s removable=%s",
            result.local.root_path if result.local else None,
            result.removable.root_path if result.removable else None,
        )
        return result

    def scan_location(self, location: SourceLocation) -> ResolvedRoot | None:
        if location == SourceLocation.LOCAL:
            return self._resolve_root(self.local_root, location)
        if location != SourceLocation.REMOVABLE:
            return None

        first_error: MalformedDescriptorError | None = None
        for root in self._removable_roots():
            try:
                resolved = self._resolve_root(root, location)
            except MalformedDescriptorError as exc:
                logger.warning("Skipping removable root %s: %s", root, exc)
                first_error = first_error or exc
                continue
            except OSError as exc:
                logger.warning("Removable root %s is not readable: %s", root, exc)
                continue
            if resolved is not None:
                return resolved
        if first_error is not None:
            raise first_error
        return None

    def has_source(self, location: SourceLocation) -> bool:
        return self._last_scan.get(location) is not None

    def resolved(self, location: SourceLocation) -> ResolvedRoot | None:
        """Result of the last scan for `location`; re-raises a recorded parse error."""
        found = self._last_scan.get(location)
        if found is None and location in self._last_scan.errors:
            raise self._last_scan.errors[location]
        return found

    def remember(self, resolved: ResolvedRoot) -> None:
        self._last_scan.errors.pop(resolved.location, None)
        if resolved.location == SourceLocation.LOCAL:
            self._last_scan.local = resolved
        elif resolved.location == SourceLocation.REMOVABLE:
            self._last_scan.removable = resolved

    def forget(self, location: SourceLocation) -> None:
        self._last_scan.errors.pop(location, None)
        if location == SourceLocation.LOCAL:
            self._last_scan.local = None
        elif location == SourceLocation.REMOVABLE:
            self._last_scan.removable = None

    @staticmethod
    def _resolve_root(root: Path, location: SourceLocation) -> ResolvedRoot | None:
        descriptor = read_descriptor(root)
        if descriptor is None:
            return None
        return ResolvedRoot(location=location, descriptor=descriptor, descriptor_path=descriptor_path(root))
