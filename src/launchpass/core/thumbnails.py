from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from launchpass.core.models import SourceLocation

if TYPE_CHECKING:
    from launchpass.core.loaders.base import LibraryAdapter


class ThumbnailCache(Protocol):
    """Consumer side of the thumbnail cache; return values are ignored."""

    def set(self, library: LibraryAdapter | None, location: SourceLocation) -> None: ...

    def invalidate(self, location: SourceLocation) -> None: ...


class NullThumbnailCache:
    def set(self, library: LibraryAdapter | None, location: SourceLocation) -> None:
        return None

    def invalidate(self, location: SourceLocation) -> None:
        return None
