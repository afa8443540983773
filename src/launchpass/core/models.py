from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class LibraryType(str, Enum):
    LAUNCHBOX = "LaunchBox"


class SourceLocation(str, Enum):
    NONE = "None"
    LOCAL = "Local"
    REMOVABLE = "Removable"


class AssetType(str, Enum):
    BOX_FRONT = "box_front"
    SCREENSHOT = "screenshot"
    BACKGROUND = "background"
    LOGO = "logo"
    VIDEO = "video"
    MANUAL = "manual"


@dataclass(frozen=True, slots=True)
class Descriptor:
    """Where a library lives relative to its descriptor file, and its format.

    `emulator_settings` is the raw XML of the emulator section. It is carried
    verbatim into the local mirror and never interpreted here.
    """

    library_type: LibraryType
    relative_path: str
    emulator_settings: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedRoot:
    location: SourceLocation
    descriptor: Descriptor
    descriptor_path: Path

    @property
    def root_path(self) -> Path:
        return self.descriptor_path.parent


@dataclass(slots=True)
class Asset:
    asset_type: AssetType
    file_path: Path


@dataclass(slots=True)
class Game:
    game_id: str
    title: str
    platform: str
    application_path: Path | None = None
    developer: str | None = None
    publisher: str | None = None
    release_date: str | None = None
    genre: str | None = None
    play_mode: str | None = None
    release_type: str | None = None
    version: str | None = None
    max_players: str | None = None
    play_time: str | None = None
    notes: str | None = None
    assets: list[Asset] = field(default_factory=list)

    def asset_path(self, asset_type: AssetType) -> Path | None:
        for asset in self.assets:
            if asset.asset_type == asset_type:
                return asset.file_path
        return None


@dataclass(slots=True)
class Platform:
    name: str
    xml_path: Path
    # Media folders relative to the library root, as declared in Data/Platforms.xml.
    media_folders: list[str] = field(default_factory=list)
