from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath
import xml.etree.ElementTree as ET

from launchpass.config.defaults import LAUNCHBOX_DIRNAME
from launchpass.core.fileio import safe_text
from launchpass.core.loaders.base import LibraryAdapter, ProgressCallback
from launchpass.core.models import Asset, AssetType, Game, LibraryType, Platform
from launchpass.core.playlists import Playlist

logger = logging.getLogger(__name__)

DATA_DIR = "Data"
PLATFORMS_XML = "Data/Platforms.xml"
PLATFORMS_DIR = "Data/Platforms"
PLAYLISTS_DIR = "Data/Playlists"

# Used when Platforms.xml declares no media folders for a platform.
CONVENTIONAL_MEDIA_ROOTS: tuple[str, ...] = ("Images", "Videos", "Manuals")

_ASSET_TAGS: tuple[tuple[str, AssetType], ...] = (
    ("FrontImagePath", AssetType.BOX_FRONT),
    ("ScreenshotImagePath", AssetType.SCREENSHOT),
    ("BackgroundImagePath", AssetType.BACKGROUND),
    ("LogoImagePath", AssetType.LOGO),
    ("VideoPath", AssetType.VIDEO),
    ("ManualPath", AssetType.MANUAL),
)


class LaunchBoxLibrary(LibraryAdapter):
    """LaunchBox library laid out as Data/Platforms.xml + Data/Platforms/<name>.xml."""

    library_type = LibraryType.LAUNCHBOX

    def _load(self, progress_callback: ProgressCallback | None) -> None:
        self.platforms = self._read_platforms()
        if progress_callback is not None:
            progress_callback(f"[scan] LaunchBox platforms discovered: {len(self.platforms)}")

        games: list[Game] = []
        playlists: list[Playlist] = []
        for platform in self.platforms:
            if progress_callback is not None:
                progress_callback(f"[scan] Reading LaunchBox platform '{platform.name}'")
            try:
                platform_games = self._parse_platform_xml(platform)
            except ET.ParseError as exc:
                self._warn(f"Failed to parse {platform.xml_path}: {exc}")
                continue
            games.extend(platform_games)

            playlist = Playlist(platform.name, settings=self.settings)
            for game in platform_games:
                playlist.add_game(game)
            playlist.sort()
            playlist.update_landing_page()
            playlists.append(playlist)

        self.games = games
        self.user_playlist_files: list[Path] = []
        playlists.extend(self._read_user_playlists(games))
        self.playlists = playlists
        logger.info(
            "Loaded LaunchBox library %s: %d platforms, %d games, %d playlists",
            self.root_folder,
            len(self.platforms),
            len(self.games),
            len(self.playlists),
        )

    def get_assets(self) -> list[str]:
        self.load()
        manifest = _ManifestBuilder()

        if (self.root_folder / PLATFORMS_XML).is_file():
            manifest.add(PLATFORMS_XML)
        for platform in self.platforms:
            manifest.add(self._relative(platform.xml_path))
        for playlist_file in self.user_playlist_files:
            manifest.add(self._relative(playlist_file))

        for platform in self.platforms:
            if platform.media_folders:
                for folder in platform.media_folders:
                    manifest.add(folder)
                continue
            for media_root in CONVENTIONAL_MEDIA_ROOTS:
                candidate = f"{media_root}/{platform.name}"
                if (self.root_folder / candidate).is_dir():
                    manifest.add(candidate)

        for game in self.games:
            manifest.add(self._relative(game.application_path))
            for asset in game.assets:
                manifest.add(self._relative(asset.file_path))

        return manifest.paths

    def _read_platforms(self) -> list[Platform]:
        platforms_xml = self.root_folder / PLATFORMS_XML
        if platforms_xml.is_file():
            try:
                return self._parse_platforms_xml(platforms_xml)
            except ET.ParseError as exc:
                self._warn(f"Failed to parse {platforms_xml}: {exc}")
        return self._discover_platforms()

    def _parse_platforms_xml(self, platforms_xml: Path) -> list[Platform]:
        root = ET.parse(platforms_xml).getroot()
        platforms: dict[str, Platform] = {}
        for node in root.findall("Platform"):
            name = safe_text(node.find("Name"))
            if not name or name in platforms:
                continue
            xml_path = self.root_folder / PLATFORMS_DIR / f"{name}.xml"
            if not xml_path.is_file():
                self._warn(f"Missing LaunchBox platform XML for '{name}'.")
                continue
            platforms[name] = Platform(name=name, xml_path=xml_path)

        for node in root.findall("PlatformFolder"):
            name = safe_text(node.find("Platform"))
            folder = self._relative(self._resolve_path(safe_text(node.find("FolderPath"))))
            if name in platforms and folder and folder not in platforms[name].media_folders:
                platforms[name].media_folders.append(folder)
        return list(platforms.values())

    def _discover_platforms(self) -> list[Platform]:
        platforms_root = self.root_folder / PLATFORMS_DIR
        if not platforms_root.is_dir():
            return []
        return [
            Platform(name=xml_path.stem, xml_path=xml_path)
            for xml_path in sorted(platforms_root.glob("*.xml"), key=lambda path: path.name.lower())
        ]

    def _parse_platform_xml(self, platform: Platform) -> list[Game]:
        games: list[Game] = []
        for event, game_node in ET.iterparse(platform.xml_path, events=("end",)):
            if event != "end" or game_node.tag != "Game":
                continue
            title = safe_text(game_node.find("Title"))
            app_path = self._resolve_path(safe_text(game_node.find("ApplicationPath")))
            if not title and app_path is None:
                game_node.clear()
                continue

            game = Game(
                game_id=safe_text(game_node.find("ID")) or f"{platform.name}/{title or app_path.stem}",
                title=title or app_path.stem,
                platform=safe_text(game_node.find("Platform")) or platform.name,
                application_path=app_path,
                developer=safe_text(game_node.find("Developer")),
                publisher=safe_text(game_node.find("Publisher")),
                release_date=safe_text(game_node.find("ReleaseDate")),
                genre=safe_text(game_node.find("Genre")),
                play_mode=safe_text(game_node.find("PlayMode")),
                release_type=safe_text(game_node.find("ReleaseType")),
                version=safe_text(game_node.find("Version")),
                max_players=safe_text(game_node.find("MaxPlayers")),
                play_time=safe_text(game_node.find("PlayTime")),
                notes=safe_text(game_node.find("Notes")),
            )
            for xml_tag, asset_type in _ASSET_TAGS:
                resolved = self._resolve_path(safe_text(game_node.find(xml_tag)))
                if resolved is not None:
                    game.assets.append(Asset(asset_type=asset_type, file_path=resolved))

            games.append(game)
            game_node.clear()
        return games

    def _read_user_playlists(self, games: list[Game]) -> list[Playlist]:
        playlists_root = self.root_folder / PLAYLISTS_DIR
        if not playlists_root.is_dir():
            return []

        games_by_id = {game.game_id: game for game in games}
        playlists: list[Playlist] = []
        for xml_path in sorted(playlists_root.glob("*.xml"), key=lambda path: path.name.lower()):
            try:
                root = ET.parse(xml_path).getroot()
            except ET.ParseError as exc:
                self._warn(f"Failed to parse {xml_path}: {exc}")
                continue
            self.user_playlist_files.append(xml_path)

            name = safe_text(root.find("Playlist/Name")) or safe_text(root.find("Name")) or xml_path.stem
            playlist = Playlist(name, settings=self.settings)
            for node in root.findall("PlaylistGame"):
                game = games_by_id.get(safe_text(node.find("GameId")) or "")
                if game is not None:
                    playlist.add_game(game)
            playlist.update_landing_page()
            playlists.append(playlist)
        return playlists

    def _resolve_path(self, path_value: str | None) -> Path | None:
        """Resolve a catalog path against the library root.

        LaunchBox stores Windows-style paths relative to its install folder,
        sometimes prefixed with the folder name itself.
        """
        if not path_value:
            return None
        normalized = path_value.strip().strip('"').replace("\\", "/")
        if not normalized:
            return None
        if _is_drive_absolute(normalized) or normalized.startswith("//"):
            return Path(normalized)
        if normalized.startswith("/"):
            candidate = Path(normalized)
            if candidate.exists():
                return candidate
            normalized = normalized.lstrip("/")
        parts = list(PurePosixPath(normalized).parts)
        if parts and parts[0].lower() == LAUNCHBOX_DIRNAME.lower():
            parts = parts[1:]
        if not parts:
            return None
        return Path(os.path.normpath(self.root_folder.joinpath(*parts)))

    def _relative(self, path: Path | None) -> str | None:
        """Library-relative POSIX path, or None for paths outside the root."""
        if path is None:
            return None
        try:
            relative = Path(os.path.normpath(path)).relative_to(self.root_folder)
        except ValueError:
            return None
        value = relative.as_posix()
        return None if value in ("", ".") else value

    def _warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning("%s", message)


class _ManifestBuilder:
    """Ordered, de-duplicated relative paths; entries already covered by a listed folder are dropped.

    Paths compare exactly: removable volumes are often case-sensitive, so
    `Mario.z64` and `mario.z64` are two files.
    """

    def __init__(self) -> None:
        self.paths: list[str] = []
        self._seen: set[str] = set()

    def add(self, relative: str | None) -> None:
        if not relative:
            return
        if relative in self._seen:
            return
        for parent in PurePosixPath(relative).parents:
            if str(parent) in self._seen:
                return
        self._seen.add(relative)
        self.paths.append(relative)


def _is_drive_absolute(value: str) -> bool:
    return len(value) >= 3 and value[1] == ":" and value[2] == "/" and value[0].isalpha()
