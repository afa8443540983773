from __future__ import annotations

from dataclasses import dataclass
import hashlib
import logging
from pathlib import Path
import xml.etree.ElementTree as ET

from launchpass.config.defaults import LANDING_PAGE_SIZE, LAST_PLAYED_KEY_PREFIX, LAST_PLAYED_SEPARATOR
from launchpass.core.fileio import safe_text, write_xml
from launchpass.core.models import Game
from launchpass.core.settings_store import MemorySettingsStore, SettingsStore

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class PlaylistItem:
    game: Game
    playlist_name: str


class Playlist:
    """Ordered games of one platform or user playlist, with last-played history.

    The history is kept in the settings store as titles joined by ';;;' so it
    survives restarts and library reloads.
    """

    def __init__(self, name: str, settings: SettingsStore | None = None) -> None:
        self.name = name
        self.items: list[PlaylistItem] = []
        self.landing_page: list[PlaylistItem] = []
        self._settings = settings if settings is not None else MemorySettingsStore()

    def __len__(self) -> int:
        return len(self.items)

    @property
    def last_played_key(self) -> str:
        return f"{LAST_PLAYED_KEY_PREFIX}{self.name}"

    def add_game(self, game: Game) -> PlaylistItem:
        # A title appears once; re-adding moves it to the end.
        self.items = [item for item in self.items if item.game.title != game.title]
        item = PlaylistItem(game=game, playlist_name=self.name)
        self.items.append(item)
        return item

    def sort(self) -> None:
        self.items.sort(key=lambda item: item.game.title or "")

    def last_played_titles(self) -> list[str]:
        stored = self._settings.get(self.last_played_key) or ""
        return [title for title in stored.split(LAST_PLAYED_SEPARATOR) if title]

    def set_last_played(self, item: PlaylistItem) -> None:
        titles = [item.game.title] + self.last_played_titles()
        titles = _distinct(titles)[:LANDING_PAGE_SIZE]
        self._settings.set(self.last_played_key, LAST_PLAYED_SEPARATOR.join(titles))
        self.update_landing_page()

    def clear_last_played(self) -> None:
        self._settings.set(self.last_played_key, "")

    def update_landing_page(self) -> None:
        by_title = {item.game.title: item for item in self.items}
        last_played = [by_title[title] for title in self.last_played_titles() if title in by_title]
        candidates = last_played + self.items[:LANDING_PAGE_SIZE]

        landing: list[PlaylistItem] = []
        for item in candidates:
            if any(existing is item for existing in landing):
                continue
            landing.append(item)
            if len(landing) == LANDING_PAGE_SIZE:
                break
        self.landing_page = landing


def _distinct(values: list[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered


class PlayLaterList:
    """Game ids queued for later, persisted per library root."""

    ROOT_TAG = "PlayLater"
    ITEM_TAG = "GameId"

    def __init__(self, path: Path) -> None:
        self.path = path
        self._game_ids: list[str] = []
        self._loaded = False

    @classmethod
    def for_library(cls, directory: Path, library_root: Path) -> PlayLaterList:
        digest = hashlib.sha1(str(library_root).encode("utf-8")).hexdigest()[:12]
        return cls(directory / f"PlayLater_{digest}.xml")

    @property
    def game_ids(self) -> list[str]:
        self._ensure_loaded()
        return list(self._game_ids)

    def contains(self, game_id: str) -> bool:
        self._ensure_loaded()
        return game_id in self._game_ids

    def add(self, game_id: str) -> None:
        self._ensure_loaded()
        if game_id not in self._game_ids:
            self._game_ids.append(game_id)
            self.save()

    def remove(self, game_id: str) -> None:
        self._ensure_loaded()
        if game_id in self._game_ids:
            self._game_ids.remove(game_id)
            self.save()

    def load(self) -> list[str]:
        self._game_ids = []
        self._loaded = True
        if not self.path.exists():
            return []
        try:
            root = ET.parse(self.path).getroot()
        except ET.ParseError as exc:
            logger.warning("Ignoring unreadable play-later list %s: %s", self.path, exc)
            return []
        for node in root.findall(self.ITEM_TAG):
            value = safe_text(node)
            if value and value not in self._game_ids:
                self._game_ids.append(value)
        return list(self._game_ids)

    def save(self) -> None:
        root = ET.Element(self.ROOT_TAG)
        for game_id in self._game_ids:
            ET.SubElement(root, self.ITEM_TAG).text = game_id
        write_xml(self.path, root)

    def delete(self) -> None:
        self._game_ids = []
        self._loaded = True
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        logger.info("Deleted play-later list %s", self.path)

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()
