from __future__ import annotations

from pathlib import Path
import sys
import tempfile
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from launchpass.core.models import Game
from launchpass.core.playlists import PlayLaterList, Playlist
from launchpass.core.settings_store import MemorySettingsStore


def _game(title: str, **fields: str) -> Game:
    return Game(game_id=title.lower(), title=title, platform="Arcade", **fields)


class PlaylistTests(unittest.TestCase):
    def test_add_game_keeps_one_item_per_title(self) -> None:
        playlist = Playlist("Arcade")
        playlist.add_game(_game("Galaga"))
        playlist.add_game(_game("Pac-Man"))
        playlist.add_game(_game("Galaga"))

        self.assertEqual([item.game.title for item in playlist.items], ["Pac-Man", "Galaga"])
        self.assertEqual(len(playlist), 2)
        playlist.sort()
        self.assertEqual([item.game.title for item in playlist.items], ["Galaga", "Pac-Man"])

    def test_last_played_persists_most_recent_first(self) -> None:
        settings = MemorySettingsStore()
        playlist = Playlist("Arcade", settings=settings)
        titles = ["A1", "A2", "A3", "A4", "A5", "A6"]
        items = {title: playlist.add_game(_game(title)) for title in titles}

        for title in titles:
            playlist.set_last_played(items[title])
        playlist.set_last_played(items["A3"])

        self.assertEqual(playlist.last_played_titles(), ["A3", "A6", "A5", "A4", "A2"])
        self.assertEqual(settings.get("LastPlayedArcade"), "A3;;;A6;;;A5;;;A4;;;A2")
        self.assertEqual([item.game.title for item in playlist.landing_page], ["A3", "A6", "A5", "A4", "A2"])

        reloaded = Playlist("Arcade", settings=settings)
        self.assertEqual(reloaded.last_played_titles()[0], "A3")

    def test_landing_page_fills_from_playlist_head(self) -> None:
        playlist = Playlist("Arcade")
        items = [playlist.add_game(_game(title)) for title in ["B1", "B2", "B3", "B4", "B5", "B6"]]

        playlist.set_last_played(items[4])

        self.assertEqual([item.game.title for item in playlist.landing_page], ["B5", "B1", "B2", "B3", "B4"])

        playlist.clear_last_played()
        playlist.update_landing_page()
        self.assertEqual(playlist.last_played_titles(), [])
        self.assertEqual([item.game.title for item in playlist.landing_page], ["B1", "B2", "B3", "B4", "B5"])


class PlayLaterListTests(unittest.TestCase):
    def test_game_ids_survive_reload_and_delete_is_idempotent(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            directory = Path(temp_dir) / "playlists"
            play_later = PlayLaterList.for_library(directory, Path("/media/X/LaunchBox"))
            play_later.add("mario")
            play_later.add("zelda")
            play_later.add("mario")
            play_later.remove("zelda")

            reloaded = PlayLaterList(play_later.path)
            self.assertEqual(reloaded.game_ids, ["mario"])
            self.assertTrue(reloaded.contains("mario"))

            reloaded.delete()
            self.assertFalse(play_later.path.exists())
            reloaded.delete()
            self.assertEqual(reloaded.game_ids, [])

    def test_each_library_root_gets_its_own_file(self) -> None:
        directory = Path("/tmp/playlists")
        removable = PlayLaterList.for_library(directory, Path("/media/X/LaunchBox"))
        local = PlayLaterList.for_library(directory, Path("/home/user/.launchpass/LocalCache/DataSource"))
        self.assertNotEqual(removable.path, local.path)
        self.assertEqual(removable.path, PlayLaterList.for_library(directory, Path("/media/X/LaunchBox")).path)

    def test_unreadable_file_starts_empty(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "PlayLater.xml"
            path.write_text("<PlayLater><GameId>", encoding="utf-8")
            self.assertEqual(PlayLaterList(path).game_ids, [])


if __name__ == "__main__":
    unittest.main()
