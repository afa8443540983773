from __future__ import annotations

from pathlib import Path
import sys
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from launchpass.core.models import Game
from launchpass.core.playlists import Playlist
from launchpass.core.search import search_games


def _game(title: str, **fields: str) -> Game:
    return Game(game_id=title.lower(), title=title, platform="Arcade", **fields)


class SearchTests(unittest.TestCase):
    def setUp(self) -> None:
        self.arcade = Playlist("Arcade")
        self.arcade.add_game(_game("Galaga", developer="Namco", genre="Shooter"))
        self.arcade.add_game(_game("Donkey Kong", developer="Nintendo", genre="Platform"))
        self.console = Playlist("Nintendo 64")
        self.console.add_game(_game("Super Mario 64", developer="Nintendo", release_date="1996-06-23"))

    def test_title_search_is_case_insensitive_across_playlists(self) -> None:
        results = search_games([self.arcade, self.console], "MARIO")
        self.assertEqual([(item.playlist_name, item.game.title) for item in results], [("Nintendo 64", "Super Mario 64")])

    def test_other_criteria(self) -> None:
        by_developer = search_games([self.arcade, self.console], "nintendo", "Developer")
        self.assertEqual([item.game.title for item in by_developer], ["Donkey Kong", "Super Mario 64"])
        by_year = search_games([self.arcade, self.console], "1996", "Year")
        self.assertEqual([item.game.title for item in by_year], ["Super Mario 64"])

    def test_short_queries_return_nothing(self) -> None:
        self.assertEqual(search_games([self.arcade], "Ga"), [])

    def test_unknown_criterion_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            search_games([self.arcade], "Galaga", "Rating")


if __name__ == "__main__":
    unittest.main()
