from __future__ import annotations

from typing import Callable, Iterable

from launchpass.core.models import Game
from launchpass.core.playlists import Playlist, PlaylistItem

MIN_QUERY_LENGTH = 3

SEARCH_CRITERIA: dict[str, Callable[[Game], str | None]] = {
    "Title": lambda game: game.title,
    "Developer": lambda game: game.developer,
    "Year": lambda game: game.release_date,
    "Genre": lambda game: game.genre,
    "Player Mode": lambda game: game.play_mode,
    "Release": lambda game: game.release_type,
    "Version": lambda game: game.version,
    "Max Players": lambda game: game.max_players,
    "Play Time": lambda game: game.play_time,
}


def search_games(playlists: Iterable[Playlist], text: str, criterion: str = "Title") -> list[PlaylistItem]:
    """Case-insensitive substring search over every playlist item.

    Queries shorter than three characters return no results.
    """
    field_getter = SEARCH_CRITERIA.get(criterion)
    if field_getter is None:
        raise ValueError(f"Unknown search criterion: {criterion}")
    if len(text) < MIN_QUERY_LENGTH:
        return []

    needle = text.casefold()
    results: list[PlaylistItem] = []
    for playlist in playlists:
        for item in playlist.items:
            value = field_getter(item.game)
            if value is not None and needle in value.casefold():
                results.append(item)
    return results
