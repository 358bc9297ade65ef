"""Song repositories: the persistence collaborator of the embedding pipeline.

A repository saves batches of songs, assigning each one an id, and looks
songs up by id. Saved songs come back in the order they were submitted.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union
from uuid import uuid4

from .models import Song

logger = logging.getLogger(__name__)


class SongRepository(ABC):
    """Contract for song persistence."""

    @abstractmethod
    def save_all(self, songs: Sequence[Song]) -> List[Song]:
        """Save songs and return them with ids assigned, same order and count."""

    @abstractmethod
    def find_by_id(self, song_id: str) -> Optional[Song]:
        """Return the saved song with this id, or None."""


def _with_id(song: Song) -> Song:
    if song.id:
        return song.model_copy()
    return song.model_copy(update={"id": uuid4().hex})


class InMemorySongRepository(SongRepository):
    """Dict-backed repository, used for dry runs and tests."""

    def __init__(self) -> None:
        self._songs: Dict[str, Song] = {}

    def save_all(self, songs: Sequence[Song]) -> List[Song]:
        saved = [_with_id(song) for song in songs]
        for song in saved:
            self._songs[song.id] = song
        return saved

    def find_by_id(self, song_id: str) -> Optional[Song]:
        return self._songs.get(song_id)

    def __len__(self) -> int:
        return len(self._songs)


class JsonSongRepository(SongRepository):
    """
    Repository persisted as a JSON array of songs.

    Each `save_all` reads the current file (if any), upserts the new songs
    by id and rewrites the whole file.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _load(self) -> List[Song]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return [Song.model_validate(item) for item in data]

    def save_all(self, songs: Sequence[Song]) -> List[Song]:
        saved = [_with_id(song) for song in songs]

        existing = {song.id: song for song in self._load()}
        for song in saved:
            existing[song.id] = song

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(
                [song.model_dump() for song in existing.values()],
                f,
                ensure_ascii=False,
                indent=2,
            )

        logger.info("Saved %d songs to %s", len(saved), self.path.name)
        return saved

    def find_by_id(self, song_id: str) -> Optional[Song]:
        for song in self._load():
            if song.id == song_id:
                return song
        return None
