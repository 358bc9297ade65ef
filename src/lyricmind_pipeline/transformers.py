"""Song Transformation Module

Turns parsed CSV rows into normalized song requests, and normalized
requests into persisted-song entities and embeddable documents.

Key responsibilities:
  - Look up and unwrap field values by header position
  - Infer a genre from artist/title/lyrics keywords
  - Coerce the release year, falling back to 1970
  - Build the fixed-format document text and metadata for the vector store
"""

import re
import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from .errors import RowParseError
from .models import (
    DEFAULT_RELEASE_YEAR,
    DEFAULT_TEXT,
    Song,
    SongDocument,
    SongRequest,
)

logger = logging.getLogger(__name__)

YEAR_RE = re.compile(r"[+-]?[0-9]+")
INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

# Checked in order, first match wins.
GENRE_KEYWORDS = (
    ("Rock", ("rock", "guitar")),
    ("Hip-Hop", ("rap", "hip hop")),
    ("Country", ("country",)),
    ("Jazz", ("jazz",)),
    ("Electronic", ("electronic", "techno")),
)
DEFAULT_GENRE = "Pop"

DOCUMENT_TEMPLATE = "Title: {title}\nArtist: {artist}\nLyrics: {lyrics}\n"


# ============================================================================
# Row normalization
# ============================================================================


def classify_genre(
    artist: Optional[str],
    title: Optional[str],
    lyrics: Optional[str],
) -> str:
    """
    Guess a genre from keywords in the artist, title and lyrics.

    Missing values count as empty strings. Never raises.

    Example:
        >>> classify_genre("Band", "Song", "rock and jazz all night")
        'Rock'
    """
    text = " ".join([artist or "", title or "", lyrics or ""]).lower()
    for genre, keywords in GENRE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return genre
    return DEFAULT_GENRE


def get_value(
    values: Sequence[str],
    column_index: Mapping[str, int],
    column: str,
) -> Optional[str]:
    """Return the trimmed value for `column`, or None when empty/missing.

    One layer of surrounding double quotes is removed.
    """
    idx = column_index.get(column)
    if idx is None or idx >= len(values):
        return None

    value = values[idx].strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    return value or None


def parse_release_year(raw: Optional[str], line_number: Optional[int] = None) -> int:
    """
    Parse a release year as a signed 32-bit integer.

    Anything else (missing, "abc", "2001.5", out of range) yields 1970 and a
    warning; the row itself is kept.
    """
    if raw is not None and YEAR_RE.fullmatch(raw):
        year = int(raw)
        if INT32_MIN <= year <= INT32_MAX:
            return year

    logger.warning(
        "Invalid release year %r at line %s; defaulting to %d",
        raw,
        line_number,
        DEFAULT_RELEASE_YEAR,
    )
    return DEFAULT_RELEASE_YEAR


def normalize_row(
    values: Sequence[str],
    column_index: Mapping[str, int],
    line_number: Optional[int] = None,
    expected_width: Optional[int] = None,
) -> SongRequest:
    """
    Build a SongRequest from one parsed CSV row.

    Args:
        values: Fields from `parse_csv_line`
        column_index: Header name -> position
        line_number: 1-based source line, used in log/error messages
        expected_width: Number of header fields (defaults to the widest
            index in `column_index` + 1)

    Returns:
        Normalized SongRequest with "N/A" / 1970 defaults applied

    Raises:
        RowParseError: If the row has fewer fields than the header
    """
    if expected_width is None:
        expected_width = max(column_index.values()) + 1 if column_index else 0

    if len(values) < expected_width:
        raise RowParseError(
            f"Row has {len(values)} fields, header declares {expected_width}",
            line_number=line_number,
        )

    artist = get_value(values, column_index, "Artist")
    title = get_value(values, column_index, "Title")
    album = get_value(values, column_index, "Album")
    source_date = get_value(values, column_index, "Date")
    lyrics = get_value(values, column_index, "Lyric")

    return SongRequest(
        title=title or DEFAULT_TEXT,
        artist=artist or DEFAULT_TEXT,
        album=album or DEFAULT_TEXT,
        # classifier sees the raw values, before "N/A" is substituted
        genre=classify_genre(artist, title, lyrics),
        description=DEFAULT_TEXT,
        source_date=source_date or DEFAULT_TEXT,
        lyrics=lyrics or DEFAULT_TEXT,
        release_year=parse_release_year(
            get_value(values, column_index, "Year"), line_number
        ),
    )


# ============================================================================
# Entity and document building
# ============================================================================


def sanitize_text(text: Optional[str]) -> str:
    """Trim text; None becomes the empty string."""
    return text.strip() if text is not None else ""


def to_song(request: SongRequest) -> Song:
    """Map a normalized request to an unsaved Song entity."""
    return Song(
        title=sanitize_text(request.title),
        artist=sanitize_text(request.artist),
        album=sanitize_text(request.album),
        genre=sanitize_text(request.genre),
        description=sanitize_text(request.description),
        source_date=sanitize_text(request.source_date),
        lyrics=sanitize_text(request.lyrics),
        release_year=request.release_year,
    )


def build_song_metadata(song: Song) -> Dict[str, Any]:
    """Metadata stored next to the embedding, keyed the way the API exposes it."""
    return {
        "songId": song.id,
        "title": song.title,
        "artist": song.artist,
        "album": song.album,
        "genre": song.genre,
        "description": song.description,
        "releaseYear": song.release_year,
    }


def to_song_document(song: Song) -> SongDocument:
    """
    Build the embeddable document for a saved song.

    Content layout:
        Title: <title>
        Artist: <artist>
        Lyrics: <lyrics>
    """
    if song is None:
        raise ValueError("Song cannot be None")

    content = DOCUMENT_TEMPLATE.format(
        title=sanitize_text(song.title),
        artist=sanitize_text(song.artist),
        lyrics=sanitize_text(song.lyrics),
    )
    return SongDocument(content=content, metadata=build_song_metadata(song))
