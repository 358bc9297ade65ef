"""Data Models Module

Pydantic models for songs at each stage of the pipeline: the normalized
request built from a CSV row or an API call, the persisted song entity,
the embeddable document handed to the vector store, and the Qdrant point
that store finally writes. Also holds the bulk request/response shapes
and the per-row failure record.
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_TEXT = "N/A"
DEFAULT_RELEASE_YEAR = 1970


class SongRequest(BaseModel):
    """Normalized song request.

    Built once per valid CSV row (or per direct API request) and consumed
    once by the embedding pipeline. Immutable after construction.

    Null or blank text becomes "N/A" and a null/blank year becomes 1970,
    whether the value came from a CSV row or an API payload. Accepts the
    camelCase wire names (`releaseYear`, `sourceDate`) as well.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    title: str = DEFAULT_TEXT
    artist: str = DEFAULT_TEXT
    album: str = DEFAULT_TEXT
    genre: str = DEFAULT_TEXT
    description: str = DEFAULT_TEXT
    source_date: str = DEFAULT_TEXT
    lyrics: str = DEFAULT_TEXT
    release_year: int = DEFAULT_RELEASE_YEAR

    @field_validator(
        "title", "artist", "album", "genre", "description", "source_date", "lyrics",
        mode="before",
    )
    @classmethod
    def _default_blank_text(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_TEXT
        return value

    @field_validator("release_year", mode="before")
    @classmethod
    def _default_blank_year(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_RELEASE_YEAR
        return value


class Song(BaseModel):
    """Persisted song entity. `id` is assigned by the repository on save."""
    id: Optional[str] = None
    title: str = ""
    artist: str = ""
    album: str = ""
    genre: str = ""
    description: str = ""
    source_date: str = ""
    lyrics: str = ""
    tags: List[str] = []
    release_year: Optional[int] = None


class SongDocument(BaseModel):
    """Text + metadata unit submitted to the vector store."""
    content: str
    metadata: Dict[str, Any]


class QdrantPoint(BaseModel):
    """Qdrant-ready point: song id, embedding vector and payload."""
    id: str
    vector: List[float]
    payload: Dict[str, Any]


class RowFailure(BaseModel):
    """A CSV row that was skipped, with its 1-based source line number."""
    line_number: int
    reason: str


class DatasetResult(BaseModel):
    """Normalized songs in source order plus the rows that were skipped."""
    songs: List[SongRequest] = []
    failures: List[RowFailure] = []


class BulkSongRequest(BaseModel):
    """Request to ingest a CSV file named relative to the resources dir."""
    model_config = ConfigDict(populate_by_name=True)

    file_name: Optional[str] = Field(default=None, alias="fileName")


class BulkSongResponse(BaseModel):
    embedded_songs: int = 0
    row_failures: List[RowFailure] = []
