"""
Song Embedding Pipeline

Takes normalized song requests (or a CSV source that yields them), saves
them through a song repository, turns every saved song into an embeddable
document and hands the whole batch to a vector store.

Features:
- Collaborators passed in explicitly (repository + vector store)
- Per-row CSV failures are skipped and reported, never fatal
- Batch is all-or-nothing once it reaches the collaborators
- `run_pipeline` wires JSON-file collaborators for CLI runs, with
  timestamped outputs and run metadata
"""

from pathlib import Path
import json
import logging
import os
import time
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .dataset import generate_song_requests
from .errors import (
    EmbeddingBackendFailure,
    InvalidArgumentError,
    LyricMindError,
    PersistenceFailure,
    SourceReadError,
)
from .loaders import SongSource, resolve_source_path
from .models import BulkSongRequest, BulkSongResponse, DatasetResult, SongRequest
from .repository import InMemorySongRepository, JsonSongRepository, SongRepository
from .transformers import to_song, to_song_document
from .vector_store import InMemoryVectorStore, QdrantPointsStore, VectorStore

logger = logging.getLogger(__name__)

RESOURCES_PATH = os.getenv("LYRICMIND_RESOURCES_DIR", "data")


class EmbeddingPipeline:
    """
    Persist songs and submit their documents to a vector store.

    Args:
        song_repository: Saves songs and assigns their ids
        vector_store: Embeds and stores documents
        resources_dir: Base directory for bulk requests naming a CSV file
    """

    def __init__(
        self,
        song_repository: SongRepository,
        vector_store: VectorStore,
        resources_dir: Union[str, Path] = RESOURCES_PATH,
    ) -> None:
        self.song_repository = song_repository
        self.vector_store = vector_store
        self.resources_dir = Path(resources_dir)

    def create_embedding_from_song_list(
        self,
        requests: Optional[Iterable[Union[SongRequest, Mapping[str, Any]]]],
    ) -> int:
        """
        Save and embed a batch of song requests.

        Args:
            requests: SongRequest objects, or plain mappings validated into them

        Returns:
            Number of embedded documents (equal to the number of requests)

        Raises:
            InvalidArgumentError: If the batch is None, empty or malformed
            PersistenceFailure: If the repository fails
            EmbeddingBackendFailure: If the vector store fails
        """
        request_list = list(requests) if requests is not None else []
        if not request_list:
            raise InvalidArgumentError("Song request list cannot be None or empty")

        try:
            request_list = [
                r if isinstance(r, SongRequest) else SongRequest.model_validate(r)
                for r in request_list
            ]
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid song request: {e}") from e

        logger.info("Starting bulk embedding for %d songs", len(request_list))

        songs = [to_song(request) for request in request_list]

        try:
            saved_songs = self.song_repository.save_all(songs)
        except Exception as e:
            logger.exception("Failed to save %d songs", len(songs))
            raise PersistenceFailure(f"Saving {len(songs)} songs failed: {e}") from e

        if len(saved_songs) != len(songs):
            raise PersistenceFailure(
                f"Repository returned {len(saved_songs)} songs for {len(songs)} submitted"
            )

        documents = [to_song_document(song) for song in saved_songs]

        try:
            self.vector_store.add(documents)
        except Exception as e:
            logger.exception("Failed to embed %d documents", len(documents))
            raise EmbeddingBackendFailure(
                f"Embedding {len(documents)} documents failed: {e}",
                provider_name=self.vector_store.name,
            ) from e

        logger.info("Successfully embedded %d songs", len(documents))
        return len(documents)

    def embed_dataset(self, dataset: DatasetResult) -> BulkSongResponse:
        """Embed a generated dataset; an empty one touches no collaborator."""
        if not dataset.songs:
            logger.warning("No songs to embed (skipped rows=%d)", len(dataset.failures))
            return BulkSongResponse(embedded_songs=0, row_failures=dataset.failures)

        embedded = self.create_embedding_from_song_list(dataset.songs)
        return BulkSongResponse(embedded_songs=embedded, row_failures=dataset.failures)

    def create_embedding_from_csv(self, source: SongSource) -> BulkSongResponse:
        """Generate songs from a CSV path or stream and embed them."""
        return self.embed_dataset(generate_song_requests(source))

    def create_embedding_from_bulk_song(
        self,
        request: Optional[BulkSongRequest],
    ) -> BulkSongResponse:
        """
        Embed the songs of a CSV file named relative to `resources_dir`.

        Raises:
            InvalidArgumentError: If the request or file name is missing/blank,
                or the name points outside the resources directory
            SourceReadError: If the file cannot be read
        """
        if request is None or not (request.file_name or "").strip():
            raise InvalidArgumentError("Bulk request and file name cannot be None or empty")

        try:
            file_path = resolve_source_path(request.file_name, self.resources_dir)
        except ValueError as e:
            raise InvalidArgumentError(str(e)) from e

        logger.info("Processing bulk song embedding from file: %s", file_path)

        try:
            dataset = generate_song_requests(file_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.exception("Failed to read CSV file: %s", file_path)
            raise SourceReadError(f"Failed to process CSV file: {request.file_name}") from e

        response = self.embed_dataset(dataset)
        logger.info(
            "Processed %d songs from file: %s",
            response.embedded_songs,
            request.file_name,
        )
        return response


def run_pipeline(
    input_path: Union[Path, str] = "data/songs.csv",
    output_dir: Union[Path, str] = "output",
    dry_run: bool = False,
    keep_history: bool = True,
    batch_size: int = 100,
) -> Tuple[int, int, Dict[str, Path]]:
    """
    Run the CSV -> songs -> embeddings pipeline with file-backed collaborators.

    Pipeline Steps:
    1. Load and normalize CSV rows
    2. Save songs and embed their documents
    3. Write run metadata

    Output files (in `output_dir`):
    - songs_<ts>.json        saved songs (repository)
    - song_points_<ts>.json  Qdrant points with embeddings (vector store)
    - run_metadata_<ts>.json counts, skipped rows, durations
    Without `keep_history` the timestamp suffix is dropped and files are
    overwritten. With `dry_run` in-memory collaborators are used and
    nothing is written.

    Returns:
        Tuple of (total_data_rows, embedded_count, output_paths_dict)

    Raises:
        FileNotFoundError: If input_path doesn't exist
        LyricMindError: For empty sources, missing columns and collaborator failures
    """
    input_path = Path(input_path)
    output_dir = Path(output_dir)

    run_timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    job_start = time.time()
    suffix = f"_{run_timestamp}" if keep_history else ""

    # ========== STEP 1: LOAD AND NORMALIZE ==========
    t0 = time.time()
    logger.info("STEP 1/3: Loading songs from %s", input_path)

    try:
        dataset = generate_song_requests(input_path)
    except FileNotFoundError:
        logger.exception("Input file not found: %s", input_path)
        raise
    except LyricMindError:
        logger.exception("Invalid song CSV: %s", input_path)
        raise

    total_rows = len(dataset.songs) + len(dataset.failures)
    logger.info(
        "✓ Loaded %d songs in %.2fs (skipped=%d)",
        len(dataset.songs),
        time.time() - t0,
        len(dataset.failures),
    )

    # ========== STEP 2: SAVE AND EMBED ==========
    t1 = time.time()
    logger.info("STEP 2/3: Saving and embedding %d songs", len(dataset.songs))

    output_paths: Dict[str, Path] = {}
    if dry_run:
        logger.info("DRY RUN: using in-memory repository and vector store")
        repository: SongRepository = InMemorySongRepository()
        store: VectorStore = InMemoryVectorStore()
    else:
        output_dir.mkdir(parents=True, exist_ok=True)
        songs_path = output_dir / f"songs{suffix}.json"
        points_path = output_dir / f"song_points{suffix}.json"
        repository = JsonSongRepository(songs_path)
        store = QdrantPointsStore(points_path, batch_size=batch_size)

    pipeline = EmbeddingPipeline(repository, store)
    response = pipeline.embed_dataset(dataset)

    if not dry_run:
        for name, path in (("songs", songs_path), ("points", points_path)):
            if path.exists():
                output_paths[name] = path

    logger.info(
        "✓ Embedded %d songs in %.2fs",
        response.embedded_songs,
        time.time() - t1,
    )

    # ========== STEP 3: RUN METADATA ==========
    if dry_run:
        logger.info("STEP 3/3: DRY RUN, skipping run metadata")
        return total_rows, response.embedded_songs, output_paths

    logger.info("STEP 3/3: Writing run metadata")
    meta_path = _save_metadata(output_dir, suffix, {
        "timestamp": run_timestamp,
        "input_file": str(input_path),
        "total_rows": total_rows,
        "embedded": response.embedded_songs,
        "skipped": len(response.row_failures),
        "row_failures": [f.model_dump() for f in response.row_failures],
        "outputs": {k: str(v) for k, v in output_paths.items()},
        "duration_seconds": time.time() - job_start,
    })
    if meta_path is not None:
        output_paths["metadata"] = meta_path

    return total_rows, response.embedded_songs, output_paths


def _save_metadata(
    output_dir: Path,
    suffix: str,
    metadata: Dict[str, Any],
) -> Optional[Path]:
    """Save pipeline run metadata. Failure here is logged, not raised."""
    meta_path = output_dir / f"run_metadata{suffix}.json"

    try:
        with meta_path.open("w", encoding="utf-8") as f:
            json.dump(metadata, f, ensure_ascii=False, indent=2)
        logger.info("✓ Saved: %s", meta_path.name)
        return meta_path
    except OSError:
        logger.warning("Failed to save run metadata (non-fatal)", exc_info=True)
        return None
