"""Vector stores: the embedding collaborator of the pipeline.

`add(documents)` is all-or-nothing from the caller's point of view: it
either stores every document or raises.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from .embeddings import embed_texts_with_retry as embed_texts
from .models import QdrantPoint, SongDocument
from .qdrant_config import QDRANT_COLLECTION_NAME, QDRANT_PRIMARY_KEY

logger = logging.getLogger(__name__)


class VectorStore(ABC):
    """Contract for stores that embed and keep song documents."""

    name = "vector_store"

    @abstractmethod
    def add(self, documents: Sequence[SongDocument]) -> None:
        """Embed and store every document, or raise."""


class InMemoryVectorStore(VectorStore):
    """Keeps submitted documents in a list without embedding them."""

    name = "in_memory"

    def __init__(self) -> None:
        self.documents: List[SongDocument] = []

    def add(self, documents: Sequence[SongDocument]) -> None:
        self.documents.extend(documents)


class QdrantPointsStore(VectorStore):
    """
    Embeds documents with OpenAI and upserts them as Qdrant points into a
    JSON file.

    Point layout:
        {"id": <songId>, "vector": [...], "payload": {"text": <content>, **metadata}}

    Nothing is written unless every document in the batch was embedded.
    """

    name = "qdrant_points"

    def __init__(
        self,
        path: Union[str, Path],
        batch_size: int = 100,
        collection_name: str = QDRANT_COLLECTION_NAME,
    ) -> None:
        self.path = Path(path)
        self.batch_size = batch_size
        self.collection_name = collection_name

    def build_points(self, documents: Sequence[SongDocument]) -> List[QdrantPoint]:
        """Embed documents batch by batch and build one point per document."""
        points: List[QdrantPoint] = []
        total_batches = (len(documents) + self.batch_size - 1) // self.batch_size

        logger.info(
            "Embedding %d documents in %d batches (batch_size=%d)",
            len(documents),
            total_batches,
            self.batch_size,
        )

        for batch_idx in range(0, len(documents), self.batch_size):
            batch_docs = documents[batch_idx:batch_idx + self.batch_size]
            batch_num = (batch_idx // self.batch_size) + 1

            start_time = time.time()
            vectors = embed_texts([doc.content for doc in batch_docs])
            if len(vectors) != len(batch_docs):
                raise ValueError(
                    f"Embedding backend returned {len(vectors)} vectors "
                    f"for {len(batch_docs)} documents"
                )

            logger.info(
                "Batch %d/%d embedded (%.2fs)",
                batch_num,
                total_batches,
                time.time() - start_time,
            )

            for doc, vector in zip(batch_docs, vectors):
                point_id = doc.metadata.get(QDRANT_PRIMARY_KEY)
                if not point_id:
                    raise ValueError(
                        f"Document is missing '{QDRANT_PRIMARY_KEY}' metadata"
                    )
                points.append(QdrantPoint(
                    id=str(point_id),
                    vector=vector,
                    payload={"text": doc.content, **doc.metadata},
                ))

        return points

    def _load_existing(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            return {str(p["id"]): p for p in json.load(f)}

    def add(self, documents: Sequence[SongDocument]) -> None:
        if not documents:
            logger.warning("No documents to embed")
            return

        points = self.build_points(documents)

        existing = self._load_existing()
        for point in points:
            existing[point.id] = point.model_dump()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(list(existing.values()), f, ensure_ascii=False, indent=2)

        logger.info(
            "Upserted %d points into collection '%s' (%s)",
            len(points),
            self.collection_name,
            self.path.name,
        )
