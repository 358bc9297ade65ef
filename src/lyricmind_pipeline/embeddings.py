"""Embeddings Generation Module

Computes vector embeddings for song documents with OpenAI's embedding API.
Used by the Qdrant points store; the rest of the pipeline never sees
vectors.

Key features:
  - Per-text truncation so long lyrics fit the model context window
  - Batched API calls
  - Exponential backoff on rate limiting
  - Fake zero vectors for local runs without API access

Environment variables:
  OPENAI_API_KEY: API key for OpenAI
  USE_FAKE_EMBEDDINGS: Set to '1' to return fake vectors
  EMBEDDING_MODEL: Model name (default: text-embedding-3-small)
  MAX_EMBEDDING_CHARS: Maximum characters per text (default: 8000)
"""

from typing import List, Optional
import os
import time
import logging

import openai
from openai import OpenAI

logger = logging.getLogger(__name__)

# Created on first use so importing this module never needs an API key.
client: Optional[OpenAI] = None

USE_FAKE_EMBEDDINGS = os.getenv("USE_FAKE_EMBEDDINGS", "0") == "1"
FAKE_EMBEDDING_DIM = 8

EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")

# ~4 chars/token keeps 8000 chars well under the 8191 token limit
MAX_EMBEDDING_CHARS = int(os.getenv("MAX_EMBEDDING_CHARS", "8000"))


def get_client() -> OpenAI:
    global client
    if client is None:
        client = OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
    return client


def _truncate_for_embedding(text: str, max_chars: int = MAX_EMBEDDING_CHARS) -> str:
    """
    Cut text down to `max_chars`, preferring to stop at a space.

    The cut backs up to the last space only when that space lies in the
    final 20% of the allowed length, so short words never cost much text.
    """
    if not text:
        return ""

    if len(text) <= max_chars:
        return text

    original_len = len(text)
    truncated = text[:max_chars]

    last_space = truncated.rfind(" ")
    if last_space > int(max_chars * 0.8):
        truncated = truncated[:last_space]

    logger.info(
        "Truncated song text for embedding: %d -> %d chars",
        original_len,
        len(truncated),
    )
    return truncated


def embed_texts(
    texts: List[str],
    model: str = EMBEDDING_MODEL,
    batch_size: int = 50,
    max_chars: int = MAX_EMBEDDING_CHARS,
) -> List[List[float]]:
    """
    Embed texts with the OpenAI embeddings API.

    Args:
        texts: Document contents to embed
        model: OpenAI embedding model
        batch_size: Number of texts per API call
        max_chars: Character limit per text

    Returns:
        One vector per input text, in input order

    Raises:
        ValueError: If the API returns vectors of differing dimension
        openai.OpenAIError: On API failures
    """
    if not texts:
        logger.debug("embed_texts called with empty list; returning []")
        return []

    if USE_FAKE_EMBEDDINGS:
        logger.warning(
            "USE_FAKE_EMBEDDINGS=1 set; returning %d-dim zero vectors without "
            "calling OpenAI",
            FAKE_EMBEDDING_DIM,
        )
        return [[0.0] * FAKE_EMBEDDING_DIM for _ in texts]

    processed_texts = [_truncate_for_embedding(text, max_chars) for text in texts]
    vectors: List[List[float]] = []
    api = get_client()

    try:
        for start in range(0, len(processed_texts), batch_size):
            batch = processed_texts[start : start + batch_size]

            logger.debug(
                "Calling OpenAI embeddings: model=%s, batch=[%d:%d]",
                model, start, start + len(batch) - 1
            )
            response = api.embeddings.create(model=model, input=batch)
            vectors.extend(list(item.embedding) for item in response.data)

        if vectors:
            expected_dim = len(vectors[0])
            for idx, vec in enumerate(vectors):
                if len(vec) != expected_dim:
                    raise ValueError(
                        f"Inconsistent embedding dimension at index {idx}: "
                        f"expected {expected_dim}, got {len(vec)}"
                    )

        logger.info(
            "Generated %d embeddings (dim=%d)",
            len(vectors), len(vectors[0]) if vectors else 0
        )
        return vectors

    except Exception:
        logger.exception("Failed to generate embeddings for %d texts", len(texts))
        raise


def embed_texts_with_retry(
    texts: List[str],
    model: str = EMBEDDING_MODEL,
    batch_size: int = 50,
    max_chars: int = MAX_EMBEDDING_CHARS,
    max_retries: int = 5,
) -> List[List[float]]:
    """
    Call embed_texts, retrying rate-limit errors with exponential backoff.

    `insufficient_quota` errors are not retried.
    """
    retries = 0
    while True:
        try:
            return embed_texts(texts, model=model, batch_size=batch_size, max_chars=max_chars)
        except openai.RateLimitError as e:
            retries += 1
            if getattr(e, "code", None) == "insufficient_quota" or "insufficient_quota" in str(e):
                logger.error("Insufficient quota, not retrying: %s", e)
                raise

            if retries > max_retries:
                logger.error("Max retries exceeded (%d). Last error: %s", max_retries, e)
                raise

            wait_time = 2 ** retries
            logger.warning(
                "Rate limited by OpenAI (attempt %d/%d); sleeping %ds",
                retries,
                max_retries,
                wait_time,
            )
            time.sleep(wait_time)
