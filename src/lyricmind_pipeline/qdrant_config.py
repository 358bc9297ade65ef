"""
Qdrant collection layout for song embeddings.

The points store writes Qdrant-shaped JSON (id / vector / payload) that can
be upserted into this collection as-is. The validator checks output files
against the same required payload fields.
"""

QDRANT_COLLECTION_NAME = "songs"

# Primary key for upserts; re-embedding a song replaces its point.
QDRANT_PRIMARY_KEY = "songId"

# Payload keys every point must carry
QDRANT_REQUIRED_PAYLOAD_FIELDS = ["text", "songId", "title", "artist"]
