"""Factory functions for creating Chunk objects.

This module provides helper functions for constructing Chunk objects
with computed identity (content hash) and for the final sequencing pass.
"""

from __future__ import annotations

import hashlib
from dataclasses import replace

from kb_ingest.ingest.chunker.models import Chunk, ChunkMetadata


def hash_text(text: str) -> str:
    """Compute the content hash of a chunk.

    The hash depends only on the trimmed text, never on metadata, so
    identical text always maps to the same identity key.

    Args:
        text: Chunk text

    Returns:
        SHA-256 hex digest of the trimmed text

    Example:
        >>> hash_text("  abc ") == hash_text("abc")
        True
    """
    return hashlib.sha256(text.strip().encode("utf-8")).hexdigest()


def make_chunk(
    text: str,
    token_count: int,
    metadata: ChunkMetadata,
    sequence: int = 0,
) -> Chunk:
    """Create a Chunk from reduced text.

    Args:
        text: Chunk text (trimmed here)
        token_count: Token count measured by the caller's tokenizer
        metadata: Location and heading context
        sequence: Provisional position; rewritten by resequence()

    Returns:
        A Chunk with its content hash filled in
    """
    cleaned = text.strip()
    return Chunk(
        text=cleaned,
        token_count=token_count,
        sequence=sequence,
        hash=hash_text(cleaned),
        metadata=metadata,
    )


def resequence(chunks: list[Chunk]) -> list[Chunk]:
    """Renumber chunks 0..N-1 in reading order."""
    return [replace(chunk, sequence=index) for index, chunk in enumerate(chunks)]
