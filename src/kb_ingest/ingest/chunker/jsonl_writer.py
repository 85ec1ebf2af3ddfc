"""JSONL output for chunking results.

Each chunk becomes one JSON object per line with its identity keys
(hash, sequence), token count, text and location metadata: the shape a
downstream content-addressable store consumes.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

from kb_ingest.ingest.chunker.models import Chunk, ChunkingResult

logger = logging.getLogger(__name__)


def generate_chunk_id(chunk: Chunk) -> str:
    """Generate a stable chunk ID from its identity keys.

    Format: {first 16 hex chars of hash}#{sequence}

    Example:
        >>> from kb_ingest.ingest.chunker.models import Chunk
        >>> generate_chunk_id(Chunk("x", 1, 3, "ab" * 32))
        'abababababababab#3'
    """
    return f"{chunk.hash[:16]}#{chunk.sequence}"


def chunk_to_dict(chunk: Chunk, document_id: str | None = None) -> dict[str, Any]:
    """Convert a chunk to a JSON-serializable dict.

    Metadata fields that are None are omitted.

    Args:
        chunk: Chunk to serialize
        document_id: Optional source document identifier to attach

    Returns:
        Dictionary ready for json.dumps
    """
    record: dict[str, Any] = {
        "chunk_id": generate_chunk_id(chunk),
        "sequence": chunk.sequence,
        "hash": chunk.hash,
        "token_count": chunk.token_count,
        "text": chunk.text,
        "metadata": {k: v for k, v in asdict(chunk.metadata).items() if v is not None},
    }
    if document_id is not None:
        record["document_id"] = document_id
    return record


def write_chunks_jsonl(
    result: ChunkingResult,
    output_path: Path,
    document_id: str | None = None,
) -> int:
    """Write the chunks of a successful result to a JSONL file.

    Args:
        result: ChunkingResult to serialize
        output_path: Path for the output JSONL file (parents are created)
        document_id: Optional source document identifier for every record

    Returns:
        Number of chunks written

    Raises:
        ValueError: If the result is a failed one
    """
    if not result.success:
        code = result.error.code if result.error else "UNKNOWN_ERROR"
        raise ValueError(f"Cannot write a failed chunking result ({code})")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        for chunk in result.chunks:
            f.write(json.dumps(chunk_to_dict(chunk, document_id), ensure_ascii=False) + "\n")

    logger.debug(f"Wrote {len(result.chunks)} chunks to {output_path}")
    return len(result.chunks)
