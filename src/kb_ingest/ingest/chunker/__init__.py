"""Chunker package - token-bounded chunking for retrieval-ready segments.

This package turns a ParsedDocument into chunks that respect minimum and
maximum token sizes, carry a SHA-256 content hash, and are numbered
contiguously in reading order.

Public API:
- Chunker: Caller-constructed chunking service (config + tokenizer)
- ChunkingConfig: Frozen, validated configuration dataclass
- Chunk / ChunkMetadata: Output chunk with location metadata
- ChunkingResult / ChunkingStats / ChunkingError: Result value
- count_tokens: tiktoken-based token counting
- split_paragraphs / split_sentences / split_words: Splitting levels
- merge_small_chunks: Final merge pass
- hash_text: Content hash
- write_chunks_jsonl: JSONL output
"""

# Core chunking
from kb_ingest.ingest.chunker.chunk_factory import hash_text, make_chunk, resequence
from kb_ingest.ingest.chunker.core import Chunker, reduce_paragraph, resolve_config

# JSONL output
from kb_ingest.ingest.chunker.jsonl_writer import (
    chunk_to_dict,
    generate_chunk_id,
    write_chunks_jsonl,
)

# Merge pass
from kb_ingest.ingest.chunker.merging import merge_small_chunks

# Models
from kb_ingest.ingest.chunker.models import (
    Chunk,
    ChunkingConfig,
    ChunkingError,
    ChunkingErrorCode,
    ChunkingResult,
    ChunkingStats,
    ChunkMetadata,
    InvalidConfigError,
    TokenizationError,
)

# Fold accumulators
from kb_ingest.ingest.chunker.reduction import (
    PARAGRAPH_SEPARATOR,
    SENTENCE_SEPARATOR,
    ReductionState,
    Segment,
    append_or_flush,
)

# Text splitting
from kb_ingest.ingest.chunker.text_splitting import (
    reduce_sentence,
    split_large_paragraph,
    split_paragraphs,
    split_sentences,
    split_words,
)

# Token counting
from kb_ingest.ingest.chunker.token_counting import (
    TokenCounter,
    approximate_tokens,
    count_tokens,
    safe_count_tokens,
    word_count_tokens,
)

__all__ = [
    # Constants
    "PARAGRAPH_SEPARATOR",
    "SENTENCE_SEPARATOR",
    # Models
    "Chunk",
    "ChunkMetadata",
    "ChunkingConfig",
    "ChunkingError",
    "ChunkingErrorCode",
    "ChunkingResult",
    "ChunkingStats",
    "InvalidConfigError",
    "ReductionState",
    "Segment",
    "TokenCounter",
    "TokenizationError",
    # Public API - Chunking
    "Chunker",
    "append_or_flush",
    "merge_small_chunks",
    "reduce_paragraph",
    "reduce_sentence",
    "resolve_config",
    "split_large_paragraph",
    "split_paragraphs",
    "split_sentences",
    "split_words",
    # Public API - Utilities
    "approximate_tokens",
    "chunk_to_dict",
    "count_tokens",
    "generate_chunk_id",
    "hash_text",
    "make_chunk",
    "resequence",
    "safe_count_tokens",
    "word_count_tokens",
    "write_chunks_jsonl",
]
