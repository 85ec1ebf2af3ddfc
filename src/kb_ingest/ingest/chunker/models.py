"""Core data models for the chunking pipeline.

This module contains the dataclasses used throughout the chunking process:
- ChunkingConfig: Validated configuration parameters for chunking
- ChunkMetadata: Location and heading context attached to a chunk
- Chunk: A single token-bounded text chunk with metadata
- ChunkingStats: Aggregate counters for one chunking call
- ChunkingError: Structured error descriptor
- ChunkingResult: The value returned by Chunker.chunk_document
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ChunkingErrorCode = Literal[
    "EMPTY_DOCUMENT",
    "NO_TEXT_CONTENT",
    "INVALID_CONFIG",
    "TOKENIZATION_ERROR",
    "UNKNOWN_ERROR",
]
"""Error codes reported in a failed ChunkingResult."""


class InvalidConfigError(ValueError):
    """Raised when a ChunkingConfig violates its size ordering rules."""


class TokenizationError(RuntimeError):
    """Raised when a tokenizer returns something other than a token count."""


@dataclass(frozen=True)
class ChunkingConfig:
    """Configuration for token-bounded chunking.

    Attributes:
        min_tokens: Lower bound; smaller chunks get merged when possible (default: 300)
        max_tokens: Upper bound for a chunk (default: 800)
        target_tokens: Ideal size, used by the word-level splitter (default: 500)
        overlap_tokens: Approximate overlap between word-level fragments (default: 50)
        respect_section_boundaries: Chunk section by section when sections exist
            (default: True). When False, paragraphs flow across pages.

    Raises:
        InvalidConfigError: If min_tokens <= target_tokens <= max_tokens does not
            hold, a size is not a positive integer, or overlap_tokens is outside
            [0, target_tokens).
    """

    min_tokens: int = 300
    max_tokens: int = 800
    target_tokens: int = 500
    overlap_tokens: int = 50
    respect_section_boundaries: bool = True

    def __post_init__(self) -> None:
        for name in ("min_tokens", "max_tokens", "target_tokens", "overlap_tokens"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidConfigError(f"{name} must be an integer, got {value!r}")

        if self.min_tokens < 1:
            raise InvalidConfigError(f"min_tokens must be positive, got {self.min_tokens}")
        if not self.min_tokens <= self.target_tokens <= self.max_tokens:
            raise InvalidConfigError(
                "expected min_tokens <= target_tokens <= max_tokens, got "
                f"{self.min_tokens} / {self.target_tokens} / {self.max_tokens}"
            )
        if not 0 <= self.overlap_tokens < self.target_tokens:
            raise InvalidConfigError(
                f"overlap_tokens must be in [0, {self.target_tokens}), got {self.overlap_tokens}"
            )


@dataclass(frozen=True)
class ChunkMetadata:
    """Location and context for a chunk.

    Attributes:
        chapter: Heading of the enclosing level-1 section
        section: Heading of the enclosing level-2+ section
        page_start: First page the chunk overlaps (1-indexed)
        page_end: Last page the chunk overlaps (inclusive)
        heading_context: Heading text the chunk falls under
    """

    chapter: str | None = None
    section: str | None = None
    page_start: int | None = None
    page_end: int | None = None
    heading_context: str | None = None


@dataclass(frozen=True)
class Chunk:
    """Single token-bounded chunk of text.

    Attributes:
        text: Trimmed chunk text (what gets embedded)
        token_count: Tokens in text according to the chunker's tokenizer
        sequence: 0-based reading-order position within the document
        hash: SHA-256 hex digest of text, used for deduplication
        metadata: Location and heading context
    """

    text: str
    token_count: int
    sequence: int
    hash: str
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass
class ChunkingStats:
    """Aggregate counters for one chunking call.

    Attributes:
        total_chunks: Number of chunks returned
        average_tokens: Rounded mean token count per chunk
        min_tokens: Smallest chunk token count (0 when there are no chunks)
        max_tokens: Largest chunk token count
        total_tokens: Sum of token counts over returned chunks
        paragraphs_processed: Non-empty paragraphs fed to the reducer
        sections_processed: Sections chunked by the section strategy (0 after a
            fallback to pages)
        merge_count: Adjacent small chunks coalesced by the merge pass
        split_count: Over-long paragraphs broken up by the splitters
    """

    total_chunks: int = 0
    average_tokens: int = 0
    min_tokens: int = 0
    max_tokens: int = 0
    total_tokens: int = 0
    paragraphs_processed: int = 0
    sections_processed: int = 0
    merge_count: int = 0
    split_count: int = 0


@dataclass(frozen=True)
class ChunkingError:
    """Structured failure descriptor.

    Attributes:
        code: Machine-readable error code
        message: Human-readable description
        details: Optional diagnostics (formatted traceback for unexpected faults)
    """

    code: ChunkingErrorCode
    message: str
    details: str | None = None


@dataclass
class ChunkingResult:
    """Outcome of Chunker.chunk_document.

    Attributes:
        success: False when error is set
        chunks: Final chunks in reading order
        stats: Aggregate statistics for this call
        config: The effective configuration used
        error: Error descriptor for failed calls
    """

    success: bool
    chunks: list[Chunk]
    stats: ChunkingStats
    config: ChunkingConfig
    error: ChunkingError | None = None
