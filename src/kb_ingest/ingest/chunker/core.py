"""Core chunking logic for retrieval-ready segments.

This module contains the Chunker, which turns a ParsedDocument into
token-bounded chunks. Data models are in the separate models.py module.

Design rationale:
- Sections (when present and respected) are hard boundaries for reduction
- Paragraph breaks (blank lines) are the preferred split points
- Sentence boundaries are next, then word windows as a last resort
- Chunks aim to stay within [min_tokens, max_tokens]; when both cannot
  hold at the paragraph level, min_tokens wins
- Adjacent undersized chunks are merged in a final pass
- Every chunk carries a SHA-256 content hash and a contiguous sequence
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Iterable, Mapping
from dataclasses import fields, replace
from typing import Any

from kb_ingest.ingest.chunker.chunk_factory import make_chunk, resequence
from kb_ingest.ingest.chunker.merging import merge_small_chunks
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
from kb_ingest.ingest.chunker.reduction import (
    PARAGRAPH_SEPARATOR,
    ReductionState,
    Segment,
    append_or_flush,
)
from kb_ingest.ingest.chunker.text_splitting import split_large_paragraph, split_paragraphs
from kb_ingest.ingest.chunker.token_counting import (
    TokenCounter,
    count_tokens,
    safe_count_tokens,
)
from kb_ingest.ingest.parsers.types import PAGE_BREAK_MARKER, Page, ParsedDocument, Section

logger = logging.getLogger(__name__)


def resolve_config(
    base: ChunkingConfig,
    overrides: Mapping[str, Any] | None,
) -> ChunkingConfig:
    """Merge per-call overrides onto a base configuration.

    Args:
        base: Configuration held by the Chunker
        overrides: Field names of ChunkingConfig mapped to new values

    Returns:
        The effective configuration (validated on construction)

    Raises:
        InvalidConfigError: If a key is unknown or the result is invalid
    """
    if not overrides:
        return base
    known = {f.name for f in fields(ChunkingConfig)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise InvalidConfigError(f"Unknown chunking option(s): {', '.join(unknown)}")
    return replace(base, **overrides)


def reduce_paragraph(
    state: ReductionState,
    paragraph: Segment,
    counter: TokenCounter,
    config: ChunkingConfig,
) -> ReductionState:
    """Fold one paragraph into the chunk accumulator.

    A paragraph above max_tokens is split (see split_large_paragraph) and
    its fragments are emitted directly. The open buffer is emitted before
    them when it has reached min_tokens; a smaller buffer is prepended to
    the first fragment if the combination fits max_tokens, and emitted on
    its own otherwise.

    Paragraphs within max_tokens follow append_or_flush, including the
    forced append of an under-min buffer.

    Args:
        state: Current accumulator
        paragraph: Trimmed paragraph with its token count and page numbers
        counter: Tokenizer function
        config: Size bounds

    Returns:
        New accumulator
    """
    if paragraph.token_count <= config.max_tokens:
        return append_or_flush(state, paragraph, PARAGRAPH_SEPARATOR, counter, config)

    fragments = [
        replace(fragment, pages=paragraph.pages)
        for fragment in split_large_paragraph(paragraph.text, counter, config)
    ]
    emitted = state.emitted
    current = state.current

    if not current.is_empty:
        if current.token_count >= config.min_tokens or not fragments:
            emitted = (*emitted, current)
        else:
            combined = safe_count_tokens(
                counter, f"{current.text}{PARAGRAPH_SEPARATOR}{fragments[0].text}"
            )
            if combined <= config.max_tokens:
                fragments[0] = current.extend(fragments[0], combined, PARAGRAPH_SEPARATOR)
            else:
                emitted = (*emitted, current)

    return ReductionState(
        emitted=(*emitted, *fragments),
        current=Segment(),
        splits=state.splits + 1,
    )


def _section_metadata(section: Section) -> ChunkMetadata:
    return ChunkMetadata(
        chapter=section.heading if section.level == 1 else None,
        section=section.heading if section.level > 1 else None,
        page_start=section.page_start,
        page_end=section.page_end,
        heading_context=section.heading,
    )


def _page_metadata(segment: Segment) -> ChunkMetadata:
    if not segment.pages:
        return ChunkMetadata()
    return ChunkMetadata(page_start=min(segment.pages), page_end=max(segment.pages))


def _finalize_stats(stats: ChunkingStats, chunks: list[Chunk]) -> None:
    stats.total_chunks = len(chunks)
    if not chunks:
        return
    token_counts = [chunk.token_count for chunk in chunks]
    stats.total_tokens = sum(token_counts)
    stats.average_tokens = round(stats.total_tokens / len(chunks))
    stats.min_tokens = min(token_counts)
    stats.max_tokens = max(token_counts)


def _has_text(document: ParsedDocument) -> bool:
    """True when the document holds anything besides whitespace and page breaks."""
    if any(page.text.strip() for page in document.pages):
        return True
    return bool(document.full_text.replace(PAGE_BREAK_MARKER, "").strip())


def _error_result(
    code: ChunkingErrorCode,
    message: str,
    config: ChunkingConfig,
    details: str | None = None,
) -> ChunkingResult:
    return ChunkingResult(
        success=False,
        chunks=[],
        stats=ChunkingStats(),
        config=config,
        error=ChunkingError(code=code, message=message, details=details),
    )


class Chunker:
    """Turns parsed documents into token-bounded, hashed, sequenced chunks.

    Instances hold an immutable configuration and a tokenizer function and
    keep no per-call state, so one instance can serve many threads.
    """

    def __init__(
        self,
        config: ChunkingConfig | None = None,
        tokenizer: TokenCounter = count_tokens,
    ) -> None:
        self._config = config if config is not None else ChunkingConfig()
        self._tokenizer = tokenizer

    @property
    def config(self) -> ChunkingConfig:
        return self._config

    @property
    def tokenizer(self) -> TokenCounter:
        return self._tokenizer

    def with_config(self, **overrides: Any) -> Chunker:
        """Return a new Chunker with overrides applied to this one's config."""
        return Chunker(resolve_config(self._config, overrides), self._tokenizer)

    def count_tokens(self, text: str) -> int:
        """Count tokens with this chunker's tokenizer (with fallback)."""
        return safe_count_tokens(self._tokenizer, text)

    def chunk_document(
        self,
        document: ParsedDocument | None,
        overrides: Mapping[str, Any] | None = None,
    ) -> ChunkingResult:
        """Chunk a parsed document.

        Validation failures and internal faults are returned as failed
        results rather than raised, so batch callers can branch on
        result.success.

        Args:
            document: Parsed document (None yields EMPTY_DOCUMENT)
            overrides: Per-call ChunkingConfig field overrides

        Returns:
            ChunkingResult with chunks, stats and the effective config
        """
        try:
            config = resolve_config(self._config, overrides)
        except InvalidConfigError as exc:
            return _error_result("INVALID_CONFIG", f"Invalid chunking config: {exc}", self._config)

        if document is None:
            return _error_result("EMPTY_DOCUMENT", "No parsed document provided", config)
        if not document.full_text or not _has_text(document):
            return _error_result("NO_TEXT_CONTENT", "Parsed document has no text", config)

        try:
            stats = ChunkingStats()
            chunks: list[Chunk] = []
            if config.respect_section_boundaries and document.sections:
                chunks = self.chunk_by_sections(document.sections, config, stats)
            if not chunks:
                # Page fallback: stats describe only the strategy that produced chunks
                stats = ChunkingStats()
                text = document.full_text.strip()
                pages = document.pages or [Page(number=1, text=text, char_count=len(text))]
                chunks = self.chunk_by_pages(pages, config, stats)
            if not chunks:
                return _error_result("NO_TEXT_CONTENT", "Parsed document has no text", config)

            chunks, stats.merge_count = merge_small_chunks(chunks, config, self._tokenizer)
            chunks = resequence(chunks)
            _finalize_stats(stats, chunks)
        except TokenizationError as exc:
            logger.error(f"Tokenization failed: {exc}")
            logger.debug(f"Traceback:\n{traceback.format_exc()}")
            return _error_result(
                "TOKENIZATION_ERROR",
                f"Tokenization failed: {exc}",
                config,
                traceback.format_exc(),
            )
        except Exception as exc:
            logger.error(f"Chunking failed: {type(exc).__name__}: {exc}")
            logger.debug(f"Traceback:\n{traceback.format_exc()}")
            return _error_result(
                "UNKNOWN_ERROR",
                f"Chunking failed: {exc}",
                config,
                traceback.format_exc(),
            )

        logger.debug(
            f"Chunked {len(document.pages)} pages into {stats.total_chunks} chunks "
            f"(avg {stats.average_tokens} tokens, {stats.merge_count} merges, "
            f"{stats.split_count} splits)"
        )
        return ChunkingResult(success=True, chunks=chunks, stats=stats, config=config)

    def chunk_by_sections(
        self,
        sections: Iterable[Section],
        config: ChunkingConfig | None = None,
        stats: ChunkingStats | None = None,
    ) -> list[Chunk]:
        """Reduce each section's paragraphs into chunks, never crossing sections.

        Args:
            sections: Sections in reading order
            config: Size bounds (defaults to this chunker's config)
            stats: Counters to update (a throwaway instance if omitted)

        Returns:
            Chunks before the merge pass, numbered in reading order
        """
        config = config or self._config
        stats = stats if stats is not None else ChunkingStats()
        chunks: list[Chunk] = []

        for section in sections:
            stats.sections_processed += 1
            metadata = _section_metadata(section)
            state = ReductionState()
            for paragraph in split_paragraphs(section.text):
                stats.paragraphs_processed += 1
                segment = Segment(paragraph, self.count_tokens(paragraph), (section.page_start,))
                state = reduce_paragraph(state, segment, self._tokenizer, config)
            state = state.flush()
            stats.split_count += state.splits
            chunks.extend(make_chunk(s.text, s.token_count, metadata) for s in state.emitted)

        return resequence(chunks)

    def chunk_by_pages(
        self,
        pages: Iterable[Page],
        config: ChunkingConfig | None = None,
        stats: ChunkingStats | None = None,
    ) -> list[Chunk]:
        """Reduce paragraphs across pages into chunks.

        The accumulator carries the page numbers it overlaps, which become
        page_start and page_end of each chunk.

        Args:
            pages: Pages in reading order
            config: Size bounds (defaults to this chunker's config)
            stats: Counters to update (a throwaway instance if omitted)

        Returns:
            Chunks before the merge pass, numbered in reading order
        """
        config = config or self._config
        stats = stats if stats is not None else ChunkingStats()
        state = ReductionState()

        for page in pages:
            for paragraph in split_paragraphs(page.text):
                stats.paragraphs_processed += 1
                segment = Segment(paragraph, self.count_tokens(paragraph), (page.number,))
                state = reduce_paragraph(state, segment, self._tokenizer, config)

        state = state.flush()
        stats.split_count += state.splits
        return resequence(
            [make_chunk(s.text, s.token_count, _page_metadata(s)) for s in state.emitted]
        )
