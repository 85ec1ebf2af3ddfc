"""Final pass that coalesces adjacent undersized chunks."""

from __future__ import annotations

from dataclasses import replace

from kb_ingest.ingest.chunker.chunk_factory import make_chunk
from kb_ingest.ingest.chunker.models import Chunk, ChunkingConfig, ChunkMetadata
from kb_ingest.ingest.chunker.reduction import PARAGRAPH_SEPARATOR
from kb_ingest.ingest.chunker.token_counting import TokenCounter, safe_count_tokens


def _later_page(first: int | None, second: int | None) -> int | None:
    if first is None:
        return second
    if second is None:
        return first
    return max(first, second)


def _merge_metadata(head: ChunkMetadata, tail: ChunkMetadata) -> ChunkMetadata:
    """Keep head's context, extend page_end to cover tail."""
    return replace(head, page_end=_later_page(head.page_end, tail.page_end))


def merge_small_chunks(
    chunks: list[Chunk],
    config: ChunkingConfig,
    counter: TokenCounter,
) -> tuple[list[Chunk], int]:
    """Merge each under-min chunk with its successor while the result fits.

    Single left-to-right pass. While the open chunk is below min_tokens and
    joining the next chunk stays within max_tokens, the two are merged
    (text concatenated, token count and hash recomputed). The last chunk is
    always kept, even when it is below min_tokens.

    Chunks already above max_tokens (from the forced-append rule) pass
    through unchanged; this pass never splits.

    Args:
        chunks: Chunks in reading order
        config: Size bounds
        counter: Tokenizer function

    Returns:
        Tuple of (merged chunks, number of merges performed)
    """
    if len(chunks) < 2:
        return list(chunks), 0

    merged: list[Chunk] = []
    merge_count = 0
    current = chunks[0]

    for following in chunks[1:]:
        if current.token_count < config.min_tokens:
            combined_text = f"{current.text}{PARAGRAPH_SEPARATOR}{following.text}"
            combined_tokens = safe_count_tokens(counter, combined_text)
            if combined_tokens <= config.max_tokens:
                current = make_chunk(
                    combined_text,
                    combined_tokens,
                    _merge_metadata(current.metadata, following.metadata),
                    current.sequence,
                )
                merge_count += 1
                continue
        merged.append(current)
        current = following

    merged.append(current)
    return merged, merge_count
