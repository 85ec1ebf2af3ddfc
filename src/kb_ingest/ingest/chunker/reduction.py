"""Immutable accumulators for the chunk reduction folds.

Every splitting level (paragraphs into chunks, sentences into fragments)
is a fold: a pure step function takes a ReductionState and the next unit
of text and returns a new ReductionState. Nothing here mutates in place,
so each flush/append rule can be exercised on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from kb_ingest.ingest.chunker.models import ChunkingConfig
from kb_ingest.ingest.chunker.token_counting import TokenCounter, safe_count_tokens

PARAGRAPH_SEPARATOR = "\n\n"
SENTENCE_SEPARATOR = " "


def merge_page_numbers(first: tuple[int, ...], second: tuple[int, ...]) -> tuple[int, ...]:
    """Union two page-number tuples, preserving first-seen order."""
    pages = list(first)
    for page in second:
        if page not in pages:
            pages.append(page)
    return tuple(pages)


@dataclass(frozen=True)
class Segment:
    """A piece of text with its measured token count.

    Attributes:
        text: Accumulated text
        token_count: Tokens in text
        pages: Page numbers the text overlaps, in reading order
    """

    text: str = ""
    token_count: int = 0
    pages: tuple[int, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.text

    def extend(self, other: Segment, token_count: int, separator: str) -> Segment:
        """Return a new segment with other appended after separator."""
        text = f"{self.text}{separator}{other.text}" if self.text else other.text
        return Segment(text, token_count, merge_page_numbers(self.pages, other.pages))


@dataclass(frozen=True)
class ReductionState:
    """Fold accumulator: segments already emitted plus the open buffer.

    Attributes:
        emitted: Finished segments in reading order
        current: Open buffer still accepting text
        splits: Number of over-long units handed to a lower splitting level
    """

    emitted: tuple[Segment, ...] = ()
    current: Segment = Segment()
    splits: int = 0

    def flush(self) -> ReductionState:
        """Emit the open buffer (if any) and start an empty one."""
        if self.current.is_empty:
            return self
        return replace(self, emitted=(*self.emitted, self.current), current=Segment())


def append_or_flush(
    state: ReductionState,
    piece: Segment,
    separator: str,
    counter: TokenCounter,
    config: ChunkingConfig,
    force_under_min: bool = True,
) -> ReductionState:
    """Fold one unit that fits max_tokens on its own into the accumulator.

    - Empty buffer: the piece becomes the buffer.
    - Combined size within max_tokens: append.
    - Combined size over max_tokens, buffer at or above min_tokens: flush
      the buffer and start a new one from the piece.
    - Combined size over max_tokens, buffer below min_tokens: append anyway.
      The result may exceed max_tokens; an under-min chunk is the worse outcome.
      With force_under_min=False the buffer is flushed instead, whatever its size.

    Args:
        state: Current accumulator
        piece: Unit to add (paragraph or sentence)
        separator: Joiner placed between buffer and piece
        counter: Tokenizer used to measure the combined text
        config: Size bounds
        force_under_min: Append past max_tokens when the buffer is below min_tokens

    Returns:
        New accumulator
    """
    current = state.current
    if current.is_empty:
        return replace(state, current=piece)

    combined = safe_count_tokens(counter, f"{current.text}{separator}{piece.text}")
    if combined <= config.max_tokens:
        return replace(state, current=current.extend(piece, combined, separator))
    if current.token_count >= config.min_tokens or not force_under_min:
        return replace(state.flush(), current=piece)
    return replace(state, current=current.extend(piece, combined, separator))
