"""Text splitting for paragraphs that exceed the token ceiling.

Splitting escalates one level at a time, and only when a unit of text is
too large for the level above it:

1. Paragraphs: blank-line separated blocks
2. Sentences: terminal punctuation (. ! ?) followed by whitespace
3. Words: a sliding window targeting target_tokens, with overlap
"""

from __future__ import annotations

import re

from kb_ingest.ingest.chunker.models import ChunkingConfig
from kb_ingest.ingest.chunker.reduction import (
    SENTENCE_SEPARATOR,
    ReductionState,
    Segment,
    append_or_flush,
)
from kb_ingest.ingest.chunker.token_counting import TokenCounter, safe_count_tokens

PARAGRAPH_BREAK_PATTERN = re.compile(r"\n\s*\n")
SENTENCE_BOUNDARY_PATTERN = re.compile(r"(?<=[.!?])\s+")


def split_paragraphs(text: str) -> list[str]:
    """Split text on blank lines into trimmed, non-empty paragraphs.

    Example:
        >>> split_paragraphs("One.\\n\\n  \\nTwo.")
        ['One.', 'Two.']
    """
    return [p.strip() for p in PARAGRAPH_BREAK_PATTERN.split(text) if p.strip()]


def split_sentences(text: str) -> list[str]:
    """Split text after sentence-terminal punctuation.

    If no boundary is found the whole text comes back as a single sentence.

    Example:
        >>> split_sentences("It rained. Then it stopped!")
        ['It rained.', 'Then it stopped!']
    """
    sentences = [s.strip() for s in SENTENCE_BOUNDARY_PATTERN.split(text) if s.strip()]
    return sentences if sentences else [text]


def split_words(text: str, counter: TokenCounter, config: ChunkingConfig) -> list[Segment]:
    """Split text into word windows of about target_tokens.

    Words accumulate until the next word would push the window past
    target_tokens. The window is then emitted and the next one is seeded
    with the trailing round(overlap_tokens / target_tokens * n) words of the
    emitted window, where n is its word count. The overlap is a word-count
    heuristic, not an exact token measurement.

    A single word larger than target_tokens is emitted on its own.

    Args:
        text: Text with no usable sentence boundaries
        counter: Tokenizer function
        config: Supplies target_tokens and overlap_tokens

    Returns:
        Fragments in reading order
    """
    fragments: list[Segment] = []
    window: list[str] = []
    window_tokens = 0
    overlap_ratio = config.overlap_tokens / config.target_tokens

    for word in text.split():
        word_tokens = safe_count_tokens(counter, f" {word}" if window else word)
        if window and window_tokens + word_tokens > config.target_tokens:
            fragment_text = " ".join(window)
            fragments.append(Segment(fragment_text, safe_count_tokens(counter, fragment_text)))

            keep = min(round(overlap_ratio * len(window)), len(window) - 1)
            window = window[-keep:] if keep > 0 else []
            window_tokens = safe_count_tokens(counter, " ".join(window))
            word_tokens = safe_count_tokens(counter, f" {word}" if window else word)

        window.append(word)
        window_tokens += word_tokens

    if window:
        fragment_text = " ".join(window)
        fragments.append(Segment(fragment_text, safe_count_tokens(counter, fragment_text)))

    return fragments


def reduce_sentence(
    state: ReductionState,
    sentence: str,
    counter: TokenCounter,
    config: ChunkingConfig,
) -> ReductionState:
    """Fold one sentence into the sentence-level accumulator.

    Sentences that fit max_tokens are appended while the buffer stays within
    max_tokens and flushed otherwise, so fragments never pass max_tokens
    because of sentence packing. An over-long sentence escalates to
    split_words: a buffer at or above min_tokens is flushed first, while a
    smaller buffer is handed to the word splitter together with the
    sentence so its text is kept.
    """
    tokens = safe_count_tokens(counter, sentence)
    if tokens <= config.max_tokens:
        return append_or_flush(
            state,
            Segment(sentence, tokens),
            SENTENCE_SEPARATOR,
            counter,
            config,
            force_under_min=False,
        )

    current = state.current
    if not current.is_empty and current.token_count >= config.min_tokens:
        state = state.flush()
        words_input = sentence
    elif not current.is_empty:
        words_input = f"{current.text}{SENTENCE_SEPARATOR}{sentence}"
    else:
        words_input = sentence

    return ReductionState(
        emitted=(*state.emitted, *split_words(words_input, counter, config)),
        current=Segment(),
        splits=state.splits,
    )


def split_large_paragraph(
    text: str,
    counter: TokenCounter,
    config: ChunkingConfig,
) -> list[Segment]:
    """Split a paragraph larger than max_tokens into fragments.

    Sentences are reduced against max_tokens; sentences that are too large
    on their own fall through to the word splitter.

    Args:
        text: Paragraph text (over max_tokens)
        counter: Tokenizer function
        config: Size bounds

    Returns:
        Fragments in reading order (never empty for non-blank text)
    """
    state = ReductionState()
    for sentence in split_sentences(text):
        state = reduce_sentence(state, sentence, counter, config)
    return list(state.flush().emitted)
