"""Unit tests for paragraph, sentence and word splitting.

Test strategy:
- Boundary detection for paragraphs and sentences
- Word windows: target size, overlap, oversized single words
- Sentence reduction: packing within max_tokens, escalation to words
- Large paragraph splitting keeps all text and respects max_tokens
"""

from collections.abc import Callable

import pytest

from kb_ingest.ingest.chunker import (
    ChunkingConfig,
    ReductionState,
    Segment,
    reduce_sentence,
    split_large_paragraph,
    split_paragraphs,
    split_sentences,
    split_words,
)

# =============================================================================
# PARAGRAPHS AND SENTENCES
# =============================================================================


class TestSplitParagraphs:
    """Tests for blank-line paragraph splitting."""

    @pytest.mark.unit
    def test_splits_on_blank_lines(self) -> None:
        assert split_paragraphs("One.\n\nTwo.\n\n\nThree.") == ["One.", "Two.", "Three."]

    @pytest.mark.unit
    def test_whitespace_only_lines_count_as_blank(self) -> None:
        assert split_paragraphs("One.\n  \t \nTwo.") == ["One.", "Two."]

    @pytest.mark.unit
    def test_single_newline_keeps_paragraph(self) -> None:
        assert split_paragraphs("line one\nline two") == ["line one\nline two"]

    @pytest.mark.unit
    def test_blank_text_has_no_paragraphs(self) -> None:
        assert split_paragraphs("   \n\n  ") == []


class TestSplitSentences:
    """Tests for punctuation-based sentence splitting."""

    @pytest.mark.unit
    def test_splits_after_terminal_punctuation(self) -> None:
        text = "It rained. Did it stop? Yes!  Then sun."
        assert split_sentences(text) == ["It rained.", "Did it stop?", "Yes!", "Then sun."]

    @pytest.mark.unit
    def test_no_boundary_returns_whole_text(self) -> None:
        assert split_sentences("no boundary at all") == ["no boundary at all"]

    @pytest.mark.unit
    def test_punctuation_without_whitespace_is_not_a_boundary(self) -> None:
        assert split_sentences("version 2.5 is out.") == ["version 2.5 is out."]


# =============================================================================
# WORD WINDOWS
# =============================================================================


class TestSplitWords:
    """Tests for the sliding word window."""

    @pytest.mark.unit
    def test_windows_respect_target_with_overlap(
        self,
        word_tokenizer: Callable[[str], int],
        default_config: ChunkingConfig,
        make_words_fn: Callable[..., str],
    ) -> None:
        """2000 words at target 500 / overlap 50 should overlap by 50 words."""
        fragments = split_words(make_words_fn(2000), word_tokenizer, default_config)

        assert [f.token_count for f in fragments] == [500, 500, 500, 500, 200]
        assert fragments[1].text.startswith("w450 ")
        assert fragments[0].text.endswith(" w499")
        assert fragments[-1].text.endswith(" w1999")

    @pytest.mark.unit
    def test_no_overlap_partitions_words(
        self,
        word_tokenizer: Callable[[str], int],
        make_words_fn: Callable[..., str],
    ) -> None:
        config = ChunkingConfig(min_tokens=5, max_tokens=20, target_tokens=10, overlap_tokens=0)

        fragments = split_words(make_words_fn(25), word_tokenizer, config)

        assert [f.token_count for f in fragments] == [10, 10, 5]
        assert " ".join(f.text for f in fragments) == make_words_fn(25)

    @pytest.mark.unit
    def test_fragments_never_exceed_target(
        self,
        word_tokenizer: Callable[[str], int],
        make_words_fn: Callable[..., str],
    ) -> None:
        config = ChunkingConfig(min_tokens=10, max_tokens=50, target_tokens=30, overlap_tokens=9)

        fragments = split_words(make_words_fn(333), word_tokenizer, config)

        assert all(f.token_count <= config.target_tokens for f in fragments)
        assert fragments[-1].text.endswith("w332")

    @pytest.mark.unit
    def test_oversized_word_is_emitted_alone(self, tiny_config: ChunkingConfig) -> None:
        """A single word larger than target_tokens still becomes a fragment."""

        def char_tokens(text: str) -> int:
            return len(text.strip())

        fragments = split_words("ab " + "x" * 20 + " cd", char_tokens, tiny_config)

        assert [f.text for f in fragments] == ["ab", "x" * 20, "cd"]

    @pytest.mark.unit
    def test_empty_text_has_no_fragments(
        self,
        word_tokenizer: Callable[[str], int],
        default_config: ChunkingConfig,
    ) -> None:
        assert split_words("   ", word_tokenizer, default_config) == []


# =============================================================================
# SENTENCE REDUCTION
# =============================================================================


class TestReduceSentence:
    """Tests for folding sentences into fragments."""

    @pytest.mark.unit
    def test_sentences_pack_until_max(
        self,
        word_tokenizer: Callable[[str], int],
        tiny_config: ChunkingConfig,
    ) -> None:
        state = ReductionState()
        for sentence in ["a b c.", "d e f.", "g h i j k."]:
            state = reduce_sentence(state, sentence, word_tokenizer, tiny_config)

        assert [s.text for s in state.emitted] == ["a b c. d e f."]
        assert state.current.text == "g h i j k."

    @pytest.mark.unit
    def test_under_min_buffer_is_flushed_not_forced(
        self,
        word_tokenizer: Callable[[str], int],
        tiny_config: ChunkingConfig,
    ) -> None:
        """Sentence packing never passes max_tokens, even below min_tokens."""
        state = reduce_sentence(ReductionState(), "a b c d.", word_tokenizer, tiny_config)
        state = reduce_sentence(state, "e f g h i j k.", word_tokenizer, tiny_config)

        assert [s.token_count for s in state.emitted] == [4]
        assert state.current.token_count == 7

    @pytest.mark.unit
    def test_oversized_sentence_with_large_buffer_flushes_first(
        self,
        word_tokenizer: Callable[[str], int],
        tiny_config: ChunkingConfig,
        make_words_fn: Callable[..., str],
    ) -> None:
        state = ReductionState(current=Segment("a b c d e f.", 6))

        state = reduce_sentence(state, make_words_fn(12), word_tokenizer, tiny_config)

        assert state.emitted[0].text == "a b c d e f."
        assert [s.token_count for s in state.emitted[1:]] == [8, 4]
        assert state.current.is_empty

    @pytest.mark.unit
    def test_oversized_sentence_absorbs_small_buffer(
        self,
        word_tokenizer: Callable[[str], int],
        tiny_config: ChunkingConfig,
        make_words_fn: Callable[..., str],
    ) -> None:
        """A buffer below min_tokens is word-split together with the long sentence."""
        state = ReductionState(current=Segment("a b.", 2))

        state = reduce_sentence(state, make_words_fn(12), word_tokenizer, tiny_config)

        assert state.emitted[0].text.startswith("a b. w0")
        assert sum(s.token_count for s in state.emitted) == 14
        assert state.splits == 0


# =============================================================================
# LARGE PARAGRAPHS
# =============================================================================


class TestSplitLargeParagraph:
    """Tests for splitting a paragraph above max_tokens."""

    @pytest.mark.unit
    def test_sentence_structured_paragraph(
        self,
        word_tokenizer: Callable[[str], int],
        default_config: ChunkingConfig,
        make_sentences_fn: Callable[..., str],
    ) -> None:
        fragments = split_large_paragraph(make_sentences_fn(2000), word_tokenizer, default_config)

        assert [f.token_count for f in fragments] == [800, 800, 400]
        assert " ".join(f.text for f in fragments) == make_sentences_fn(2000)

    @pytest.mark.unit
    def test_paragraph_without_sentences_uses_words(
        self,
        word_tokenizer: Callable[[str], int],
        default_config: ChunkingConfig,
        make_words_fn: Callable[..., str],
    ) -> None:
        fragments = split_large_paragraph(make_words_fn(1200), word_tokenizer, default_config)

        assert len(fragments) == 3
        assert all(f.token_count <= default_config.max_tokens for f in fragments)

    @pytest.mark.unit
    def test_fragments_are_never_empty(
        self,
        word_tokenizer: Callable[[str], int],
        tiny_config: ChunkingConfig,
    ) -> None:
        text = "One two three four. Five six seven eight. Nine ten eleven twelve."

        fragments = split_large_paragraph(text, word_tokenizer, tiny_config)

        assert fragments
        assert all(f.text for f in fragments)
        assert [f.text for f in fragments] == [
            "One two three four. Five six seven eight.",
            "Nine ten eleven twelve.",
        ]
