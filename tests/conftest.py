"""Shared pytest fixtures for kb-ingest tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from kb_ingest.ingest.chunker import Chunker, ChunkingConfig, token_counting, word_count_tokens
from kb_ingest.ingest.parsers import DocumentMetadata, Page, ParsedDocument, Section

# =============================================================================
# TEXT GENERATORS
# =============================================================================


def make_words(count: int, prefix: str = "w") -> str:
    """Return `count` distinct space-separated words without punctuation."""
    return " ".join(f"{prefix}{i}" for i in range(count))


def make_sentences(count: int, words_per_sentence: int = 10, prefix: str = "w") -> str:
    """Return exactly `count` words grouped into period-terminated sentences."""
    words = [f"{prefix}{i}" for i in range(count)]
    sentences = [
        " ".join(words[i : i + words_per_sentence]) + "."
        for i in range(0, count, words_per_sentence)
    ]
    return " ".join(sentences)


def make_paragraphs(count: int, words_each: int, prefix: str = "p") -> list[str]:
    """Return `count` paragraphs of `words_each` words, each with a unique prefix."""
    return [make_sentences(words_each, prefix=f"{prefix}{n}x") for n in range(count)]


def make_document(
    pages: list[str],
    sections: list[Section] | None = None,
) -> ParsedDocument:
    """Build a ParsedDocument by hand, bypassing the parsers."""
    page_list = [
        Page(number=i + 1, text=text, char_count=len(text)) for i, text in enumerate(pages)
    ]
    full_text = "\n\n".join(pages)
    return ParsedDocument(
        metadata=DocumentMetadata(page_count=len(pages)),
        full_text=full_text,
        pages=page_list,
        headings=[],
        sections=sections or [],
        total_characters=len(full_text),
        estimated_word_count=len(full_text.split()),
    )


# =============================================================================
# TOKENIZER FIXTURES
# =============================================================================


class _WordEncoding:
    """Stand-in for tiktoken.Encoding that encodes one token per word."""

    def encode(self, text: str) -> list[str]:
        return text.split()


@pytest.fixture
def word_tokenizer() -> Callable[[str], int]:
    """Deterministic tokenizer: one token per whitespace-separated word."""
    return word_count_tokens


@pytest.fixture
def fake_tiktoken(monkeypatch: pytest.MonkeyPatch) -> None:
    """Replace the cached tiktoken encoder so count_tokens needs no download.

    Usage:
        def test_cli_run(fake_tiktoken, tmp_path):
            # count_tokens() now counts words
            ...
    """
    monkeypatch.setattr(token_counting, "_TIKTOKEN_ENCODER", _WordEncoding())


# =============================================================================
# CHUNKER FIXTURES
# =============================================================================


@pytest.fixture
def default_config() -> ChunkingConfig:
    """Default bounds: min 300, target 500, max 800, overlap 50."""
    return ChunkingConfig()


@pytest.fixture
def tiny_config() -> ChunkingConfig:
    """Small bounds for hand-checkable reduction arithmetic."""
    return ChunkingConfig(min_tokens=5, max_tokens=10, target_tokens=8, overlap_tokens=0)


@pytest.fixture
def word_chunker(word_tokenizer: Callable[[str], int]) -> Chunker:
    """Chunker with default bounds and the word tokenizer."""
    return Chunker(tokenizer=word_tokenizer)


# =============================================================================
# SAMPLE DOCUMENTS
# =============================================================================


@pytest.fixture
def make_words_fn() -> Callable[..., str]:
    return make_words


@pytest.fixture
def make_sentences_fn() -> Callable[..., str]:
    return make_sentences


@pytest.fixture
def make_paragraphs_fn() -> Callable[..., list[str]]:
    return make_paragraphs


@pytest.fixture
def make_document_fn() -> Callable[..., ParsedDocument]:
    return make_document


@pytest.fixture
def book_text() -> str:
    """Three-page extracted text with a preamble, two chapters and a section."""
    page_one = "\n".join(
        [
            "A Short Book",
            "",
            "Preface text that comes before any chapter.",
            "",
            "Chapter 1 Origins",
            make_sentences(400, prefix="a"),
            "",
            make_sentences(300, prefix="b"),
        ]
    )
    page_two = "\n".join(
        [
            make_sentences(200, prefix="c"),
            "",
            "Section 1 Early Days",
            make_sentences(350, prefix="d"),
        ]
    )
    page_three = "\n".join(
        [
            "Chapter 2 Later Years",
            make_sentences(500, prefix="e"),
        ]
    )
    return "\f".join([page_one, page_two, page_three])


@pytest.fixture
def book_file(tmp_path: Path, book_text: str) -> Path:
    """The three-page book written to a .txt file."""
    path = tmp_path / "extracted" / "book.txt"
    path.parent.mkdir(parents=True)
    path.write_text(book_text, encoding="utf-8")
    return path
