"""Unit tests for parse_document."""

import pytest

from kb_ingest.ingest.parsers import (
    PAGE_BREAK_MARKER,
    DocumentMetadata,
    ParserOptions,
    count_words,
    parse_document,
)


class _AlwaysLevelTwo:
    def classify(self, line: str) -> int | None:
        return 2 if line.startswith("##") else None


class TestParseDocument:
    """Tests for the structural extraction entry point."""

    @pytest.mark.unit
    def test_book_structure(self, book_text: str) -> None:
        document = parse_document(book_text, page_count=3)

        assert len(document.pages) == 3
        assert [(h.text, h.level, h.page_number) for h in document.headings] == [
            ("Chapter 1 Origins", 1, 1),
            ("Section 1 Early Days", 2, 2),
            ("Chapter 2 Later Years", 1, 3),
        ]
        assert [s.heading for s in document.sections] == [
            None,
            "Chapter 1 Origins",
            "Section 1 Early Days",
            "Chapter 2 Later Years",
        ]
        assert document.sections[0].text.startswith("A Short Book")
        assert document.metadata.page_count == 3

    @pytest.mark.unit
    def test_full_text_joins_pages_with_marker(self) -> None:
        document = parse_document("one\ftwo", page_count=2)

        assert document.full_text == f"one{PAGE_BREAK_MARKER}two"
        assert document.total_characters == len(document.full_text)

    @pytest.mark.unit
    def test_raw_text_when_page_boundaries_not_preserved(self) -> None:
        options = ParserOptions(preserve_page_boundaries=False)

        document = parse_document("one\ftwo", page_count=2, options=options)

        assert document.full_text == "one\ftwo"

    @pytest.mark.unit
    def test_heading_detection_can_be_disabled(self, book_text: str) -> None:
        document = parse_document(
            book_text, page_count=3, options=ParserOptions(detect_headings=False)
        )

        assert document.headings == []
        assert len(document.sections) == 1
        assert document.sections[0].level == 0
        assert (document.sections[0].page_start, document.sections[0].page_end) == (1, 3)

    @pytest.mark.unit
    def test_max_pages(self, book_text: str) -> None:
        document = parse_document(book_text, page_count=3, options=ParserOptions(max_pages=1))

        assert len(document.pages) == 1
        assert [h.text for h in document.headings] == ["Chapter 1 Origins"]

    @pytest.mark.unit
    def test_custom_classifier(self) -> None:
        text = "## Part A\nbody a\n## Part B\nbody b"

        document = parse_document(text, classifier=_AlwaysLevelTwo())

        assert [(s.heading, s.level, s.text) for s in document.sections] == [
            ("## Part A", 2, "body a"),
            ("## Part B", 2, "body b"),
        ]

    @pytest.mark.unit
    def test_custom_heading_patterns(self) -> None:
        options = ParserOptions(heading_patterns=(r"^Lesson\s+\d+",))

        document = parse_document("Lesson 1\nfirst\nChapter 2 Ignored\nsecond", options=options)

        assert [h.text for h in document.headings] == ["Lesson 1"]

    @pytest.mark.unit
    def test_supplied_metadata_is_kept(self) -> None:
        metadata = DocumentMetadata(page_count=1, title="Title", author="Someone")

        document = parse_document("text", metadata=metadata)

        assert document.metadata is metadata

    @pytest.mark.unit
    def test_word_count(self) -> None:
        document = parse_document("one two\nthree")
        assert document.estimated_word_count == 3
        assert count_words("  a  b ") == 2

    @pytest.mark.unit
    def test_empty_text(self) -> None:
        document = parse_document("")

        assert document.full_text == ""
        assert len(document.pages) == 1
        assert document.headings == []
        assert document.estimated_word_count == 0
