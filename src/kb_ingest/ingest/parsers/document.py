"""Structural extraction pipeline for extracted document text.

This module provides the main entry point for turning raw extracted text
into a ParsedDocument. It orchestrates the individual stages:

1. Splits the text into pages
2. Detects heading lines (optional, pluggable classifier)
3. Groups pages into sections bounded by headings
4. Computes full text and basic counts
"""

from __future__ import annotations

import logging

from kb_ingest.ingest.parsers.headings import (
    HeadingClassifier,
    PatternHeadingClassifier,
    detect_headings,
)
from kb_ingest.ingest.parsers.pages import extract_pages
from kb_ingest.ingest.parsers.sections import build_sections
from kb_ingest.ingest.parsers.types import (
    PAGE_BREAK_MARKER,
    DocumentMetadata,
    Heading,
    ParsedDocument,
    ParserOptions,
)

logger = logging.getLogger(__name__)


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def parse_document(
    text: str,
    page_count: int = 1,
    options: ParserOptions | None = None,
    classifier: HeadingClassifier | None = None,
    metadata: DocumentMetadata | None = None,
) -> ParsedDocument:
    """Parse extracted text into pages, headings and sections.

    Args:
        text: Full extracted text (pages separated by form feeds when known).
        page_count: Number of pages reported by the extractor.
        options: Parser options (defaults used when None).
        classifier: Heading classifier; a PatternHeadingClassifier built from
            options is used when None.
        metadata: Descriptive metadata; page_count is filled in when None.

    Returns:
        ParsedDocument ready for the chunker.

    Example:
        >>> doc = parse_document("Chapter 1 Origins\\nLong ago.\\fChapter 2 Later\\nThen.", 2)
        >>> [s.heading for s in doc.sections]
        ['Chapter 1 Origins', 'Chapter 2 Later']
    """
    options = options or ParserOptions()
    pages = extract_pages(text, page_count, options.max_pages)

    headings: list[Heading] = []
    if options.detect_headings:
        if classifier is None:
            classifier = PatternHeadingClassifier(
                options.heading_patterns,
                options.min_heading_length,
                options.max_heading_length,
            )
        headings = detect_headings(pages, classifier)

    sections = build_sections(pages, headings)

    if options.preserve_page_boundaries:
        full_text = PAGE_BREAK_MARKER.join(page.text for page in pages)
    else:
        full_text = text or ""

    if metadata is None:
        metadata = DocumentMetadata(page_count=max(page_count, 1))

    logger.debug(
        f"Parsed {len(pages)} pages, {len(headings)} headings, {len(sections)} sections"
    )
    return ParsedDocument(
        metadata=metadata,
        full_text=full_text,
        pages=pages,
        headings=headings,
        sections=sections,
        total_characters=len(full_text),
        estimated_word_count=count_words(full_text),
    )
