"""Shared type definitions for the structural extraction stage.

This module contains the dataclasses produced by page extraction,
heading detection and section building, and the ParsedDocument value
handed to the chunker.
"""

from dataclasses import dataclass, field

PAGE_BREAK_MARKER = "\n\n--- Page Break ---\n\n"
"""Separator placed between pages in ParsedDocument.full_text."""

DEFAULT_HEADING_PATTERNS: tuple[str, ...] = (
    # Chapter patterns (level 1)
    r"^Chapter\s+\d+",
    r"^CHAPTER\s+\d+",
    # Section patterns (level 2)
    r"^Section\s+\d+",
    r"^SECTION\s+\d+",
    # Numbered and all-caps headings (level 3)
    r"^\d+\.\s+[A-Z]",
    r"^\d+\.\d+\s+[A-Z]",
    r"^[A-Z][A-Z\s]{10,}$",
)
"""Heading patterns in priority order; the index decides the level."""


@dataclass(frozen=True)
class Page:
    """A single page of extracted text.

    Attributes:
        number: 1-based page number.
        text: Trimmed page text.
        char_count: Length of text in characters.
    """

    number: int
    text: str
    char_count: int


@dataclass(frozen=True)
class Heading:
    """A detected heading line.

    Attributes:
        text: Trimmed heading line.
        level: 1 = chapter, 2 = section, 3 = subsection.
        page_number: Page the heading appears on.
        position_in_page: 0-based line index within the page text.
    """

    text: str
    level: int
    page_number: int
    position_in_page: int


@dataclass(frozen=True)
class Section:
    """A region of the document bounded by consecutive headings.

    Attributes:
        heading: Heading text, or None for untitled regions.
        level: Heading level; 0 when the section has no heading.
        page_start: First page of the section.
        page_end: Last page of the section (inclusive).
        text: Section body without its heading line.
    """

    heading: str | None
    level: int
    page_start: int
    page_end: int
    text: str


@dataclass(frozen=True)
class DocumentMetadata:
    """Descriptive metadata supplied by the text-extraction collaborator."""

    page_count: int
    title: str | None = None
    author: str | None = None
    subject: str | None = None
    keywords: str | None = None
    creator: str | None = None
    producer: str | None = None


@dataclass
class ParserOptions:
    """Options for parse_document.

    Attributes:
        max_pages: Keep at most this many pages (None keeps all).
        detect_headings: Run heading detection at all.
        preserve_page_boundaries: Join pages with PAGE_BREAK_MARKER in full_text.
        heading_patterns: Regex patterns in priority order.
        min_heading_length: Shortest trimmed line considered a heading.
        max_heading_length: Longest trimmed line considered a heading.
    """

    max_pages: int | None = None
    detect_headings: bool = True
    preserve_page_boundaries: bool = True
    heading_patterns: tuple[str, ...] = DEFAULT_HEADING_PATTERNS
    min_heading_length: int = 3
    max_heading_length: int = 150


@dataclass
class ParsedDocument:
    """Structured view of one extracted document.

    Attributes:
        metadata: Page count and descriptive fields.
        full_text: Complete document text.
        pages: Pages in order.
        headings: Detected headings in reading order (may be empty).
        sections: Sections in reading order (may be empty).
        total_characters: len(full_text).
        estimated_word_count: Whitespace-separated words in full_text.
    """

    metadata: DocumentMetadata
    full_text: str
    pages: list[Page] = field(default_factory=list)
    headings: list[Heading] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    total_characters: int = 0
    estimated_word_count: int = 0
