"""Parser modules for structural extraction.

This package turns raw extracted document text into a structure the
chunker can consume:

- **Pages**: form-feed or equal-window page splitting
- **Headings**: pluggable line classifiers (regex patterns by default)
- **Sections**: regions bounded by consecutive headings

Example usage::

    from kb_ingest.ingest.parsers import parse_document

    document = parse_document(raw_text, page_count=12)
    for section in document.sections:
        print(section.heading, section.page_start, section.page_end)

Public API:
    Types:
        - Page, Heading, Section: Structural units
        - DocumentMetadata, ParsedDocument: Document value for the chunker
        - ParserOptions: Parsing options
        - HeadingClassifier: Protocol for heading detection strategies

    Functions:
        - parse_document: Full structural extraction
        - extract_pages: Page splitting
        - detect_headings: Heading detection over pages
        - build_sections: Section assembly
"""

from kb_ingest.ingest.parsers.document import count_words, parse_document
from kb_ingest.ingest.parsers.headings import (
    HeadingClassifier,
    PatternHeadingClassifier,
    compile_patterns,
    detect_headings,
    level_for_pattern_index,
)
from kb_ingest.ingest.parsers.pages import extract_pages
from kb_ingest.ingest.parsers.sections import build_sections
from kb_ingest.ingest.parsers.types import (
    DEFAULT_HEADING_PATTERNS,
    PAGE_BREAK_MARKER,
    DocumentMetadata,
    Heading,
    Page,
    ParsedDocument,
    ParserOptions,
    Section,
)

__all__ = [
    # Constants
    "DEFAULT_HEADING_PATTERNS",
    "PAGE_BREAK_MARKER",
    # Types
    "DocumentMetadata",
    "Heading",
    "HeadingClassifier",
    "Page",
    "ParsedDocument",
    "ParserOptions",
    "PatternHeadingClassifier",
    "Section",
    # Functions
    "build_sections",
    "compile_patterns",
    "count_words",
    "detect_headings",
    "extract_pages",
    "level_for_pattern_index",
    "parse_document",
]
