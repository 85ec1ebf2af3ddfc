"""Heading detection over page lines.

Heading detection is a pluggable strategy: anything with a
classify(line) -> level | None method can be used. The default
PatternHeadingClassifier tries an ordered list of regex patterns, and the
index of the first matching pattern decides the level.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Protocol

from kb_ingest.ingest.parsers.types import DEFAULT_HEADING_PATTERNS, Heading, Page

logger = logging.getLogger(__name__)


class HeadingClassifier(Protocol):
    """Decides whether a line is a heading, and at which level."""

    def classify(self, line: str) -> int | None:
        """Return the heading level (>= 1) for line, or None."""
        ...


def level_for_pattern_index(index: int) -> int:
    """Map a pattern's priority index to a heading level.

    Patterns 0-1 are chapters (1), 2-3 sections (2), the rest level 3.
    """
    if index < 2:
        return 1
    if index < 4:
        return 2
    return 3


def compile_patterns(patterns: Iterable[str]) -> list[re.Pattern[str] | None]:
    """Compile patterns, keeping a None placeholder for malformed ones.

    Placeholders keep the remaining patterns at their original index, so
    a bad pattern never shifts another pattern's level.
    """
    compiled: list[re.Pattern[str] | None] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            logger.warning(f"Skipping malformed heading pattern {pattern!r}: {exc}")
            compiled.append(None)
    return compiled


class PatternHeadingClassifier:
    """Regex-based heading classifier.

    Args:
        patterns: Regex strings in priority order.
        min_heading_length: Shortest trimmed line considered (inclusive).
        max_heading_length: Longest trimmed line considered (inclusive).

    Example:
        >>> classifier = PatternHeadingClassifier()
        >>> classifier.classify("Chapter 3 The Cell")
        1
        >>> classifier.classify("Section 2 Membranes")
        2
        >>> classifier.classify("just a sentence.") is None
        True
    """

    def __init__(
        self,
        patterns: Sequence[str] = DEFAULT_HEADING_PATTERNS,
        min_heading_length: int = 3,
        max_heading_length: int = 150,
    ) -> None:
        self.min_heading_length = min_heading_length
        self.max_heading_length = max_heading_length
        self._patterns = compile_patterns(patterns)

    def classify(self, line: str) -> int | None:
        candidate = line.strip()
        if not self.min_heading_length <= len(candidate) <= self.max_heading_length:
            return None
        for index, pattern in enumerate(self._patterns):
            if pattern is not None and pattern.search(candidate):
                return level_for_pattern_index(index)
        return None


def detect_headings(pages: Iterable[Page], classifier: HeadingClassifier) -> list[Heading]:
    """Find heading lines in every page.

    Args:
        pages: Pages in reading order.
        classifier: Strategy deciding heading levels.

    Returns:
        At most one Heading per line, ordered by (page_number, position_in_page).
    """
    headings: list[Heading] = []
    for page in pages:
        for position, line in enumerate(page.text.split("\n")):
            level = classifier.classify(line)
            if level is not None:
                headings.append(
                    Heading(
                        text=line.strip(),
                        level=level,
                        page_number=page.number,
                        position_in_page=position,
                    )
                )
    return headings
