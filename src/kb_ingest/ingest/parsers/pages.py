"""Page extraction from raw document text.

Text extractors usually separate pages with form feeds. When the number
of form-feed parts does not match the reported page count, the text is
divided into equal character windows instead.
"""

from __future__ import annotations

import math

from kb_ingest.ingest.parsers.types import Page

FORM_FEED = "\f"


def _make_page(number: int, text: str) -> Page:
    cleaned = text.strip()
    return Page(number=number, text=cleaned, char_count=len(cleaned))


def extract_pages(text: str, page_count: int, max_pages: int | None = None) -> list[Page]:
    """Build the ordered page list for a document.

    Args:
        text: Full extracted text.
        page_count: Number of pages reported by the extractor.
        max_pages: Keep at most this many pages (None keeps all).

    Returns:
        Pages numbered from 1, each with trimmed text.

    Examples:
        >>> [p.text for p in extract_pages("one\\ftwo", 2)]
        ['one', 'two']
        >>> [p.text for p in extract_pages("abcdef", 3)]
        ['ab', 'cd', 'ef']
    """
    text = text or ""
    if page_count <= 1:
        pages = [_make_page(1, text)]
    else:
        parts = text.split(FORM_FEED)
        if len(parts) == page_count:
            pages = [_make_page(i + 1, part) for i, part in enumerate(parts)]
        else:
            window = max(1, math.ceil(len(text) / page_count))
            pages = [
                _make_page(i + 1, text[i * window : (i + 1) * window]) for i in range(page_count)
            ]

    if max_pages is not None and max_pages > 0:
        pages = pages[:max_pages]
    return pages
