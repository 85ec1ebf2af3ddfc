"""Section building from pages and detected headings.

A section runs from one heading to the next. Its text is assembled from
the pages it spans, with the heading's own line removed from the first
page and the next heading's line (and what follows it) removed from the
last page. When a heading line cannot be found verbatim, the whole page
is kept rather than guessing.
"""

from __future__ import annotations

from collections.abc import Sequence

from kb_ingest.ingest.parsers.types import Heading, Page, Section


def _find_line(
    lines: list[str],
    text: str,
    start: int = 0,
    hint: int | None = None,
) -> int | None:
    """Locate a heading line, trying its recorded position first."""
    if hint is not None and start <= hint < len(lines) and lines[hint].strip() == text:
        return hint
    for index in range(start, len(lines)):
        if lines[index].strip() == text:
            return index
    return None


def _preamble(pages: Sequence[Page], first: Heading) -> Section | None:
    """Collect non-blank text that precedes the first heading."""
    pieces: list[str] = []
    page_numbers: list[int] = []
    for page in pages:
        if page.number > first.page_number:
            break
        if page.number < first.page_number:
            piece = page.text
        else:
            lines = page.text.split("\n")
            index = _find_line(lines, first.text, hint=first.position_in_page)
            # An unlocatable heading keeps its whole page in the first section
            piece = "\n".join(lines[:index]) if index is not None else ""
        if piece.strip():
            pieces.append(piece)
            page_numbers.append(page.number)

    if not pieces:
        return None
    return Section(
        heading=None,
        level=0,
        page_start=page_numbers[0],
        page_end=page_numbers[-1],
        text="\n".join(pieces).strip(),
    )


def _section_text(
    pages: Sequence[Page],
    heading: Heading,
    following: Heading | None,
    page_end: int,
) -> str:
    pieces: list[str] = []
    for page in pages:
        if not heading.page_number <= page.number <= page_end:
            continue
        lines = page.text.split("\n")
        begin, end = 0, len(lines)

        if page.number == heading.page_number:
            index = _find_line(lines, heading.text, hint=heading.position_in_page)
            if index is not None:
                begin = index + 1

        if following is not None and page.number == following.page_number:
            index = _find_line(lines, following.text, start=begin, hint=following.position_in_page)
            if index is not None:
                end = index

        pieces.append("\n".join(lines[begin:end]))
    return "\n".join(pieces).strip()


def build_sections(pages: Sequence[Page], headings: Sequence[Heading]) -> list[Section]:
    """Group pages into sections bounded by consecutive headings.

    Without headings the result is a single level-0 section over every
    page. Text before the first heading, if any, becomes a level-0
    section without a heading.

    Args:
        pages: Pages in reading order.
        headings: Detected headings.

    Returns:
        Sections in reading order (empty only when there are no pages).
    """
    if not pages:
        return []

    if not headings:
        return [
            Section(
                heading=None,
                level=0,
                page_start=pages[0].number,
                page_end=pages[-1].number,
                text="\n\n".join(page.text for page in pages).strip(),
            )
        ]

    ordered = sorted(headings, key=lambda h: (h.page_number, h.position_in_page))
    last_page = pages[-1].number
    sections: list[Section] = []

    preamble = _preamble(pages, ordered[0])
    if preamble is not None:
        sections.append(preamble)

    for index, heading in enumerate(ordered):
        following = ordered[index + 1] if index + 1 < len(ordered) else None
        page_end = following.page_number if following is not None else last_page
        sections.append(
            Section(
                heading=heading.text,
                level=heading.level,
                page_start=heading.page_number,
                page_end=page_end,
                text=_section_text(pages, heading, following, page_end),
            )
        )

    return sections
