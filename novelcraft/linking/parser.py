"""Lexical extraction of ``[[link]]`` markup from document bodies."""

from collections.abc import Iterator
from dataclasses import dataclass

OPEN = "[["
CLOSE = "]]"
ALIAS_SEPARATOR = "|"


@dataclass(frozen=True)
class LinkOccurrence:
    """One ``[[...]]`` occurrence in a body.

    Attributes:
        target: Trimmed link target (text before the first ``|``)
        display: Trimmed alias text after ``|``, or None
        start: Offset of the opening ``[[``
        end: Offset just past the closing ``]]``
    """

    target: str
    display: str | None
    start: int
    end: int


def iter_links(body: str) -> Iterator[LinkOccurrence]:
    """Yield link occurrences in document order.

    Single left-to-right scan. An opening ``[[`` that meets another ``[[``
    before its ``]]`` is abandoned and scanning resumes at the newer opening,
    so an unterminated bracket never swallows the rest of the body. Runs of
    three or more ``[`` open at the innermost pair. Occurrences whose target
    is empty after trimming are skipped.

    Args:
        body: Document body text

    Yields:
        LinkOccurrence for every well-formed link
    """
    length = len(body)
    position = body.find(OPEN)

    while position != -1:
        # "[[[A]]" opens at the innermost "[["
        while position + 2 < length and body[position + 2] == "[":
            position += 1

        content_start = position + len(OPEN)
        close = body.find(CLOSE, content_start)
        reopen = body.find(OPEN, content_start)

        if close == -1:
            return

        if reopen != -1 and reopen < close:
            position = reopen
            continue

        occurrence = _build_occurrence(body[content_start:close], position, close + len(CLOSE))
        if occurrence is not None:
            yield occurrence

        position = body.find(OPEN, close + len(CLOSE))


def parse_links(body: str) -> list[LinkOccurrence]:
    """Return all link occurrences of a body as a list.

    Example:
        >>> [link.target for link in parse_links("[[A]][[B]] and [[ C |see C]]")]
        ['A', 'B', 'C']
    """
    if not body:
        return []
    return list(iter_links(body))


def _build_occurrence(inner: str, start: int, end: int) -> LinkOccurrence | None:
    target, separator, display = inner.partition(ALIAS_SEPARATOR)
    target = target.strip()
    if not target:
        return None
    return LinkOccurrence(
        target=target,
        display=(display.strip() or None) if separator else None,
        start=start,
        end=end,
    )
