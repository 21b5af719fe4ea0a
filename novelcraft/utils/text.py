"""Title normalization, slug generation and word counting."""

import re

_WHITESPACE_RE = re.compile(r"\s+")
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s-]")


def normalize_title(text: str) -> str:
    """Normalize a title or link target for lookup.

    Lowercases, collapses internal whitespace runs to single spaces and trims.

    Example:
        >>> normalize_title("  The   Iron\\tCitadel ")
        'the iron citadel'
    """
    return _WHITESPACE_RE.sub(" ", text.lower()).strip()


def generate_slug(title: str) -> str:
    """Create a URL-friendly slug from a title.

    Example:
        >>> generate_slug("Rhea's Ship")
        'rheas-ship'
    """
    slug = _SLUG_STRIP_RE.sub("", title.lower())
    slug = _WHITESPACE_RE.sub("-", slug)
    return slug.strip("-")


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    if not text:
        return 0
    return len(text.split())
