"""Exact-title resolution of link targets to documents."""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from novelcraft.models.document import DocumentType
from novelcraft.utils.text import generate_slug, normalize_title


@dataclass(frozen=True)
class LinkCandidate:
    """A document that link targets may resolve to."""

    id: str
    document_type: DocumentType
    title: str
    slug: str | None = None


@dataclass(frozen=True)
class Resolution:
    """Result of resolving one link target.

    Attributes:
        target_id: Chosen document ID
        target_type: Chosen document type
        raw_target: Link text that was resolved
        collisions: IDs of other documents that matched equally well
    """

    target_id: str
    target_type: DocumentType
    raw_target: str
    collisions: tuple[str, ...] = ()

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.collisions)


class ReferenceResolver:
    """Maps raw link targets to at most one document of a project.

    Matching is case-insensitive and whitespace-normalized against wiki page
    titles and slugs, then against chapter titles. Wiki pages take precedence
    over chapters. Among several equal matches the lexicographically smallest
    ID wins and the others are reported as collisions; callers decide how to
    report them.

    The resolver is an immutable snapshot of the project's titles.
    """

    def __init__(self, project_id: str, candidates: Iterable[LinkCandidate]) -> None:
        self.project_id = project_id
        self._wiki_by_key: dict[str, set[str]] = defaultdict(set)
        self._wiki_by_slug: dict[str, set[str]] = defaultdict(set)
        self._chapters_by_key: dict[str, set[str]] = defaultdict(set)

        for candidate in candidates:
            key = normalize_title(candidate.title)
            if candidate.document_type is DocumentType.WIKI_PAGE:
                if key:
                    self._wiki_by_key[key].add(candidate.id)
                if candidate.slug:
                    slug = candidate.slug.lower()
                    self._wiki_by_key[slug].add(candidate.id)
                    self._wiki_by_slug[slug].add(candidate.id)
            elif key:
                self._chapters_by_key[key].add(candidate.id)

    @classmethod
    def from_rows(
        cls,
        project_id: str,
        wiki_pages: Iterable[tuple[str, str, str]],
        chapters: Iterable[tuple[str, str]],
    ) -> "ReferenceResolver":
        """Build a resolver from (id, title, slug) and (id, title) rows."""
        candidates = [
            LinkCandidate(id=page_id, document_type=DocumentType.WIKI_PAGE, title=title, slug=slug)
            for page_id, title, slug in wiki_pages
        ]
        candidates.extend(
            LinkCandidate(id=chapter_id, document_type=DocumentType.CHAPTER, title=title)
            for chapter_id, title in chapters
        )
        return cls(project_id, candidates)

    def resolve(self, raw_target: str) -> Resolution | None:
        """Resolve a link target.

        Args:
            raw_target: Link text as written between the brackets

        Returns:
            Resolution, or None for a dangling link
        """
        key = normalize_title(raw_target)
        if not key:
            return None

        # Exact title or slug, then the target's own slug ("Rhea's Ship" -> rheas-ship)
        wiki_matches = self._wiki_by_key.get(key)
        if not wiki_matches:
            wiki_matches = self._wiki_by_slug.get(generate_slug(raw_target))
        if wiki_matches:
            return self._choose(raw_target, DocumentType.WIKI_PAGE, wiki_matches)

        chapter_matches = self._chapters_by_key.get(key)
        if chapter_matches:
            return self._choose(raw_target, DocumentType.CHAPTER, chapter_matches)

        return None

    @staticmethod
    def _choose(raw_target: str, document_type: DocumentType, matches: set[str]) -> Resolution:
        ordered = sorted(matches)
        return Resolution(
            target_id=ordered[0],
            target_type=document_type,
            raw_target=raw_target,
            collisions=tuple(ordered[1:]),
        )
