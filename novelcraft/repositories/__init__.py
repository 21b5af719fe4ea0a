"""Async data access, one repository per table."""

from novelcraft.repositories.chapter_repository import ChapterRepository
from novelcraft.repositories.document_repository import DocumentRepository
from novelcraft.repositories.link_repository import LinkRepository
from novelcraft.repositories.revision_repository import RevisionRepository
from novelcraft.repositories.wiki_page_repository import WikiPageRepository

__all__ = [
    "ChapterRepository",
    "DocumentRepository",
    "LinkRepository",
    "RevisionRepository",
    "WikiPageRepository",
]
