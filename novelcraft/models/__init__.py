"""Domain models for the application."""

from novelcraft.models.base import Base
from novelcraft.models.chapter import Chapter
from novelcraft.models.chapter_revision import ChapterRevision
from novelcraft.models.document import Document, DocumentType
from novelcraft.models.link_reference import LinkReference
from novelcraft.models.wiki_page import WikiPage

__all__ = [
    "Base",
    "Chapter",
    "ChapterRevision",
    "Document",
    "DocumentType",
    "LinkReference",
    "WikiPage",
]
