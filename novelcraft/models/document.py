"""Document types shared by chapters and wiki pages."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class DocumentType(str, Enum):
    """Variants of a document. Values are stored in link rows."""

    CHAPTER = "chapter"
    WIKI_PAGE = "wiki_page"


@dataclass
class Document:
    """Read-only view over a chapter or a wiki page.

    Attributes:
        id: Document identifier, unique within the project
        project_id: Owning project
        document_type: Chapter or wiki page
        title: Display title
        body: Current persisted body text
        updated_at: Timestamp of the last persisted change
        slug: Normalized title (wiki pages only)
        tags: Tag names (wiki pages only)
        sort_order: Position in the manuscript (chapters only)
        word_count: Words in the body (chapters only)
        status: Workflow status (chapters only)
    """

    id: str
    project_id: str
    document_type: DocumentType
    title: str
    body: str
    updated_at: datetime
    slug: str | None = None
    tags: list[str] = field(default_factory=list)
    sort_order: int | None = None
    word_count: int | None = None
    status: str | None = None

    @property
    def is_chapter(self) -> bool:
        return self.document_type is DocumentType.CHAPTER
