"""Lookups spanning both document tables (chapters and wiki pages)."""

from sqlalchemy.ext.asyncio import AsyncSession

from novelcraft.models.document import Document
from novelcraft.repositories.chapter_repository import ChapterRepository
from novelcraft.repositories.wiki_page_repository import WikiPageRepository


class DocumentRepository:
    """Resolves opaque document IDs to chapters or wiki pages.

    Document IDs are UUIDs and therefore unique across both tables.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.chapters = ChapterRepository(session)
        self.wiki_pages = WikiPageRepository(session)

    async def get(self, document_id: str) -> Document | None:
        """Load a document by ID from whichever table holds it."""
        page = await self.wiki_pages.get_by_id(document_id)
        if page is not None:
            return page.to_document()
        chapter = await self.chapters.get_by_id(document_id)
        if chapter is not None:
            return chapter.to_document()
        return None

    async def list_ids(self, project_id: str) -> list[str]:
        """IDs of every chapter and wiki page in the project."""
        wiki_ids = await self.wiki_pages.list_ids(project_id)
        chapter_ids = await self.chapters.list_ids(project_id)
        return wiki_ids + chapter_ids
