"""Repository for Chapter database operations."""

from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from novelcraft.models.chapter import Chapter
from novelcraft.utils.text import count_words


class ChapterRepository:
    """Repository for Chapter CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the chapter repository.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def create(self, chapter: Chapter) -> Chapter:
        """Insert a new chapter and return it with generated fields populated."""
        chapter.word_count = count_words(chapter.content or "")
        self.session.add(chapter)
        await self.session.flush()
        await self.session.refresh(chapter)
        return chapter

    async def get_by_id(self, chapter_id: str) -> Chapter | None:
        """Retrieve a chapter by its ID.

        Args:
            chapter_id: UUID string of the chapter

        Returns:
            Chapter instance if found, None otherwise
        """
        stmt = select(Chapter).where(Chapter.id == chapter_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_project(self, project_id: str) -> list[Chapter]:
        """Retrieve all chapters of a project in manuscript order."""
        stmt = (
            select(Chapter)
            .where(Chapter.project_id == project_id)
            .order_by(Chapter.sort_order, Chapter.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_ids(self, project_id: str) -> list[str]:
        """Retrieve the IDs of all chapters of a project."""
        stmt = select(Chapter.id).where(Chapter.project_id == project_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_titles(self, project_id: str) -> list[tuple[str, str]]:
        """Retrieve (id, title) pairs for link resolution."""
        stmt = select(Chapter.id, Chapter.title).where(Chapter.project_id == project_id)
        result = await self.session.execute(stmt)
        return [(row.id, row.title) for row in result]

    async def max_sort_order(self, project_id: str) -> int:
        """Return the highest sort_order in the project, or 0 if it has no chapters."""
        stmt = select(func.coalesce(func.max(Chapter.sort_order), 0)).where(
            Chapter.project_id == project_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def update_content(self, chapter: Chapter, content: str) -> Chapter:
        """Replace chapter content and recompute its word count.

        Args:
            chapter: Chapter to update
            content: New body text

        Returns:
            Updated Chapter instance
        """
        chapter.content = content
        chapter.word_count = count_words(content)
        chapter.updated_at = datetime.now(UTC)
        await self.session.flush()
        return chapter

    async def update_title(self, chapter: Chapter, title: str) -> Chapter:
        chapter.title = title
        chapter.updated_at = datetime.now(UTC)
        await self.session.flush()
        return chapter

    async def update_status(self, chapter: Chapter, status: str) -> Chapter:
        chapter.status = status
        chapter.updated_at = datetime.now(UTC)
        await self.session.flush()
        return chapter

    async def update_sort_orders(self, chapters: list[Chapter]) -> None:
        """Renumber chapters 1..n in the given order."""
        for position, chapter in enumerate(chapters, start=1):
            chapter.sort_order = position
        await self.session.flush()

    async def count(self) -> int:
        stmt = select(func.count()).select_from(Chapter)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
