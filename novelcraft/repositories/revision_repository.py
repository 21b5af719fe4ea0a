"""Repository for ChapterRevision database operations."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from novelcraft.models.chapter_revision import ChapterRevision


class RevisionRepository:
    """Append-only access to chapter revisions.

    Revisions are immutable, so there is no update or delete.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def append(self, revision: ChapterRevision) -> ChapterRevision:
        """Insert a revision row."""
        self.session.add(revision)
        await self.session.flush()
        await self.session.refresh(revision)
        return revision

    async def get_by_id(self, revision_id: str) -> ChapterRevision | None:
        stmt = select(ChapterRevision).where(ChapterRevision.id == revision_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_chapter(self, chapter_id: str) -> list[ChapterRevision]:
        """Retrieve all revisions of a chapter, newest first.

        Args:
            chapter_id: Chapter UUID

        Returns:
            List of ChapterRevision instances ordered by created_at descending
        """
        stmt = (
            select(ChapterRevision)
            .where(ChapterRevision.chapter_id == chapter_id)
            .order_by(ChapterRevision.created_at.desc(), ChapterRevision.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def latest_for_chapter(self, chapter_id: str) -> ChapterRevision | None:
        """Return the most recent revision of a chapter, if any."""
        stmt = (
            select(ChapterRevision)
            .where(ChapterRevision.chapter_id == chapter_id)
            .order_by(ChapterRevision.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count(self) -> int:
        stmt = select(func.count()).select_from(ChapterRevision)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
