"""Repository for WikiPage database operations."""

from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import attributes

from novelcraft.models.wiki_page import WikiPage


class WikiPageRepository:
    """Repository for WikiPage CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the wiki page repository.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def create(self, page: WikiPage) -> WikiPage:
        """Insert a new wiki page and return it with generated fields populated."""
        self.session.add(page)
        await self.session.flush()
        await self.session.refresh(page)
        return page

    async def get_by_id(self, page_id: str) -> WikiPage | None:
        """Retrieve a wiki page by its ID.

        Args:
            page_id: UUID string of the page

        Returns:
            WikiPage instance if found, None otherwise
        """
        stmt = select(WikiPage).where(WikiPage.id == page_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_slug(self, project_id: str, slug: str) -> WikiPage | None:
        """Retrieve a wiki page by its slug within a project."""
        stmt = select(WikiPage).where(WikiPage.project_id == project_id, WikiPage.slug == slug)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_project(self, project_id: str) -> list[WikiPage]:
        """Retrieve all wiki pages of a project ordered by title."""
        stmt = (
            select(WikiPage)
            .where(WikiPage.project_id == project_id)
            .order_by(WikiPage.title, WikiPage.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_ids(self, project_id: str) -> list[str]:
        """Retrieve the IDs of all wiki pages of a project."""
        stmt = select(WikiPage.id).where(WikiPage.project_id == project_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_titles(self, project_id: str) -> list[tuple[str, str, str]]:
        """Retrieve (id, title, slug) triples for link resolution."""
        stmt = select(WikiPage.id, WikiPage.title, WikiPage.slug).where(
            WikiPage.project_id == project_id
        )
        result = await self.session.execute(stmt)
        return [(row.id, row.title, row.slug) for row in result]

    async def update_content(self, page: WikiPage, content: str) -> WikiPage:
        page.content = content
        page.updated_at = datetime.now(UTC)
        await self.session.flush()
        return page

    async def update_title(self, page: WikiPage, title: str, slug: str) -> WikiPage:
        """Rename a page. The slug always follows the title."""
        page.title = title
        page.slug = slug
        page.updated_at = datetime.now(UTC)
        await self.session.flush()
        return page

    async def set_tags(self, page: WikiPage, tags: set[str]) -> WikiPage:
        """Replace the page's tag set."""
        page.tags_json = sorted(tags)
        # Mark tags_json as modified to detect changes in the mutable list
        attributes.flag_modified(page, "tags_json")
        await self.session.flush()
        return page

    async def count(self) -> int:
        stmt = select(func.count()).select_from(WikiPage)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
