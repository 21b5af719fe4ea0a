"""Repository for LinkReference (cross-reference edge) operations."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from novelcraft.models.chapter import Chapter
from novelcraft.models.link_reference import LinkReference
from novelcraft.models.wiki_page import WikiPage


@dataclass(frozen=True)
class EdgeSpec:
    """Desired outgoing edge of a source document."""

    target_id: str
    target_type: str
    raw_target: str


@dataclass
class BacklinkRow:
    """A stored edge joined with its source document's current title."""

    source_id: str
    source_type: str
    source_title: str
    target_id: str
    raw_target: str
    created_at: datetime


@dataclass
class EdgeDiff:
    """Outcome of replacing a source's outgoing edges."""

    added: int = 0
    removed: int = 0
    updated: int = 0
    total: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.updated)


class LinkRepository:
    """Repository for the link_reference table.

    Edges are partitioned by source_id: every write touches exactly one
    source's rows, so writers for different sources never conflict.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def list_outgoing(self, source_id: str) -> list[LinkReference]:
        """Retrieve all edges whose source is the given document."""
        stmt = (
            select(LinkReference)
            .where(LinkReference.source_id == source_id)
            .order_by(LinkReference.target_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_outgoing(
        self,
        project_id: str,
        source_id: str,
        source_type: str,
        edges: list[EdgeSpec],
    ) -> EdgeDiff:
        """Make the stored outgoing edges of a source equal to ``edges``.

        Applies the minimal diff so unchanged edges keep their created_at.
        The caller commits; until then readers see the previous edge set.

        Args:
            project_id: Project of the source document
            source_id: Source document ID
            source_type: "chapter" or "wiki_page"
            edges: Desired edges, at most one per target_id

        Returns:
            EdgeDiff with counts of added, removed and updated rows
        """
        desired = {edge.target_id: edge for edge in edges}
        existing = {row.target_id: row for row in await self.list_outgoing(source_id)}
        diff = EdgeDiff(total=len(desired))

        stale_targets = [target_id for target_id in existing if target_id not in desired]
        if stale_targets:
            stmt = delete(LinkReference).where(
                LinkReference.source_id == source_id,
                LinkReference.target_id.in_(stale_targets),
            )
            await self.session.execute(stmt)
            diff.removed = len(stale_targets)

        for target_id, edge in desired.items():
            row = existing.get(target_id)
            if row is None:
                self.session.add(
                    LinkReference(
                        project_id=project_id,
                        source_id=source_id,
                        source_type=source_type,
                        target_id=target_id,
                        target_type=edge.target_type,
                        raw_target=edge.raw_target,
                    )
                )
                diff.added += 1
            elif row.raw_target != edge.raw_target or row.target_type != edge.target_type:
                row.raw_target = edge.raw_target
                row.target_type = edge.target_type
                diff.updated += 1

        await self.session.flush()
        return diff

    async def delete_outgoing(self, source_id: str) -> int:
        """Delete every edge of a source. Returns the number of rows removed."""
        stmt = delete(LinkReference).where(LinkReference.source_id == source_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def list_backlinks(self, target_id: str) -> list[BacklinkRow]:
        """Retrieve edges pointing at a target with each source's current title.

        Edges whose source document no longer exists are skipped.

        Returns:
            BacklinkRow list ordered by source title, then source ID
        """
        source_title = func.coalesce(WikiPage.title, Chapter.title).label("source_title")
        stmt = (
            select(LinkReference, source_title)
            .select_from(LinkReference)
            .outerjoin(
                WikiPage,
                and_(
                    LinkReference.source_type == "wiki_page",
                    WikiPage.id == LinkReference.source_id,
                ),
            )
            .outerjoin(
                Chapter,
                and_(
                    LinkReference.source_type == "chapter",
                    Chapter.id == LinkReference.source_id,
                ),
            )
            .where(LinkReference.target_id == target_id)
        )
        result = await self.session.execute(stmt)

        rows = [
            BacklinkRow(
                source_id=link.source_id,
                source_type=link.source_type,
                source_title=title,
                target_id=link.target_id,
                raw_target=link.raw_target,
                created_at=link.created_at,
            )
            for link, title in result.all()
            if title is not None
        ]
        rows.sort(key=lambda row: (row.source_title.casefold(), row.source_title, row.source_id))
        return rows

    async def count(self, project_id: str | None = None) -> int:
        stmt = select(func.count()).select_from(LinkReference)
        if project_id is not None:
            stmt = stmt.where(LinkReference.project_id == project_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def list_edges(self, project_id: str) -> set[tuple[str, str]]:
        """Return every (source_id, target_id) pair stored for a project."""
        stmt = select(LinkReference.source_id, LinkReference.target_id).where(
            LinkReference.project_id == project_id
        )
        result = await self.session.execute(stmt)
        return {(row.source_id, row.target_id) for row in result}
