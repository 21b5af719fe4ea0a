"""Bidirectional reference index over chapters and wiki pages."""

import asyncio
import time
import weakref
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from novelcraft.linking.parser import parse_links
from novelcraft.linking.resolver import ReferenceResolver
from novelcraft.models.document import Document, DocumentType
from novelcraft.repositories.document_repository import DocumentRepository
from novelcraft.repositories.link_repository import BacklinkRow, EdgeSpec, LinkRepository
from novelcraft.utils.exceptions import IndexUpdateFailure

logger = structlog.get_logger(__name__)

DEFAULT_REBUILD_CONCURRENCY = 8

ProgressCallback = Callable[[str, bool], None]


@dataclass
class RecomputeResult:
    """Outcome of recomputing one source's outgoing links.

    Attributes:
        source_id: Document whose body was parsed
        edges: Number of edges stored after the recompute
        added: Edges created
        removed: Edges deleted
        unresolved: Link targets that matched no document
        source_missing: True if the document no longer exists
    """

    source_id: str
    edges: int = 0
    added: int = 0
    removed: int = 0
    unresolved: list[str] = field(default_factory=list)
    source_missing: bool = False


@dataclass
class RebuildStatistics:
    """Statistics for a project-wide rebuild.

    Attributes:
        project_id: Rebuilt project
        documents_processed: Documents recomputed successfully
        documents_failed: Documents whose recompute raised
        edges: Total edges stored by successful recomputes
        duration_seconds: Wall-clock duration
    """

    project_id: str
    documents_processed: int = 0
    documents_failed: int = 0
    edges: int = 0
    duration_seconds: float = 0.0


class ReferenceIndex:
    """Maintains link_reference rows as a pure function of current bodies.

    Every update replaces all edges of one source document inside a single
    transaction. Updates are serialized per source ID with an asyncio lock
    while different sources proceed in parallel; each recompute reads the
    source's persisted body under its lock, so the last recompute to run for
    a source always reflects that source's latest body.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        rebuild_concurrency: int = DEFAULT_REBUILD_CONCURRENCY,
    ) -> None:
        """Initialize the index.

        Args:
            session_factory: Factory for async database sessions
            rebuild_concurrency: Maximum documents recomputed at once by rebuild_all
        """
        self.session_factory = session_factory
        self.rebuild_concurrency = rebuild_concurrency
        self._source_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, source_id: str) -> asyncio.Lock:
        lock = self._source_locks.get(source_id)
        if lock is None:
            lock = asyncio.Lock()
            self._source_locks[source_id] = lock
        return lock

    async def recompute_outgoing(self, source_id: str) -> RecomputeResult:
        """Replace a document's outgoing edges with those of its current body.

        Idempotent: an unchanged body produces no writes. If the document no
        longer exists its outgoing edges are removed.

        Args:
            source_id: Document whose links to recompute

        Returns:
            RecomputeResult describing the change

        Raises:
            IndexUpdateFailure: If reading or writing the index fails
        """
        async with self._lock_for(source_id):
            try:
                async with self.session_factory() as session:
                    result = await self._recompute_in_session(session, source_id)
                    await session.commit()
            except SQLAlchemyError as e:
                logger.error(
                    "index_update_failed",
                    source_id=source_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise IndexUpdateFailure(
                    f"Failed to recompute links for {source_id}: {e}", is_retryable=True
                ) from e

        logger.info(
            "links_recomputed",
            source_id=source_id,
            edges=result.edges,
            added=result.added,
            removed=result.removed,
            unresolved_count=len(result.unresolved),
        )
        return result

    async def _recompute_in_session(self, session: AsyncSession, source_id: str) -> RecomputeResult:
        documents = DocumentRepository(session)
        links = LinkRepository(session)

        document = await documents.get(source_id)
        if document is None:
            removed = await links.delete_outgoing(source_id)
            logger.warning("link_source_missing", source_id=source_id, edges_removed=removed)
            return RecomputeResult(source_id=source_id, removed=removed, source_missing=True)

        resolver = await self.load_resolver(session, document.project_id)
        edges, unresolved = self.resolve_edges(document, resolver)
        diff = await links.replace_outgoing(
            project_id=document.project_id,
            source_id=document.id,
            source_type=document.document_type.value,
            edges=edges,
        )
        return RecomputeResult(
            source_id=source_id,
            edges=diff.total,
            added=diff.added,
            removed=diff.removed,
            unresolved=unresolved,
        )

    @staticmethod
    async def load_resolver(session: AsyncSession, project_id: str) -> ReferenceResolver:
        """Snapshot the project's titles and slugs into a resolver."""
        documents = DocumentRepository(session)
        wiki_rows = await documents.wiki_pages.list_titles(project_id)
        chapter_rows = await documents.chapters.list_titles(project_id)
        return ReferenceResolver.from_rows(project_id, wiki_rows, chapter_rows)

    @staticmethod
    def resolve_edges(
        document: Document, resolver: ReferenceResolver
    ) -> tuple[list[EdgeSpec], list[str]]:
        """Parse a body and resolve every occurrence.

        Returns:
            Tuple of (one EdgeSpec per distinct target, unresolved target texts)
        """
        edges: dict[str, EdgeSpec] = {}
        unresolved: list[str] = []

        for occurrence in parse_links(document.body):
            resolution = resolver.resolve(occurrence.target)
            if resolution is None:
                unresolved.append(occurrence.target)
                continue

            if resolution.is_ambiguous:
                logger.warning(
                    "title_collision",
                    project_id=document.project_id,
                    source_id=document.id,
                    raw_target=occurrence.target,
                    chosen_id=resolution.target_id,
                    other_ids=list(resolution.collisions),
                )

            # First occurrence wins the raw_target for a repeated target
            edges.setdefault(
                resolution.target_id,
                EdgeSpec(
                    target_id=resolution.target_id,
                    target_type=resolution.target_type.value,
                    raw_target=occurrence.target,
                ),
            )

        return list(edges.values()), unresolved

    async def backlinks_of(self, target_id: str) -> list[BacklinkRow]:
        """All edges pointing at a document, ordered by source title."""
        async with self.session_factory() as session:
            return await LinkRepository(session).list_backlinks(target_id)

    async def mentions_of(self, wiki_page_id: str) -> list[BacklinkRow]:
        """Backlinks of a wiki page that originate from chapters."""
        return [
            row
            for row in await self.backlinks_of(wiki_page_id)
            if row.source_type == DocumentType.CHAPTER.value
        ]

    async def outgoing_of(self, source_id: str) -> set[str]:
        """Target IDs a document currently links to."""
        async with self.session_factory() as session:
            rows = await LinkRepository(session).list_outgoing(source_id)
        return {row.target_id for row in rows}

    async def rebuild_all(
        self,
        project_id: str,
        on_progress: ProgressCallback | None = None,
    ) -> RebuildStatistics:
        """Recompute outgoing edges for every document in a project.

        Documents are processed independently with bounded concurrency; a
        failure on one document is logged and counted without stopping the
        others. Safe to run concurrently with itself and with saves, and safe
        to re-run after a partial run.

        Args:
            project_id: Project to rebuild
            on_progress: Called with (document_id, succeeded) after each document

        Returns:
            RebuildStatistics for the run
        """
        start_time = time.time()
        stats = RebuildStatistics(project_id=project_id)

        async with self.session_factory() as session:
            document_ids = await DocumentRepository(session).list_ids(project_id)

        logger.info("rebuild_started", project_id=project_id, documents=len(document_ids))

        semaphore = asyncio.Semaphore(self.rebuild_concurrency)

        async def rebuild_one(document_id: str) -> None:
            async with semaphore:
                try:
                    result = await self.recompute_outgoing(document_id)
                except IndexUpdateFailure as e:
                    stats.documents_failed += 1
                    logger.error(
                        "rebuild_document_failed", document_id=document_id, error=e.message
                    )
                    succeeded = False
                else:
                    stats.documents_processed += 1
                    stats.edges += result.edges
                    succeeded = True
            if on_progress is not None:
                on_progress(document_id, succeeded)

        await asyncio.gather(*(rebuild_one(document_id) for document_id in document_ids))

        stats.duration_seconds = time.time() - start_time
        logger.info(
            "rebuild_completed",
            project_id=project_id,
            documents_processed=stats.documents_processed,
            documents_failed=stats.documents_failed,
            edges=stats.edges,
            duration_seconds=round(stats.duration_seconds, 3),
        )
        return stats
