"""Append-only store of chapter content snapshots."""

import asyncio
import weakref
from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from novelcraft.models.chapter_revision import ChapterRevision
from novelcraft.repositories.revision_repository import RevisionRepository
from novelcraft.revisions.policy import SnapshotPolicy, as_utc
from novelcraft.utils.exceptions import DatabaseError, RestoreFailure

logger = structlog.get_logger(__name__)

AUTOSAVE_NOTE = "Autosave"

# Smallest step used to keep created_at strictly increasing per chapter
_TICK = timedelta(microseconds=1)


class RevisionStore:
    """Records, lists and restores chapter revisions.

    The store is an append-only log indexed by (chapter_id, created_at). It
    makes no assumption about how fresh the content it is given is; callers
    decide when to snapshot (see SnapshotPolicy).
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory for async database sessions
        """
        self.session_factory = session_factory
        self._chapter_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, chapter_id: str) -> asyncio.Lock:
        lock = self._chapter_locks.get(chapter_id)
        if lock is None:
            lock = asyncio.Lock()
            self._chapter_locks[chapter_id] = lock
        return lock

    async def snapshot(self, chapter_id: str, content: str, note: str = "") -> ChapterRevision:
        """Append a revision for a chapter.

        Args:
            chapter_id: Chapter the content belongs to
            content: Content to store
            note: Free-form description of the snapshot

        Returns:
            The stored ChapterRevision

        Raises:
            DatabaseError: If the revision could not be written
        """
        async with self._lock_for(chapter_id):
            try:
                async with self.session_factory() as session:
                    repo = RevisionRepository(session)
                    latest = await repo.latest_for_chapter(chapter_id)
                    created_at = datetime.now(UTC)
                    if latest is not None and created_at <= as_utc(latest.created_at):
                        created_at = as_utc(latest.created_at) + _TICK

                    revision = await repo.append(
                        ChapterRevision(
                            chapter_id=chapter_id,
                            content=content,
                            note=note,
                            created_at=created_at,
                        )
                    )
                    await session.commit()
            except SQLAlchemyError as e:
                logger.error("revision_snapshot_failed", chapter_id=chapter_id, error=str(e))
                raise DatabaseError(f"Failed to store revision for {chapter_id}: {e}") from e

        logger.info(
            "revision_snapshot_created",
            chapter_id=chapter_id,
            revision_id=revision.id,
            note=note,
            content_length=len(content),
        )
        return revision

    async def snapshot_if_due(
        self,
        chapter_id: str,
        content: str,
        policy: SnapshotPolicy,
        note: str = AUTOSAVE_NOTE,
    ) -> ChapterRevision | None:
        """Snapshot a just-saved chapter when the policy asks for it.

        Content identical to the latest revision is never stored twice.

        Returns:
            The new revision, or None if no snapshot was due
        """
        latest = await self.latest(chapter_id)
        now = datetime.now(UTC)
        last_at = as_utc(latest.created_at) if latest is not None else None

        if not policy.should_snapshot(last_at, now):
            return None
        if latest is not None and latest.content == content:
            return None
        return await self.snapshot(chapter_id, content, note)

    async def list_for_chapter(self, chapter_id: str) -> list[ChapterRevision]:
        """Return a chapter's revisions newest-first."""
        async with self.session_factory() as session:
            return await RevisionRepository(session).list_by_chapter(chapter_id)

    async def latest(self, chapter_id: str) -> ChapterRevision | None:
        async with self.session_factory() as session:
            return await RevisionRepository(session).latest_for_chapter(chapter_id)

    async def get(self, revision_id: str) -> ChapterRevision:
        """Load one revision.

        Raises:
            RestoreFailure: If the revision does not exist or cannot be read
        """
        try:
            async with self.session_factory() as session:
                revision = await RevisionRepository(session).get_by_id(revision_id)
        except SQLAlchemyError as e:
            raise RestoreFailure(f"Failed to read revision {revision_id}: {e}") from e

        if revision is None:
            raise RestoreFailure(f"Revision not found: {revision_id}")
        return revision

    async def restore(self, revision_id: str) -> str:
        """Return the content of a revision.

        Restoring never mutates the revision log or the chapter: the caller
        feeds the content back through the normal save path so the reference
        index is updated as for any other edit.

        Raises:
            RestoreFailure: If the revision does not exist or cannot be read
        """
        revision = await self.get(revision_id)
        logger.info("revision_restored", revision_id=revision_id, chapter_id=revision.chapter_id)
        return revision.content
