"""Document service: the operations the API layer and editor consume."""

from dataclasses import dataclass

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from novelcraft.editing.history import DEFAULT_HISTORY_LIMIT
from novelcraft.editing.session import (
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_RETRY_BASE_SECONDS,
    DEFAULT_RETRY_MAX_SECONDS,
    EditSessionController,
)
from novelcraft.linking.index import ProgressCallback, ReferenceIndex
from novelcraft.models.chapter import CHAPTER_STATUSES, Chapter
from novelcraft.models.chapter_revision import ChapterRevision
from novelcraft.models.document import Document, DocumentType
from novelcraft.models.wiki_page import WikiPage
from novelcraft.repositories.chapter_repository import ChapterRepository
from novelcraft.repositories.document_repository import DocumentRepository
from novelcraft.repositories.wiki_page_repository import WikiPageRepository
from novelcraft.revisions.policy import SnapshotPolicy, TimeBucketPolicy, policy_from_config
from novelcraft.revisions.store import RevisionStore
from novelcraft.services.schemas import (
    Backlink,
    Mention,
    RebuildSummary,
    RestoreResult,
    RevisionView,
    SaveResult,
)
from novelcraft.utils.config import Config
from novelcraft.utils.exceptions import (
    DatabaseError,
    DocumentNotFoundError,
    IndexUpdateFailure,
    PersistenceFailure,
    SlugTakenError,
    ValidationError,
)
from novelcraft.utils.text import count_words, generate_slug

logger = structlog.get_logger(__name__)


@dataclass
class SessionSettings:
    """Tuning for edit sessions opened by the service."""

    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    history_limit: int = DEFAULT_HISTORY_LIMIT
    retry_base_seconds: float = DEFAULT_RETRY_BASE_SECONDS
    retry_max_seconds: float = DEFAULT_RETRY_MAX_SECONDS

    @classmethod
    def from_config(cls, config: Config) -> "SessionSettings":
        return cls(
            debounce_seconds=config.autosave_debounce_ms / 1000,
            history_limit=config.edit_history_limit,
            retry_base_seconds=config.save_retry_base_ms / 1000,
            retry_max_seconds=config.save_retry_max_ms / 1000,
        )


class DocumentService:
    """Entry point tying documents, the reference index and revisions together.

    Saving through the service persists content, then reconciles the
    reference index and the revision log. Failures in those downstream steps
    are logged and never undo the save.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        index: ReferenceIndex | None = None,
        revisions: RevisionStore | None = None,
        snapshot_policy: SnapshotPolicy | None = None,
        session_settings: SessionSettings | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            session_factory: Factory for async database sessions
            index: Reference index (created from session_factory if omitted)
            revisions: Revision store (created from session_factory if omitted)
            snapshot_policy: When chapter saves also record a revision
            session_settings: Defaults for edit sessions opened via open_session
        """
        self.session_factory = session_factory
        self.index = index or ReferenceIndex(session_factory)
        self.revisions = revisions or RevisionStore(session_factory)
        self.snapshot_policy = snapshot_policy or TimeBucketPolicy()
        self.session_settings = session_settings or SessionSettings()

    @classmethod
    def from_config(
        cls, config: Config, session_factory: async_sessionmaker[AsyncSession]
    ) -> "DocumentService":
        """Build a service wired with the configured policies and limits."""
        return cls(
            session_factory,
            index=ReferenceIndex(session_factory, rebuild_concurrency=config.rebuild_concurrency),
            revisions=RevisionStore(session_factory),
            snapshot_policy=policy_from_config(config),
            session_settings=SessionSettings.from_config(config),
        )

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def get_document(self, document_id: str) -> Document:
        """Load a chapter or wiki page.

        Raises:
            DocumentNotFoundError: If no document has this ID
        """
        async with self.session_factory() as session:
            document = await DocumentRepository(session).get(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    async def save_document(self, document_id: str, content: str) -> SaveResult:
        """Persist content and bring the reference index up to date.

        Safe to retry: saving identical content changes nothing.

        Raises:
            DocumentNotFoundError: If no document has this ID
            PersistenceFailure: If the content could not be stored
        """
        result = await self.persist_document(document_id, content)
        try:
            await self.index.recompute_outgoing(document_id)
        except IndexUpdateFailure as e:
            logger.error("index_update_failed", document_id=document_id, error=e.message)
        return result

    async def persist_document(self, document_id: str, content: str) -> SaveResult:
        """Persist content without touching the reference index.

        Edit sessions use this and trigger reindexing themselves. Chapter
        saves may also record a revision, depending on the snapshot policy.

        Raises:
            DocumentNotFoundError: If no document has this ID
            PersistenceFailure: If the content could not be stored
        """
        try:
            async with self.session_factory() as session:
                result, is_chapter = await self._write_content(session, document_id, content)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(
                "document_save_failed",
                document_id=document_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PersistenceFailure(f"Failed to save document {document_id}: {e}") from e

        logger.info(
            "document_persisted",
            document_id=document_id,
            word_count=result.word_count,
            changed=result.changed,
        )

        if is_chapter and result.changed:
            await self._snapshot_after_save(document_id, content)
        return result

    async def _write_content(
        self, session: AsyncSession, document_id: str, content: str
    ) -> tuple[SaveResult, bool]:
        page = await WikiPageRepository(session).get_by_id(document_id)
        if page is not None:
            changed = page.content != content
            if changed:
                await WikiPageRepository(session).update_content(page, content)
            return (
                SaveResult(
                    document_id=document_id, word_count=count_words(content), changed=changed
                ),
                False,
            )

        chapters = ChapterRepository(session)
        chapter = await chapters.get_by_id(document_id)
        if chapter is None:
            raise DocumentNotFoundError(document_id)

        changed = chapter.content != content
        if changed:
            await chapters.update_content(chapter, content)
        return (
            SaveResult(document_id=document_id, word_count=chapter.word_count, changed=changed),
            True,
        )

    async def _snapshot_after_save(self, chapter_id: str, content: str) -> None:
        try:
            await self.revisions.snapshot_if_due(chapter_id, content, self.snapshot_policy)
        except DatabaseError as e:
            logger.error("revision_snapshot_skipped", chapter_id=chapter_id, error=e.message)

    async def create_chapter(self, project_id: str, title: str, content: str = "") -> Document:
        """Append a new chapter at the end of the manuscript."""
        title = self._require_title(title)
        async with self.session_factory() as session:
            chapters = ChapterRepository(session)
            sort_order = await chapters.max_sort_order(project_id) + 1
            chapter = await chapters.create(
                Chapter(project_id=project_id, title=title, content=content, sort_order=sort_order)
            )
            await session.commit()

        logger.info(
            "chapter_created", chapter_id=chapter.id, project_id=project_id, sort_order=sort_order
        )
        if content:
            await self._recompute_quietly(chapter.id)
        return chapter.to_document()

    async def create_wiki_page(
        self, project_id: str, title: str, page_type: str = "other", content: str = ""
    ) -> Document:
        """Create a wiki page.

        Raises:
            ValidationError: If the title is empty or has no sluggable characters
            SlugTakenError: If another page in the project has the same slug
        """
        title = self._require_title(title)
        slug = self._require_slug(title)

        try:
            async with self.session_factory() as session:
                pages = WikiPageRepository(session)
                if await pages.get_by_slug(project_id, slug) is not None:
                    raise SlugTakenError(f"Slug already taken in project: {slug}")
                page = await pages.create(
                    WikiPage(
                        project_id=project_id,
                        title=title,
                        slug=slug,
                        page_type=page_type,
                        content=content,
                        tags_json=[],
                    )
                )
                await session.commit()
        except IntegrityError as e:
            raise SlugTakenError(f"Slug already taken in project: {slug}") from e

        logger.info("wiki_page_created", page_id=page.id, project_id=project_id, slug=slug)
        if content:
            await self._recompute_quietly(page.id)
        return page.to_document()

    async def rename_document(self, document_id: str, title: str) -> Document:
        """Change a document's title (and a wiki page's slug).

        Links in other documents are not re-resolved until those documents
        are saved again or the project is rebuilt.
        """
        title = self._require_title(title)
        try:
            async with self.session_factory() as session:
                pages = WikiPageRepository(session)
                page = await pages.get_by_id(document_id)
                if page is not None:
                    slug = self._require_slug(title)
                    existing = await pages.get_by_slug(page.project_id, slug)
                    if existing is not None and existing.id != page.id:
                        raise SlugTakenError(f"Slug already taken in project: {slug}")
                    document = (await pages.update_title(page, title, slug)).to_document()
                else:
                    chapters = ChapterRepository(session)
                    chapter = await chapters.get_by_id(document_id)
                    if chapter is None:
                        raise DocumentNotFoundError(document_id)
                    document = (await chapters.update_title(chapter, title)).to_document()
                await session.commit()
        except IntegrityError as e:
            raise SlugTakenError(f"Slug already taken: {title}") from e

        logger.info("document_renamed", document_id=document_id, title=title, links_stale=True)
        return document

    async def set_chapter_status(self, chapter_id: str, status: str) -> Document:
        """Move a chapter to another workflow status.

        Raises:
            ValidationError: If the status is not one of CHAPTER_STATUSES
            DocumentNotFoundError: If the chapter does not exist
        """
        if status not in CHAPTER_STATUSES:
            raise ValidationError(
                f"Unknown chapter status {status!r}; expected one of {', '.join(CHAPTER_STATUSES)}"
            )

        async with self.session_factory() as session:
            chapters = ChapterRepository(session)
            chapter = await chapters.get_by_id(chapter_id)
            if chapter is None:
                raise DocumentNotFoundError(chapter_id)
            document = (await chapters.update_status(chapter, status)).to_document()
            await session.commit()

        logger.info("chapter_status_changed", chapter_id=chapter_id, status=status)
        return document

    async def list_chapters(self, project_id: str) -> list[Document]:
        """Chapters of a project in manuscript order."""
        async with self.session_factory() as session:
            chapters = await ChapterRepository(session).list_by_project(project_id)
        return [chapter.to_document() for chapter in chapters]

    async def list_wiki_pages(self, project_id: str) -> list[Document]:
        """Wiki pages of a project ordered by title."""
        async with self.session_factory() as session:
            pages = await WikiPageRepository(session).list_by_project(project_id)
        return [page.to_document() for page in pages]

    async def reorder_chapters(
        self, project_id: str, ordered_chapter_ids: list[str]
    ) -> list[Document]:
        """Set manuscript order to exactly the given chapter sequence.

        Raises:
            ValidationError: If the IDs are not a permutation of the project's chapters
        """
        async with self.session_factory() as session:
            chapters = ChapterRepository(session)
            by_id = {chapter.id: chapter for chapter in await chapters.list_by_project(project_id)}
            if len(ordered_chapter_ids) != len(set(ordered_chapter_ids)) or set(
                ordered_chapter_ids
            ) != set(by_id):
                raise ValidationError("Chapter order must list every chapter of the project once")

            ordered = [by_id[chapter_id] for chapter_id in ordered_chapter_ids]
            await chapters.update_sort_orders(ordered)
            await session.commit()

        logger.info("chapters_reordered", project_id=project_id, count=len(ordered))
        return [chapter.to_document() for chapter in ordered]

    async def add_tag(self, page_id: str, tag: str) -> Document:
        """Add a tag to a wiki page (no-op if already present)."""
        return await self._change_tags(page_id, tag, add=True)

    async def remove_tag(self, page_id: str, tag: str) -> Document:
        """Remove a tag from a wiki page (no-op if absent)."""
        return await self._change_tags(page_id, tag, add=False)

    async def _change_tags(self, page_id: str, tag: str, add: bool) -> Document:
        tag = tag.strip()
        if not tag:
            raise ValidationError("Tag cannot be empty")

        async with self.session_factory() as session:
            pages = WikiPageRepository(session)
            page = await pages.get_by_id(page_id)
            if page is None:
                raise DocumentNotFoundError(page_id)
            tags = set(page.tags_json or [])
            if add:
                tags.add(tag)
            else:
                tags.discard(tag)
            await pages.set_tags(page, tags)
            await session.commit()
        return page.to_document()

    # ------------------------------------------------------------------
    # Reference index
    # ------------------------------------------------------------------

    async def list_backlinks(self, document_id: str) -> list[Backlink]:
        """Documents linking to the given document, ordered by source title.

        Raises:
            DocumentNotFoundError: If no document has this ID
        """
        await self.get_document(document_id)
        rows = await self.index.backlinks_of(document_id)
        return [Backlink.model_validate(row) for row in rows]

    async def list_mentions(self, wiki_page_id: str) -> list[Mention]:
        """Chapters linking to the given wiki page, ordered by chapter title.

        Raises:
            DocumentNotFoundError: If no document has this ID
            ValidationError: If the document is a chapter
        """
        document = await self.get_document(wiki_page_id)
        if document.document_type is not DocumentType.WIKI_PAGE:
            raise ValidationError(f"Mentions are only tracked for wiki pages: {wiki_page_id}")

        rows = await self.index.mentions_of(wiki_page_id)
        return [
            Mention(
                chapter_id=row.source_id,
                chapter_title=row.source_title,
                created_at=row.created_at,
            )
            for row in rows
        ]

    async def rebuild_links(
        self, project_id: str, on_progress: ProgressCallback | None = None
    ) -> RebuildSummary:
        """Recompute every document's outgoing links in a project."""
        stats = await self.index.rebuild_all(project_id, on_progress=on_progress)
        return RebuildSummary(
            project_id=stats.project_id,
            documents_processed=stats.documents_processed,
            documents_failed=stats.documents_failed,
            edges=stats.edges,
            duration_seconds=stats.duration_seconds,
        )

    async def _recompute_quietly(self, document_id: str) -> None:
        try:
            await self.index.recompute_outgoing(document_id)
        except IndexUpdateFailure as e:
            logger.error("index_update_failed", document_id=document_id, error=e.message)

    # ------------------------------------------------------------------
    # Revisions
    # ------------------------------------------------------------------

    async def list_revisions(self, chapter_id: str) -> list[RevisionView]:
        """Revisions of a chapter, newest first.

        Raises:
            DocumentNotFoundError: If the chapter does not exist
        """
        chapter = await self._get_chapter(chapter_id)
        revisions = await self.revisions.list_for_chapter(chapter_id)
        return [self._revision_view(revision, chapter.title) for revision in revisions]

    async def get_revision(self, revision_id: str) -> RevisionView:
        """Load one revision.

        Raises:
            RestoreFailure: If the revision does not exist
        """
        revision = await self.revisions.get(revision_id)
        title = await self._chapter_title(revision.chapter_id)
        return self._revision_view(revision, title)

    async def create_revision(self, chapter_id: str, note: str = "") -> RevisionView:
        """Snapshot a chapter's persisted content on explicit request."""
        chapter = await self._get_chapter(chapter_id)
        revision = await self.revisions.snapshot(chapter_id, chapter.body, note)
        return self._revision_view(revision, chapter.title)

    async def restore_revision(self, revision_id: str) -> RestoreResult:
        """Return a revision's content without changing any state.

        Feed the content back through an edit session (EditSessionController.restore)
        or save_document so the reference index follows.

        Raises:
            RestoreFailure: If the revision does not exist or cannot be read
        """
        revision = await self.revisions.get(revision_id)
        content = await self.revisions.restore(revision_id)
        return RestoreResult(
            revision_id=revision.id, chapter_id=revision.chapter_id, content=content
        )

    async def _get_chapter(self, chapter_id: str) -> Document:
        document = await self.get_document(chapter_id)
        if document.document_type is not DocumentType.CHAPTER:
            raise ValidationError(f"Revisions are only kept for chapters: {chapter_id}")
        return document

    async def _chapter_title(self, chapter_id: str) -> str:
        async with self.session_factory() as session:
            chapter = await ChapterRepository(session).get_by_id(chapter_id)
        return chapter.title if chapter is not None else ""

    @staticmethod
    def _revision_view(revision: ChapterRevision, chapter_title: str) -> RevisionView:
        return RevisionView(
            id=revision.id,
            chapter_id=revision.chapter_id,
            chapter_title=chapter_title,
            content=revision.content,
            note=revision.note,
            created_at=revision.created_at,
        )

    # ------------------------------------------------------------------
    # Edit sessions
    # ------------------------------------------------------------------

    async def open_session(self, document_id: str) -> EditSessionController:
        """Open an edit session on a document's persisted content.

        The session autosaves through persist_document and recomputes the
        document's links after every successful save.
        """
        document = await self.get_document(document_id)
        settings = self.session_settings
        logger.info("edit_session_opened", document_id=document_id)
        return EditSessionController(
            document_id=document.id,
            initial_content=document.body,
            persist=self.persist_document,
            reindex=self.index.recompute_outgoing,
            debounce_seconds=settings.debounce_seconds,
            history_limit=settings.history_limit,
            retry_base_seconds=settings.retry_base_seconds,
            retry_max_seconds=settings.retry_max_seconds,
        )

    @staticmethod
    def _require_title(title: str) -> str:
        title = title.strip()
        if not title:
            raise ValidationError("Title cannot be empty")
        return title

    @staticmethod
    def _require_slug(title: str) -> str:
        slug = generate_slug(title)
        if not slug:
            raise ValidationError(f"Title has no characters usable in a slug: {title!r}")
        return slug
