"""Integration tests for the document service."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from novelcraft.models.document import DocumentType
from novelcraft.revisions.policy import TimeBucketPolicy
from novelcraft.revisions.store import AUTOSAVE_NOTE
from novelcraft.services.document_service import DocumentService
from novelcraft.utils.exceptions import (
    DocumentNotFoundError,
    IndexUpdateFailure,
    PersistenceFailure,
    RestoreFailure,
    SlugTakenError,
    ValidationError,
)


@pytest.mark.asyncio
class TestDocumentCrud:
    """Test chapter and wiki page management."""

    async def test_chapters_are_appended_in_order(self, document_service, project_id) -> None:
        first = await document_service.create_chapter(project_id, "Arrival")
        second = await document_service.create_chapter(project_id, "Departure", "Rhea leaves.")

        assert first.sort_order == 1
        assert second.sort_order == 2
        assert second.word_count == 2
        assert [c.title for c in await document_service.list_chapters(project_id)] == [
            "Arrival",
            "Departure",
        ]

    async def test_reorder_chapters(self, document_service, project_id) -> None:
        a = await document_service.create_chapter(project_id, "A")
        b = await document_service.create_chapter(project_id, "B")
        c = await document_service.create_chapter(project_id, "C")

        await document_service.reorder_chapters(project_id, [c.id, a.id, b.id])

        chapters = await document_service.list_chapters(project_id)
        assert [chapter.id for chapter in chapters] == [c.id, a.id, b.id]
        assert [chapter.sort_order for chapter in chapters] == [1, 2, 3]

    async def test_reorder_requires_every_chapter_once(self, document_service, project_id) -> None:
        a = await document_service.create_chapter(project_id, "A")
        b = await document_service.create_chapter(project_id, "B")

        with pytest.raises(ValidationError):
            await document_service.reorder_chapters(project_id, [a.id])
        with pytest.raises(ValidationError):
            await document_service.reorder_chapters(project_id, [a.id, a.id])
        with pytest.raises(ValidationError):
            await document_service.reorder_chapters(project_id, [a.id, b.id, "other"])

    async def test_create_wiki_page_generates_slug(self, document_service, project_id) -> None:
        page = await document_service.create_wiki_page(project_id, "  Rhea's Ship ", "location")

        assert page.title == "Rhea's Ship"
        assert page.slug == "rheas-ship"
        assert page.document_type is DocumentType.WIKI_PAGE

    async def test_duplicate_slug_is_rejected(self, document_service, project_id) -> None:
        await document_service.create_wiki_page(project_id, "Rhea")

        with pytest.raises(SlugTakenError):
            await document_service.create_wiki_page(project_id, "RHEA")

    async def test_invalid_titles_are_rejected(self, document_service, project_id) -> None:
        with pytest.raises(ValidationError):
            await document_service.create_chapter(project_id, "   ")
        with pytest.raises(ValidationError):
            await document_service.create_wiki_page(project_id, "!!!")

    async def test_rename_wiki_page_updates_slug(self, document_service, project_id) -> None:
        page = await document_service.create_wiki_page(project_id, "Rhea")
        await document_service.create_wiki_page(project_id, "Mars")

        renamed = await document_service.rename_document(page.id, "Captain Rhea")

        assert renamed.slug == "captain-rhea"
        with pytest.raises(SlugTakenError):
            await document_service.rename_document(page.id, "mars")

    async def test_rename_unknown_document(self, document_service) -> None:
        with pytest.raises(DocumentNotFoundError):
            await document_service.rename_document("missing", "Anything")

    async def test_tags(self, document_service, project_id) -> None:
        page = await document_service.create_wiki_page(project_id, "Rhea")

        await document_service.add_tag(page.id, "pilot")
        await document_service.add_tag(page.id, " captain ")
        await document_service.add_tag(page.id, "pilot")
        tagged = await document_service.remove_tag(page.id, "pilot")

        assert tagged.tags == ["captain"]
        assert (await document_service.get_document(page.id)).tags == ["captain"]
        with pytest.raises(ValidationError):
            await document_service.add_tag(page.id, "  ")

    async def test_set_chapter_status(self, document_service, project_id) -> None:
        chapter = await document_service.create_chapter(project_id, "Arrival")
        assert chapter.status == "draft"

        updated = await document_service.set_chapter_status(chapter.id, "revision")

        assert updated.status == "revision"
        assert (await document_service.get_document(chapter.id)).status == "revision"

    async def test_set_chapter_status_rejects_unknown_values(
        self, document_service, project_id
    ) -> None:
        chapter = await document_service.create_chapter(project_id, "Arrival")

        with pytest.raises(ValidationError):
            await document_service.set_chapter_status(chapter.id, "published")
        with pytest.raises(DocumentNotFoundError):
            await document_service.set_chapter_status("missing", "complete")
        assert (await document_service.get_document(chapter.id)).status == "draft"


@pytest.mark.asyncio
class TestSaveDocument:
    """Test the save path and its downstream effects."""

    async def test_save_is_idempotent(self, document_service, project_id) -> None:
        chapter = await document_service.create_chapter(project_id, "Arrival")

        first = await document_service.save_document(chapter.id, "Rhea boards the ship.")
        second = await document_service.save_document(chapter.id, "Rhea boards the ship.")

        assert first.changed is True
        assert second.changed is False
        assert first.word_count == second.word_count == 4
        assert (await document_service.get_document(chapter.id)).body == "Rhea boards the ship."

    async def test_save_unknown_document(self, document_service) -> None:
        with pytest.raises(DocumentNotFoundError):
            await document_service.save_document("missing", "text")

    async def test_storage_errors_become_persistence_failures(self) -> None:
        broken_factory = MagicMock()
        broken_factory.return_value.__aenter__.side_effect = OperationalError(
            "SELECT 1", {}, Exception("disk I/O error")
        )
        service = DocumentService(broken_factory)

        with pytest.raises(PersistenceFailure) as exc_info:
            await service.save_document("chapter-1", "text")

        assert exc_info.value.is_retryable

    async def test_index_failure_does_not_undo_save(self, document_service, project_id) -> None:
        chapter = await document_service.create_chapter(project_id, "Arrival")
        document_service.index.recompute_outgoing = AsyncMock(
            side_effect=IndexUpdateFailure("database is locked", is_retryable=True)
        )

        result = await document_service.save_document(chapter.id, "[[Rhea]]")

        assert result.changed
        assert (await document_service.get_document(chapter.id)).body == "[[Rhea]]"

    async def test_backlinks_and_mentions(self, document_service, project_id) -> None:
        rhea = await document_service.create_wiki_page(project_id, "Rhea")
        ship = await document_service.create_wiki_page(project_id, "Ship", content="[[Rhea]]")
        chapter = await document_service.create_chapter(project_id, "Arrival", "[[rhea]] arrives")

        backlinks = await document_service.list_backlinks(rhea.id)
        mentions = await document_service.list_mentions(rhea.id)

        assert [(b.source_title, b.source_type) for b in backlinks] == [
            ("Arrival", DocumentType.CHAPTER),
            ("Ship", DocumentType.WIKI_PAGE),
        ]
        assert [m.chapter_id for m in mentions] == [chapter.id]
        assert {b.source_id for b in backlinks} == {ship.id, chapter.id}

    async def test_mentions_require_wiki_page(self, document_service, project_id) -> None:
        chapter = await document_service.create_chapter(project_id, "Arrival")

        with pytest.raises(ValidationError):
            await document_service.list_mentions(chapter.id)
        with pytest.raises(DocumentNotFoundError):
            await document_service.list_backlinks("missing")

    async def test_rebuild_links_summary(self, document_service, project_id) -> None:
        await document_service.create_chapter(project_id, "Arrival", "[[Rhea]]")
        await document_service.create_wiki_page(project_id, "Rhea")

        summary = await document_service.rebuild_links(project_id)

        assert summary.documents_processed == 2
        assert summary.documents_failed == 0
        assert summary.edges == 1


@pytest.mark.asyncio
class TestRevisions:
    """Test revision operations exposed by the service."""

    async def test_explicit_revision_and_restore(self, document_service, project_id) -> None:
        chapter = await document_service.create_chapter(project_id, "Arrival", "First draft")
        revision = await document_service.create_revision(chapter.id, note="before rewrite")
        await document_service.save_document(chapter.id, "Second draft")

        revisions = await document_service.list_revisions(chapter.id)
        restored = await document_service.restore_revision(revision.id)

        assert [r.id for r in revisions] == [revision.id]
        assert revisions[0].chapter_title == "Arrival"
        assert revisions[0].note == "before rewrite"
        assert restored.content == "First draft"
        # Restoring alone does not touch the chapter
        assert (await document_service.get_document(chapter.id)).body == "Second draft"

        await document_service.save_document(restored.chapter_id, restored.content)
        assert (await document_service.get_document(chapter.id)).body == "First draft"

    async def test_on_demand_policy_takes_no_automatic_snapshots(
        self, document_service, project_id
    ) -> None:
        chapter = await document_service.create_chapter(project_id, "Arrival")

        await document_service.save_document(chapter.id, "draft")

        assert await document_service.list_revisions(chapter.id) == []

    async def test_time_bucket_policy_snapshots_first_save(
        self, session_factory, reference_index, revision_store, project_id
    ) -> None:
        service = DocumentService(
            session_factory,
            index=reference_index,
            revisions=revision_store,
            snapshot_policy=TimeBucketPolicy(3600),
        )
        chapter = await service.create_chapter(project_id, "Arrival")
        page = await service.create_wiki_page(project_id, "Rhea")

        await service.save_document(chapter.id, "draft one")
        await service.save_document(page.id, "wiki pages have no revisions")

        revisions = await service.list_revisions(chapter.id)
        assert len(revisions) == 1
        assert revisions[0].content == "draft one"
        assert revisions[0].note == AUTOSAVE_NOTE

    async def test_revisions_only_for_chapters(self, document_service, project_id) -> None:
        page = await document_service.create_wiki_page(project_id, "Rhea")

        with pytest.raises(ValidationError):
            await document_service.create_revision(page.id)
        with pytest.raises(RestoreFailure):
            await document_service.get_revision("missing")
