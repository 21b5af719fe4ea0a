"""Unit tests for CLI commands with the document service mocked out."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from novelcraft.cli import cli
from novelcraft.models.document import Document, DocumentType
from novelcraft.services.schemas import (
    Backlink,
    Mention,
    RebuildSummary,
    RestoreResult,
    RevisionView,
    SaveResult,
)
from novelcraft.utils.exceptions import DocumentNotFoundError

CREATED = datetime(2026, 10, 18, 9, 30, tzinfo=UTC)


def fake_open_service(service: MagicMock):
    @asynccontextmanager
    async def _open(config: object) -> AsyncIterator[MagicMock]:
        yield service

    return _open


def make_document(document_id: str, title: str, document_type: DocumentType) -> Document:
    return Document(
        id=document_id,
        project_id="project-1",
        document_type=document_type,
        title=title,
        body="",
        updated_at=CREATED,
    )


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestCliGroup:
    """Test the top-level command group."""

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("rebuild-links", "backlinks", "revisions", "restore-revision", "db-health"):
            assert command in result.output

    def test_missing_database_url_aborts(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)

        with patch("novelcraft.utils.config.load_dotenv"):
            result = runner.invoke(cli, ["db-health"])

        assert result.exit_code == 1
        assert "DATABASE_URL environment variable is not set" in result.output


class TestRebuildLinksCLI:
    """Test rebuild-links command."""

    def test_rebuild_success(self, runner: CliRunner) -> None:
        service = MagicMock()
        service.rebuild_links = AsyncMock(
            return_value=RebuildSummary(
                project_id="project-1",
                documents_processed=3,
                documents_failed=0,
                edges=5,
                duration_seconds=0.25,
            )
        )

        with (
            patch("novelcraft.cli.rebuild_links.load_config"),
            patch("novelcraft.cli.rebuild_links.open_service", fake_open_service(service)),
        ):
            result = runner.invoke(cli, ["rebuild-links", "project-1"])

        assert result.exit_code == 0
        assert "Rebuild Complete!" in result.output
        assert "Documents Processed: 3" in result.output
        assert "Links Stored: 5" in result.output
        assert service.rebuild_links.await_args.args == ("project-1",)

    def test_rebuild_with_failed_documents_exits_nonzero(self, runner: CliRunner) -> None:
        service = MagicMock()
        service.rebuild_links = AsyncMock(
            return_value=RebuildSummary(
                project_id="project-1",
                documents_processed=2,
                documents_failed=1,
                edges=1,
                duration_seconds=0.1,
            )
        )

        with (
            patch("novelcraft.cli.rebuild_links.load_config"),
            patch("novelcraft.cli.rebuild_links.open_service", fake_open_service(service)),
        ):
            result = runner.invoke(cli, ["rebuild-links", "project-1"])

        assert result.exit_code == 1
        assert "Documents Failed: 1" in result.output

    def test_rebuild_error_aborts(self, runner: CliRunner) -> None:
        service = MagicMock()
        service.rebuild_links = AsyncMock(side_effect=RuntimeError("database is locked"))

        with (
            patch("novelcraft.cli.rebuild_links.load_config"),
            patch("novelcraft.cli.rebuild_links.open_service", fake_open_service(service)),
        ):
            result = runner.invoke(cli, ["rebuild-links", "project-1"])

        assert result.exit_code == 1
        assert "Rebuild failed: database is locked" in result.output


class TestBacklinksCLI:
    """Test backlinks command."""

    def test_lists_backlinks(self, runner: CliRunner) -> None:
        service = MagicMock()
        service.get_document = AsyncMock(
            return_value=make_document("w-rhea", "Rhea", DocumentType.WIKI_PAGE)
        )
        service.list_backlinks = AsyncMock(
            return_value=[
                Backlink(
                    source_type=DocumentType.CHAPTER,
                    source_id="c-1",
                    source_title="Arrival",
                    raw_target="rhea",
                    created_at=CREATED,
                )
            ]
        )

        with (
            patch("novelcraft.cli.backlinks.load_config"),
            patch("novelcraft.cli.backlinks.open_service", fake_open_service(service)),
        ):
            result = runner.invoke(cli, ["backlinks", "w-rhea"])

        assert result.exit_code == 0
        assert "Backlinks of: Rhea" in result.output
        assert "[chapter] Arrival (c-1)  via [[rhea]]" in result.output
        assert "Total: 1" in result.output

    def test_lists_mentions(self, runner: CliRunner) -> None:
        service = MagicMock()
        service.get_document = AsyncMock(
            return_value=make_document("w-rhea", "Rhea", DocumentType.WIKI_PAGE)
        )
        service.list_mentions = AsyncMock(
            return_value=[Mention(chapter_id="c-1", chapter_title="Arrival", created_at=CREATED)]
        )

        with (
            patch("novelcraft.cli.backlinks.load_config"),
            patch("novelcraft.cli.backlinks.open_service", fake_open_service(service)),
        ):
            result = runner.invoke(cli, ["backlinks", "w-rhea", "--mentions"])

        assert result.exit_code == 0
        assert "Mentions of: Rhea" in result.output
        assert "[chapter] Arrival (c-1)" in result.output
        service.list_backlinks.assert_not_called()

    def test_no_backlinks(self, runner: CliRunner) -> None:
        service = MagicMock()
        service.get_document = AsyncMock(
            return_value=make_document("c-9", "Epilogue", DocumentType.CHAPTER)
        )
        service.list_backlinks = AsyncMock(return_value=[])

        with (
            patch("novelcraft.cli.backlinks.load_config"),
            patch("novelcraft.cli.backlinks.open_service", fake_open_service(service)),
        ):
            result = runner.invoke(cli, ["backlinks", "c-9"])

        assert result.exit_code == 0
        assert "No backlinks found" in result.output

    def test_unknown_document_aborts(self, runner: CliRunner) -> None:
        service = MagicMock()
        service.get_document = AsyncMock(side_effect=DocumentNotFoundError("missing"))

        with (
            patch("novelcraft.cli.backlinks.load_config"),
            patch("novelcraft.cli.backlinks.open_service", fake_open_service(service)),
        ):
            result = runner.invoke(cli, ["backlinks", "missing"])

        assert result.exit_code == 1
        assert "Error: Document not found: missing" in result.output


class TestRevisionsCLI:
    """Test revisions and restore-revision commands."""

    def test_lists_revisions_newest_first(self, runner: CliRunner) -> None:
        service = MagicMock()
        service.list_revisions = AsyncMock(
            return_value=[
                RevisionView(
                    id="r-2",
                    chapter_id="c-1",
                    chapter_title="Arrival",
                    content="Second draft " * 10,
                    note="Autosave",
                    created_at=CREATED,
                ),
                RevisionView(
                    id="r-1",
                    chapter_id="c-1",
                    chapter_title="Arrival",
                    content="First draft",
                    note="",
                    created_at=CREATED.replace(minute=0),
                ),
            ]
        )

        with (
            patch("novelcraft.cli.revisions.load_config"),
            patch("novelcraft.cli.revisions.open_service", fake_open_service(service)),
        ):
            result = runner.invoke(cli, ["revisions", "c-1"])

        assert result.exit_code == 0
        assert "Revisions of: Arrival" in result.output
        assert result.output.index("r-2") < result.output.index("r-1")
        assert "[Autosave]" in result.output
        assert "..." in result.output
        assert "Total: 2" in result.output

    def test_restore_saves_revision_content(self, runner: CliRunner) -> None:
        service = MagicMock()
        service.restore_revision = AsyncMock(
            return_value=RestoreResult(revision_id="r-1", chapter_id="c-1", content="First draft")
        )
        service.save_document = AsyncMock(
            return_value=SaveResult(document_id="c-1", word_count=2, changed=True)
        )

        with (
            patch("novelcraft.cli.revisions.load_config"),
            patch("novelcraft.cli.revisions.open_service", fake_open_service(service)),
        ):
            result = runner.invoke(cli, ["restore-revision", "r-1", "--force"])

        assert result.exit_code == 0
        assert "Restored revision r-1 into chapter c-1" in result.output
        service.save_document.assert_awaited_once_with("c-1", "First draft")

    def test_restore_requires_confirmation(self, runner: CliRunner) -> None:
        service = MagicMock()

        with (
            patch("novelcraft.cli.revisions.load_config"),
            patch("novelcraft.cli.revisions.open_service", fake_open_service(service)),
        ):
            result = runner.invoke(cli, ["restore-revision", "r-1"], input="n\n")

        assert result.exit_code == 1
        service.restore_revision.assert_not_called()
