"""CLI commands for browsing and restoring chapter revisions."""

import asyncio

import click
import structlog

from novelcraft.cli.utils import load_config, open_service
from novelcraft.services.schemas import RestoreResult, RevisionView, SaveResult
from novelcraft.utils.config import Config
from novelcraft.utils.exceptions import NovelcraftError

logger = structlog.get_logger(__name__)

PREVIEW_LENGTH = 60


def _preview(content: str) -> str:
    flat = " ".join(content.split())
    if len(flat) <= PREVIEW_LENGTH:
        return flat
    return flat[: PREVIEW_LENGTH - 3] + "..."


async def _fetch_revisions(config: Config, chapter_id: str) -> list[RevisionView]:
    async with open_service(config) as service:
        return await service.list_revisions(chapter_id)


async def _restore(config: Config, revision_id: str) -> tuple[RestoreResult, SaveResult]:
    async with open_service(config) as service:
        restored = await service.restore_revision(revision_id)
        saved = await service.save_document(restored.chapter_id, restored.content)
        return restored, saved


@click.command()
@click.argument("chapter_id")
def revisions(chapter_id: str) -> None:
    """List a chapter's revisions, newest first."""
    config = load_config()

    try:
        rows = asyncio.run(_fetch_revisions(config, chapter_id))
    except NovelcraftError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise click.Abort() from e
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        logger.error("revision_listing_failed", chapter_id=chapter_id, error=str(e), exc_info=True)
        raise click.Abort() from e

    click.echo("=" * 80)
    click.echo(f"Revisions of: {rows[0].chapter_title if rows else chapter_id}")
    click.echo("=" * 80)

    if not rows:
        click.echo("  No revisions recorded")
        return

    for revision in rows:
        note = f" [{revision.note}]" if revision.note else ""
        click.echo(f"  {revision.created_at.isoformat()}  {revision.id}{note}")
        click.echo(f"      {_preview(revision.content)}")

    click.echo()
    click.echo(f"  Total: {len(rows)}")


@click.command("restore-revision")
@click.argument("revision_id")
@click.option("--force", is_flag=True, default=False, help="Skip confirmation prompt")
def restore_revision(revision_id: str, force: bool) -> None:
    """Replace a chapter's content with that of REVISION_ID.

    The restored content is saved like any other edit, so the chapter's links
    are recomputed.
    """
    config = load_config()

    if not force:
        click.confirm(f"Restore revision {revision_id}?", abort=True)

    try:
        restored, saved = asyncio.run(_restore(config, revision_id))
    except NovelcraftError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise click.Abort() from e
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        logger.error(
            "revision_restore_failed", revision_id=revision_id, error=str(e), exc_info=True
        )
        raise click.Abort() from e

    if saved.changed:
        click.echo(f"  Restored revision {restored.revision_id} into chapter {restored.chapter_id}")
        click.echo(f"  Word Count: {saved.word_count:,}")
    else:
        click.echo("  Chapter already matches this revision; nothing changed")


if __name__ == "__main__":
    revisions()
