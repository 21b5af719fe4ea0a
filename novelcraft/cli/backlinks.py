"""CLI command for listing the documents that link to a document."""

import asyncio

import click
import structlog

from novelcraft.cli.utils import load_config, open_service
from novelcraft.services.schemas import Backlink, Mention
from novelcraft.utils.config import Config
from novelcraft.utils.exceptions import NovelcraftError

logger = structlog.get_logger(__name__)


async def _fetch_backlinks(config: Config, document_id: str) -> tuple[str, list[Backlink]]:
    async with open_service(config) as service:
        document = await service.get_document(document_id)
        return document.title, await service.list_backlinks(document_id)


async def _fetch_mentions(config: Config, wiki_page_id: str) -> tuple[str, list[Mention]]:
    async with open_service(config) as service:
        document = await service.get_document(wiki_page_id)
        return document.title, await service.list_mentions(wiki_page_id)


@click.command()
@click.argument("document_id")
@click.option(
    "--mentions",
    is_flag=True,
    help="Only list chapters that mention a wiki page",
)
def backlinks(document_id: str, mentions: bool) -> None:
    """List documents whose text links to DOCUMENT_ID, ordered by title."""
    config = load_config()

    try:
        if mentions:
            title, mention_rows = asyncio.run(_fetch_mentions(config, document_id))
            rows = [(row.chapter_title, "chapter", row.chapter_id, "") for row in mention_rows]
        else:
            title, backlink_rows = asyncio.run(_fetch_backlinks(config, document_id))
            rows = [
                (row.source_title, row.source_type.value, row.source_id, row.raw_target)
                for row in backlink_rows
            ]
    except NovelcraftError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise click.Abort() from e
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        logger.error(
            "backlinks_lookup_failed", document_id=document_id, error=str(e), exc_info=True
        )
        raise click.Abort() from e

    heading = "Mentions" if mentions else "Backlinks"
    click.echo("=" * 80)
    click.echo(f"{heading} of: {title}")
    click.echo("=" * 80)

    if not rows:
        click.echo(f"  No {heading.lower()} found")
        return

    for source_title, source_type, source_id, raw_target in rows:
        line = f"  [{source_type}] {source_title} ({source_id})"
        if raw_target:
            line += f"  via [[{raw_target}]]"
        click.echo(line)

    click.echo()
    click.echo(f"  Total: {len(rows)}")


if __name__ == "__main__":
    backlinks()
