"""CLI command for database health check."""

import asyncio
from dataclasses import dataclass, field

import click
import structlog
from sqlalchemy import func, or_, select, text
from sqlalchemy.ext.asyncio import AsyncConnection

from novelcraft.cli.utils import load_config
from novelcraft.models.chapter import Chapter
from novelcraft.models.chapter_revision import ChapterRevision
from novelcraft.models.link_reference import LinkReference
from novelcraft.models.wiki_page import WikiPage
from novelcraft.utils.database import create_engine_from_url

logger = structlog.get_logger(__name__)


@dataclass
class HealthReport:
    """Row counts and consistency findings."""

    ok: bool = False
    error: str | None = None
    counts: dict[str, int] = field(default_factory=dict)
    dangling_links: int = 0
    orphan_revisions: int = 0


async def _count(conn: AsyncConnection, model: type) -> int:
    return (await conn.execute(select(func.count()).select_from(model))).scalar() or 0


async def _collect(database_url: str) -> HealthReport:
    report = HealthReport()
    engine = create_engine_from_url(database_url)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            for label, model in (
                ("Chapters", Chapter),
                ("Wiki Pages", WikiPage),
                ("Links", LinkReference),
                ("Revisions", ChapterRevision),
            ):
                report.counts[label] = await _count(conn, model)

            document_ids = select(Chapter.id).union(select(WikiPage.id))
            dangling = select(func.count()).where(
                or_(
                    LinkReference.source_id.not_in(document_ids),
                    LinkReference.target_id.not_in(document_ids),
                )
            )
            report.dangling_links = (await conn.execute(dangling)).scalar() or 0

            orphans = select(func.count()).where(
                ChapterRevision.chapter_id.not_in(select(Chapter.id))
            )
            report.orphan_revisions = (await conn.execute(orphans)).scalar() or 0
        report.ok = True
    except Exception as e:
        report.error = str(e)
        logger.error("database_health_check_failed", error=str(e))
    finally:
        await engine.dispose()
    return report


@click.command("db-health")
def db_health() -> None:
    """Check database connectivity, row counts and link consistency."""
    config = load_config()

    click.echo("=" * 80)
    click.echo("Novelcraft - Database Health Check")
    click.echo("=" * 80)
    click.echo()

    report = asyncio.run(_collect(config.database_url))

    click.echo("-" * 80)
    click.echo("Database")
    click.echo("-" * 80)
    if not report.ok:
        click.echo("  Status: ERROR")
        click.echo(f"  Error: {report.error}")
        click.echo()
        click.echo("  Database: FAILED")
        raise SystemExit(1)

    click.echo("  Status: OK")
    click.echo(f"  Database URL: {config.database_url}")
    for label, count in report.counts.items():
        click.echo(f"  {label}: {count:,}")
    click.echo()

    click.echo("-" * 80)
    click.echo("Consistency Check")
    click.echo("-" * 80)
    consistent = report.dangling_links == 0 and report.orphan_revisions == 0
    if consistent:
        click.echo("  Status: CONSISTENT")
    else:
        click.echo("  Status: INCONSISTENT")
        click.echo(f"  Links To Or From Missing Documents: {report.dangling_links:,}")
        click.echo(f"  Revisions Of Missing Chapters: {report.orphan_revisions:,}")
        click.echo("  Hint: run 'novelcraft rebuild-links PROJECT_ID' to repair links")
    click.echo()

    click.echo("  Database: OK")


if __name__ == "__main__":
    db_health()
