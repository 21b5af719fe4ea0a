"""CLI command for rebuilding a project's reference index."""

import asyncio

import click
import structlog
from tqdm import tqdm

from novelcraft.cli.utils import load_config, open_service
from novelcraft.services.schemas import RebuildSummary
from novelcraft.utils.config import Config

logger = structlog.get_logger(__name__)


async def _run_rebuild(config: Config, project_id: str) -> RebuildSummary:
    async with open_service(config) as service:
        with tqdm(desc="Rebuilding", unit="document") as pbar:

            def on_progress(document_id: str, succeeded: bool) -> None:
                pbar.update(1)

            return await service.rebuild_links(project_id, on_progress=on_progress)


def _display_summary(summary: RebuildSummary) -> None:
    """Display rebuild statistics."""
    click.echo()
    click.echo("=" * 80)
    click.echo("Rebuild Complete!")
    click.echo("=" * 80)
    click.echo(f"  Documents Processed: {summary.documents_processed}")
    click.echo(f"  Documents Failed: {summary.documents_failed}")
    click.echo(f"  Links Stored: {summary.edges:,}")
    click.echo(f"  Duration: {summary.duration_seconds:.2f}s")
    click.echo()


@click.command("rebuild-links")
@click.argument("project_id")
def rebuild_links(project_id: str) -> None:
    """Recompute every link in a project from the documents' current bodies.

    Safe to re-run at any time, including after an interrupted run.

    PROJECT_ID: Project whose reference index to rebuild

    Examples:

        \b
        novelcraft rebuild-links 5f1c0a9e-0000-4000-8000-000000000001
    """
    config = load_config()

    click.echo("=" * 80)
    click.echo("Novelcraft - Rebuild Reference Index")
    click.echo("=" * 80)
    click.echo(f"  Project: {project_id}")
    click.echo()

    try:
        summary = asyncio.run(_run_rebuild(config, project_id))
    except KeyboardInterrupt:
        click.echo()
        click.echo("  Rebuild interrupted by user", err=True)
        raise click.Abort() from None
    except Exception as e:
        click.echo(f"  Rebuild failed: {e}", err=True)
        logger.error("rebuild_failed", project_id=project_id, error=str(e), exc_info=True)
        raise click.Abort() from e

    _display_summary(summary)

    if summary.documents_failed:
        raise SystemExit(1)


if __name__ == "__main__":
    rebuild_links()
