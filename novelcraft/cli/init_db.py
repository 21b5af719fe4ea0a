"""CLI command for creating or upgrading the database schema."""

import click
import structlog

from novelcraft.cli.utils import load_config
from novelcraft.utils.database import upgrade_schema

logger = structlog.get_logger(__name__)


@click.command("init-db")
@click.option(
    "--revision",
    default="head",
    show_default=True,
    help="Alembic revision to upgrade to",
)
def init_db(revision: str) -> None:
    """Create the database schema, or upgrade it to the latest revision."""
    config = load_config()

    click.echo("=" * 80)
    click.echo("Novelcraft - Database Migration")
    click.echo("=" * 80)
    click.echo(f"  Database URL: {config.database_url}")
    click.echo(f"  Target Revision: {revision}")
    click.echo()

    try:
        upgrade_schema(config.database_url, revision)
    except Exception as e:
        click.echo(f"  Migration failed: {e}", err=True)
        logger.error("migration_failed", error=str(e), exc_info=True)
        raise click.Abort() from e

    click.echo("  Schema is up to date")


if __name__ == "__main__":
    init_db()
