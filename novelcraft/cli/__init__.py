"""Command-line interface."""

import click

from novelcraft import __version__
from novelcraft.cli.backlinks import backlinks
from novelcraft.cli.db_health import db_health
from novelcraft.cli.init_db import init_db
from novelcraft.cli.rebuild_links import rebuild_links
from novelcraft.cli.revisions import restore_revision, revisions


@click.group()
@click.version_option(__version__, prog_name="novelcraft")
def cli() -> None:
    """Novelcraft manuscript and story-wiki tools."""


cli.add_command(init_db)
cli.add_command(rebuild_links)
cli.add_command(backlinks)
cli.add_command(revisions)
cli.add_command(restore_revision)
cli.add_command(db_health)

__all__ = ["cli"]
