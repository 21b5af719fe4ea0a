"""Shared utilities for CLI commands."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import click

from novelcraft.services.document_service import DocumentService
from novelcraft.utils.config import Config
from novelcraft.utils.database import create_engine_from_url, create_session_factory
from novelcraft.utils.exceptions import ConfigurationError
from novelcraft.utils.logger import configure_logging


def load_config() -> Config:
    """Load configuration and set up console logging.

    Raises:
        click.Abort: If the configuration is invalid
    """
    try:
        config = Config()
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        raise click.Abort() from e

    configure_logging(config.log_level, json_output=False)
    return config


@asynccontextmanager
async def open_service(config: Config) -> AsyncIterator[DocumentService]:
    """Yield a DocumentService bound to a fresh engine, disposed on exit."""
    engine = create_engine_from_url(config.database_url)
    try:
        yield DocumentService.from_config(config, create_session_factory(engine))
    finally:
        await engine.dispose()
