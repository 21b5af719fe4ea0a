"""Async engine and session factory wiring."""

from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

# Seconds a SQLite connection waits on a locked database before failing
SQLITE_BUSY_TIMEOUT = 30

MIGRATIONS_PATH = Path(__file__).resolve().parent.parent / "migrations"


def create_engine_from_url(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the given database URL.

    SQLite connections get a busy timeout so concurrent writers for different
    documents queue up instead of failing with "database is locked".

    Args:
        database_url: Async SQLAlchemy URL (e.g. sqlite+aiosqlite:///novelcraft.db)
        echo: Log emitted SQL

    Returns:
        Configured AsyncEngine
    """
    connect_args: dict[str, int] = {}
    if make_url(database_url).get_backend_name() == "sqlite":
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT
    return create_async_engine(database_url, echo=echo, connect_args=connect_args)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory whose objects stay usable after commit."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def to_sync_url(database_url: str) -> str:
    """Convert an async driver URL into the sync URL Alembic expects.

    Example:
        >>> to_sync_url("sqlite+aiosqlite:///novelcraft.db")
        'sqlite:///novelcraft.db'
    """
    url = make_url(database_url)
    return url.set(drivername=url.get_backend_name()).render_as_string(hide_password=False)


def upgrade_schema(database_url: str, revision: str = "head") -> None:
    """Run Alembic migrations up to the given revision.

    Builds the Alembic config in code so it works from an installed package
    as well as a source checkout.

    Args:
        database_url: Async or sync SQLAlchemy URL of the target database
        revision: Target revision (default: head)
    """
    alembic_cfg = AlembicConfig()
    alembic_cfg.set_main_option("script_location", str(MIGRATIONS_PATH))
    # ConfigParser interpolation treats "%" specially
    alembic_cfg.set_main_option("sqlalchemy.url", to_sync_url(database_url).replace("%", "%%"))
    command.upgrade(alembic_cfg, revision)
