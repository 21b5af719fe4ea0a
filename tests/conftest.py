"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from novelcraft.linking.index import ReferenceIndex
from novelcraft.revisions.policy import OnDemandPolicy
from novelcraft.revisions.store import RevisionStore
from novelcraft.services.document_service import DocumentService, SessionSettings
from novelcraft.utils.database import (
    create_engine_from_url,
    create_session_factory,
    upgrade_schema,
)

PROJECT_ID = "11111111-1111-4111-8111-111111111111"


@pytest.fixture
def project_id() -> str:
    return PROJECT_ID


@pytest.fixture
def other_project_id() -> str:
    return "22222222-2222-4222-8222-222222222222"


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Return path to temporary test database."""
    return tmp_path / "test.db"


@pytest.fixture
def database_url(temp_db_path: Path) -> str:
    """Async URL of a temporary database migrated to the latest schema."""
    url = f"sqlite+aiosqlite:///{temp_db_path}"
    upgrade_schema(url)
    return url


@pytest.fixture
async def async_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for testing."""
    engine = create_engine_from_url(database_url)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(async_engine)


@pytest.fixture
async def async_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for testing."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def reference_index(session_factory: async_sessionmaker[AsyncSession]) -> ReferenceIndex:
    return ReferenceIndex(session_factory, rebuild_concurrency=4)


@pytest.fixture
def revision_store(session_factory: async_sessionmaker[AsyncSession]) -> RevisionStore:
    return RevisionStore(session_factory)


@pytest.fixture
def document_service(
    session_factory: async_sessionmaker[AsyncSession],
    reference_index: ReferenceIndex,
    revision_store: RevisionStore,
) -> DocumentService:
    """Service with on-demand revisions and fast autosave for edit-session tests."""
    return DocumentService(
        session_factory,
        index=reference_index,
        revisions=revision_store,
        snapshot_policy=OnDemandPolicy(),
        session_settings=SessionSettings(
            debounce_seconds=0.02,
            history_limit=100,
            retry_base_seconds=0.02,
            retry_max_seconds=0.1,
        ),
    )
