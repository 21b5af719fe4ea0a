"""Integration tests for CLI commands against a real SQLite database."""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from novelcraft.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_init_db_creates_schema(
    runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    db_path = tmp_path / "fresh.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")

    with patch("novelcraft.utils.config.load_dotenv"):
        result = runner.invoke(cli, ["init-db"])

    assert result.exit_code == 0, result.output
    assert "Schema is up to date" in result.output
    assert db_path.exists()


def test_db_health_on_migrated_database(
    runner: CliRunner, database_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DATABASE_URL", database_url)

    with patch("novelcraft.utils.config.load_dotenv"):
        result = runner.invoke(cli, ["db-health"])

    assert result.exit_code == 0, result.output
    assert "Status: OK" in result.output
    assert "Chapters: 0" in result.output
    assert "Status: CONSISTENT" in result.output


def test_db_health_without_schema_fails(
    runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")

    with patch("novelcraft.utils.config.load_dotenv"):
        result = runner.invoke(cli, ["db-health"])

    assert result.exit_code == 1
    assert "Status: ERROR" in result.output
    assert "Database: FAILED" in result.output


def test_rebuild_links_on_empty_project(
    runner: CliRunner, database_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DATABASE_URL", database_url)

    with patch("novelcraft.utils.config.load_dotenv"):
        result = runner.invoke(cli, ["rebuild-links", "empty-project"])

    assert result.exit_code == 0, result.output
    assert "Documents Processed: 0" in result.output
