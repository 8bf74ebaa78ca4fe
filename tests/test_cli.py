"""Tests for the activity-logger CLI."""

import asyncio

import pytest
from typer.testing import CliRunner

from activity_logger import __version__, cli
from activity_logger.cli import app
from activity_logger.config import ActivityLoggerConfig, Settings
from activity_logger.core.activity.hook import ActivityLoggerHook
from activity_logger.core.activity.models import ActivityLog
from activity_logger.core.activity.store import SQLAlchemyRecordStore
from activity_logger.core.constants import ACTIVITY_ENTITY
from activity_logger.core.database import create_engine, create_session_factory


runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Render tables wide enough that cells are never wrapped."""
    monkeypatch.setattr(cli.console, "width", 200)


@pytest.fixture
def database_url(tmp_path) -> str:
    """File-backed SQLite database with tables created via the CLI."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'activity.db'}"
    result = runner.invoke(app, ["init-db", "--database-url", url])
    assert result.exit_code == 0
    return url


def seed(url: str) -> None:
    async def _seed() -> None:
        settings = Settings(_env_file=None, database_url=url)
        engine = create_engine(settings)
        store = SQLAlchemyRecordStore(
            create_session_factory(engine), {ACTIVITY_ENTITY: ActivityLog}
        )
        hook = ActivityLoggerHook(ActivityLoggerConfig(models={"invoice"}), store)
        await hook.service.log("create", "invoice", 1, actor_id="u1")
        await hook.service.log(
            "update", "invoice", 1, {"before": {"total": 1}, "after": {"total": 2}}, "u1"
        )
        await hook.service.log("delete", "invoice", 1, {"deleted": {"id": 1}}, "u2")
        await engine.dispose()

    asyncio.run(_seed())


class TestVersion:
    """Tests for --version."""

    def test_version(self):
        """Test that the version is printed."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestInitDb:
    """Tests for the init-db command."""

    def test_init_db(self, tmp_path):
        """Test that tables are created."""
        url = f"sqlite+aiosqlite:///{tmp_path / 'fresh.db'}"

        result = runner.invoke(app, ["init-db", "--database-url", url])

        assert result.exit_code == 0
        assert "Database tables created" in result.stdout
        assert (tmp_path / "fresh.db").exists()


class TestActivities:
    """Tests for the activities command."""

    def test_empty(self, database_url):
        """Test output when no activities exist."""
        result = runner.invoke(app, ["activities", "--database-url", database_url])

        assert result.exit_code == 0
        assert "No activities found" in result.stdout

    def test_lists_entries(self, database_url):
        """Test that entries are printed as a table."""
        seed(database_url)

        result = runner.invoke(app, ["activities", "--database-url", database_url])

        assert result.exit_code == 0
        assert "Activities" in result.stdout
        assert "invoice" in result.stdout
        assert "total" in result.stdout
        assert "deleted record" in result.stdout

    def test_filters(self, database_url):
        """Test filtering by actor."""
        seed(database_url)

        result = runner.invoke(
            app, ["activities", "--database-url", database_url, "--actor-id", "u2"]
        )

        assert result.exit_code == 0
        assert "deleted record" in result.stdout
        assert "total" not in result.stdout

    def test_invalid_action(self, database_url):
        """Test that an invalid filter exits with an error."""
        result = runner.invoke(
            app, ["activities", "--database-url", database_url, "--action", "destroy"]
        )

        assert result.exit_code == 1
        assert "action" in result.stdout
