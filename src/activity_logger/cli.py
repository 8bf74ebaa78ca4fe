"""Command line interface for inspecting the activity trail."""

import asyncio
import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from activity_logger import __version__
from activity_logger.config import Settings, get_settings
from activity_logger.core.constants import DEFAULT_ACTIVITY_LIMIT, MAX_ACTIVITY_LIMIT


console = Console()

app = typer.Typer(
    name="activity-logger",
    help="Inspect the activity trail and manage its database.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _load_settings(database_url: str | None) -> Settings:
    settings = get_settings()
    if database_url:
        settings = settings.model_copy(update={"database_url": database_url})
    return settings


def _summarize(changes: dict[str, Any], width: int = 60) -> str:
    if not changes:
        return ""
    if "deleted" in changes:
        return "deleted record"
    fields = sorted(changes.get("after") or {})
    if fields:
        return ", ".join(fields)
    text = json.dumps(changes, default=str)
    return text if len(text) <= width else text[: width - 3] + "..."


async def _fetch_activities(settings: Settings, **filters: Any) -> list[Any]:
    from activity_logger.core.activity.hook import ActivityLoggerHook
    from activity_logger.core.activity.models import ActivityLog
    from activity_logger.core.activity.store import SQLAlchemyRecordStore
    from activity_logger.core.constants import ACTIVITY_ENTITY
    from activity_logger.core.database import create_engine, create_session_factory
    from activity_logger.modules import default_models

    engine = create_engine(settings)
    try:
        store = SQLAlchemyRecordStore(
            create_session_factory(engine),
            {**default_models(), ACTIVITY_ENTITY: ActivityLog},
        )
        hook = ActivityLoggerHook(settings.activity_logger, store)
        return await hook.service.get_latest_activities(**filters)
    finally:
        await engine.dispose()


async def _init_db(settings: Settings) -> None:
    # Model modules must be imported so their tables are on the metadata
    import activity_logger.core.activity.models  # noqa: F401
    import activity_logger.modules  # noqa: F401
    from activity_logger.core.database import create_engine, create_tables

    engine = create_engine(settings)
    try:
        await create_tables(engine)
    finally:
        await engine.dispose()


@app.command(name="activities")
def list_activities(
    entity_type: str | None = typer.Option(
        None, "--entity-type", "-e", help="Filter by entity type"
    ),
    record_id: str | None = typer.Option(
        None, "--record-id", "-r", help="Filter by record ID"
    ),
    actor_id: str | None = typer.Option(
        None, "--actor-id", "-u", help="Filter by acting user"
    ),
    action: str | None = typer.Option(
        None, "--action", "-a", help="Filter by action (create, update, delete)"
    ),
    limit: int = typer.Option(
        DEFAULT_ACTIVITY_LIMIT,
        "--limit",
        "-n",
        min=1,
        max=MAX_ACTIVITY_LIMIT,
        help="Maximum entries",
    ),
    oldest_first: bool = typer.Option(
        False, "--oldest-first", help="Sort oldest entries first"
    ),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL"
    ),
) -> None:
    """List recent activity entries, newest first."""
    from activity_logger.core.errors import InvalidActivityError
    from activity_logger.core.logging import configure_logging

    settings = _load_settings(database_url)
    configure_logging(settings)

    try:
        entries = asyncio.run(
            _fetch_activities(
                settings,
                entity_type=entity_type,
                record_id=record_id,
                actor_id=actor_id,
                action=action,
                limit=limit,
                sort="asc" if oldest_first else "desc",
                populate=False,
            )
        )
    except InvalidActivityError as e:
        for error in e.errors:
            console.print(f"[red]Error:[/red] {error['field']}: {error['message']}")
        raise typer.Exit(code=1) from None

    if not entries:
        console.print("[yellow]No activities found.[/yellow]")
        return

    table = Table(title="Activities", show_header=True)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("When", no_wrap=True)
    table.add_column("Action", style="cyan", no_wrap=True)
    table.add_column("Entity", no_wrap=True)
    table.add_column("Record", no_wrap=True)
    table.add_column("Actor", style="green", no_wrap=True)
    table.add_column("Changes")

    for entry in entries:
        table.add_row(
            str(entry.id),
            entry.created_at.isoformat(timespec="seconds") if entry.created_at else "",
            entry.action,
            entry.entity_type,
            entry.record_id,
            entry.actor_id or "[dim]-[/dim]",
            _summarize(entry.changes),
        )

    console.print()
    console.print(table)
    console.print()


@app.command(name="init-db")
def init_db(
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL"
    ),
) -> None:
    """Create the activity and host model tables."""
    settings = _load_settings(database_url)
    asyncio.run(_init_db(settings))
    console.print("[green]Database tables created.[/green]")


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
) -> None:
    """Activity Logger CLI - inspect the audit trail."""
    if version:
        console.print(f"[bold cyan]activity-logger[/bold cyan] version {__version__}")
        raise typer.Exit()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
