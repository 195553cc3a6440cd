"""
issue-hunter - collect and track issues from several GitHub repositories in one place.
"""
import asyncio
import logging
import sys
from datetime import datetime
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from issue_hunter.application.query_service import QueryService
from issue_hunter.application.sync_service import SyncService
from issue_hunter.config import Settings, load_settings
from issue_hunter.domain.exceptions import IssueHunterError
from issue_hunter.domain.models import IssueFilter, Repository
from issue_hunter.infrastructure.database import IssueStore
from issue_hunter.infrastructure.github_client import GitHubRestClient
from issue_hunter.infrastructure.rows import format_timestamp

logger = logging.getLogger(__name__)
console = Console()
app = typer.Typer(
    name="issue-hunter",
    help="A tool for collecting and tracking issues from multiple repositories in one place.",
    no_args_is_help=True,
)

T = TypeVar("T")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr)
        ],
        force=True,
    )


def _run(settings: Settings, action: Callable[[IssueStore], Awaitable[T]]) -> T:
    """Opens the store, runs one command against it and always disposes the engine."""
    async def runner() -> T:
        settings.ensure_data_dir()
        store = IssueStore(db_url=settings.db_url)
        try:
            await store.create_tables()
            return await action(store)
        finally:
            await store.dispose()

    try:
        return asyncio.run(runner())
    except IssueHunterError as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user. Exiting gracefully.")
        raise typer.Exit(code=130)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj


def _repository(owner: str, name: str) -> Repository:
    try:
        return Repository(owner=owner, name=name)
    except ValidationError as e:
        console.print(f"[red]Invalid repository:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def _sync_service(settings: Settings, store: IssueStore) -> SyncService:
    return SyncService(
        github_client=GitHubRestClient(token=settings.github_token),
        store=store,
        max_pages=settings.max_pages,
    )


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    try:
        settings = load_settings()
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    _configure_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings


@app.command("add-repo")
def add_repo(
    ctx: typer.Context,
    owner: str = typer.Option(..., "--owner", help="Repository owner"),
    name: str = typer.Option(..., "--name", help="Repository name"),
) -> None:
    """Register a repository to sync."""
    repo = _repository(owner, name)
    settings = _settings(ctx)
    _run(settings, lambda store: _sync_service(settings, store).add_repository(repo))
    console.print(f"Added [bold]{repo.full_name}[/bold]")


@app.command("remove-repo")
def remove_repo(
    ctx: typer.Context,
    owner: str = typer.Option(..., "--owner", help="Repository owner"),
    name: str = typer.Option(..., "--name", help="Repository name"),
) -> None:
    """Deregister a repository and delete its stored issues."""
    repo = _repository(owner, name)
    settings = _settings(ctx)
    _run(settings, lambda store: _sync_service(settings, store).remove_repository(repo))
    console.print(f"Removed [bold]{repo.full_name}[/bold]")


@app.command("update")
def update(
    ctx: typer.Context,
    create_after: Optional[datetime] = typer.Option(
        None,
        "--create-after",
        help="Fetch back to this creation time (UTC). Defaults to the start of today.",
    ),
) -> None:
    """Sync issues of every registered repository."""
    settings = _settings(ctx)
    synced = _run(settings, lambda store: _sync_service(settings, store).sync_all(create_after))

    table = Table(title="Synced issues")
    table.add_column("Repository")
    table.add_column("Issues", justify="right")
    for full_name, count in synced.items():
        table.add_row(escape(full_name), str(count))
    console.print(table)


@app.command("fetch")
def fetch(
    ctx: typer.Context,
    repo_name: Optional[str] = typer.Option(None, "--repo-name", help="LIKE pattern on owner/name, e.g. 'octo/%'"),
    create_after: Optional[datetime] = typer.Option(None, "--create-after", help="Only issues created after this time (UTC)"),
    today: bool = typer.Option(False, "--today", help="Only issues created today (UTC)"),
    label_name: Optional[str] = typer.Option(None, "--label-name", help="Only issues carrying this label"),
    page: int = typer.Option(1, "--page", min=1),
    page_size: int = typer.Option(10, "--page-size", min=1),
) -> None:
    """List stored issues."""
    issue_filter = IssueFilter(
        repo_name=repo_name,
        created_after=create_after,
        today=today,
        label_name=label_name,
        page=page,
        page_size=page_size,
    )
    issues = _run(_settings(ctx), lambda store: QueryService(store).fetch_issues(issue_filter))

    table = Table()
    for column in ("ID", "Number", "Repository", "Title", "State", "User", "Labels", "Created At"):
        table.add_column(column)
    for issue in issues:
        table.add_row(
            str(issue.id),
            str(issue.number),
            escape(issue.repository_full_name),
            escape(issue.title),
            escape(issue.state),
            escape(issue.user.login) if issue.user else "<unknown>",
            escape(", ".join(label.name for label in issue.labels)),
            format_timestamp(issue.created_at),
        )
    console.print(table)


@app.command("repos")
def repos(ctx: typer.Context) -> None:
    """List registered repositories."""
    repositories = _run(_settings(ctx), lambda store: QueryService(store).list_repositories())

    table = Table()
    for column in ("Owner", "Name", "Url"):
        table.add_column(column)
    for repo in repositories:
        table.add_row(escape(repo.owner), escape(repo.name), escape(repo.url))
    console.print(table)


app.command("list-repos", help="List registered repositories.")(repos)


if __name__ == "__main__":
    app()
