"""Command-line interface for the scijournal client."""

from __future__ import annotations

import asyncio
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

import httpx
import structlog
import typer
from rich.console import Console
from rich.table import Table

from scijournal.models import Article, ArticleStatus
from scijournal.services import (
    ApiClient,
    ArticleQuery,
    ArticleStore,
    AuthorStore,
    CloudinaryUploader,
    ConsoleNotifier,
    FileStore,
    LocalFile,
    LocalStorage,
    PublishDetails,
)
from scijournal.services.articles import next_statuses
from scijournal.services.storage import TOKEN_KEY
from scijournal.settings import Settings, configure_logging, get_settings
from scijournal.workflow import AuthorInput, DraftKeeper, SubmissionWorkflow

console = Console()
app = typer.Typer(help="scijournal – journal submission and editorial client")
articles_app = typer.Typer(help="Browse and manage articles")
draft_app = typer.Typer(help="Locally saved submission drafts")
app.add_typer(articles_app, name="articles")
app.add_typer(draft_app, name="draft")
logger = structlog.get_logger(__name__)

AUTHOR_PATTERN = re.compile(r"^\s*(?P<name>[^<]+?)\s*<(?P<email>[^>]+)>\s*$")


@dataclass(slots=True)
class _Session:
    settings: Settings
    storage: LocalStorage
    notifier: ConsoleNotifier
    api: ApiClient
    uploader: CloudinaryUploader
    articles: ArticleStore
    files: FileStore
    authors: AuthorStore


def _redirect(path: str) -> None:
    console.print(f"[red]Session expired.[/red] Sign in again ({path}) and store a new token with `scijournal login`.")


@asynccontextmanager
async def _session() -> AsyncIterator[_Session]:
    settings = get_settings()
    configure_logging(settings.log_level)
    storage = LocalStorage(settings)
    notifier = ConsoleNotifier()
    async with httpx.AsyncClient(timeout=settings.request_timeout) as upload_client:
        async with ApiClient(settings, storage, on_unauthorized=_redirect) as api:
            uploader = CloudinaryUploader(client=upload_client, settings=settings)
            yield _Session(
                settings=settings,
                storage=storage,
                notifier=notifier,
                api=api,
                uploader=uploader,
                articles=ArticleStore(api, notifier),
                files=FileStore(api, notifier, uploader),
                authors=AuthorStore(api, notifier),
            )


def _name(value) -> str:
    if value is None:
        return "—"
    if isinstance(value, str):
        return value
    return getattr(value, "full_name", None) or getattr(value, "name", None) or value.id or "—"


@app.command()
def config(
    json_output: bool = typer.Option(False, "--json", help="Output settings as JSON"),
) -> None:
    """Display the resolved settings."""
    settings = get_settings()
    if json_output:
        typer.echo(settings.model_dump_json(indent=2))
        return
    table = Table(title="scijournal settings")
    table.add_column("Key")
    table.add_column("Value", overflow="fold")
    for key, value in settings.model_dump().items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def login(token: str = typer.Option(..., prompt=True, hide_input=True, help="Bearer token")) -> None:
    """Store the API token used by every request."""

    async def runner() -> None:
        settings = get_settings()
        storage = LocalStorage(settings)
        await storage.set_item(TOKEN_KEY, token)

    asyncio.run(runner())
    console.print("[green]Token saved.[/green]")


@app.command()
def logout() -> None:
    """Forget the stored API token."""

    async def runner() -> None:
        settings = get_settings()
        await LocalStorage(settings).remove_item(TOKEN_KEY)

    asyncio.run(runner())
    console.print("Token removed.")


@articles_app.command("list")
def list_articles(
    status: Optional[ArticleStatus] = typer.Option(None, help="Filter by status"),
    search: Optional[str] = typer.Option(None, help="Free-text search"),
    field: Optional[str] = typer.Option(None, help="Research field id"),
    page: int = typer.Option(1, min=1),
    limit: int = typer.Option(10, min=1),
) -> None:
    """List articles one page at a time."""

    async def runner() -> bool:
        async with _session() as session:
            query = ArticleQuery(page=page, limit=limit, status=status, field=field, search=search)
            result = await session.articles.list(query)
            if not result.ok:
                return False
            if not result.value:
                console.print("[yellow]No articles matched.")
                return True
            pagination = session.articles.pagination
            table = Table(title=f"Articles (page {pagination.page}/{max(pagination.pages, 1)}, {pagination.total} total)")
            table.add_column("ID")
            table.add_column("Title")
            table.add_column("Status")
            table.add_column("Field")
            for article in result.value:
                table.add_row(article.id, article.title, article.status.value, _name(article.field))
            console.print(table)
            return True

    if not asyncio.run(runner()):
        raise typer.Exit(code=1)


def _print_article(article: Article) -> None:
    table = Table(title=article.title, show_header=False)
    table.add_column("Key")
    table.add_column("Value", overflow="fold")
    table.add_row("ID", article.id)
    table.add_row("Status", article.status.value)
    table.add_row("Next", ", ".join(item.value for item in next_statuses(article.status)) or "—")
    table.add_row("Field", _name(article.field))
    table.add_row("Keywords", ", ".join(article.keywords) or "—")
    table.add_row("Authors", ", ".join(_name(author) for author in article.authors) or "—")
    table.add_row("Editor", _name(article.editor_id))
    table.add_row("DOI", article.doi or "—")
    console.print(table)
    if article.history:
        history = Table(title="Status history")
        history.add_column("When")
        history.add_column("Status")
        history.add_column("Reason", overflow="fold")
        for entry in article.history:
            history.add_row(
                entry.timestamp.isoformat() if entry.timestamp else "—",
                entry.status.value,
                entry.reason or "",
            )
        console.print(history)


@articles_app.command("show")
def show_article(article_id: str = typer.Argument(..., help="Article id")) -> None:
    """Show one article with its status history."""

    async def runner() -> bool:
        async with _session() as session:
            result = await session.articles.get_by_id(article_id)
            if result.ok:
                _print_article(result.value)
            return result.ok

    if not asyncio.run(runner()):
        raise typer.Exit(code=1)


@articles_app.command("status")
def change_status(
    article_id: str = typer.Argument(..., help="Article id"),
    status: ArticleStatus = typer.Argument(..., help="New status"),
    reason: str = typer.Option("", help="Reason recorded in the status history"),
) -> None:
    """Request a status transition."""

    async def runner() -> bool:
        async with _session() as session:
            result = await session.articles.change_status(article_id, status, reason)
            return result.ok

    if not asyncio.run(runner()):
        raise typer.Exit(code=1)


@articles_app.command("publish")
def publish(
    article_id: str = typer.Argument(..., help="Article id"),
    doi: Optional[str] = typer.Option(None, help="DOI to assign"),
    issue: Optional[str] = typer.Option(None, help="Issue id"),
    page_start: Optional[int] = typer.Option(None, help="First page"),
    page_end: Optional[int] = typer.Option(None, help="Last page"),
) -> None:
    """Publish an accepted article."""

    async def runner() -> bool:
        async with _session() as session:
            details = PublishDetails(doi=doi, issue_id=issue, page_start=page_start, page_end=page_end)
            result = await session.articles.publish(article_id, details)
            return result.ok

    if not asyncio.run(runner()):
        raise typer.Exit(code=1)


@articles_app.command("assign-editor")
def assign_editor(
    article_id: str = typer.Argument(..., help="Article id"),
    editor_id: str = typer.Argument(..., help="Editor user id"),
) -> None:
    """Assign the handling editor."""

    async def runner() -> bool:
        async with _session() as session:
            result = await session.articles.assign_editor(article_id, editor_id)
            return result.ok

    if not asyncio.run(runner()):
        raise typer.Exit(code=1)


@articles_app.command("delete")
def delete_article(
    article_id: str = typer.Argument(..., help="Article id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete an article permanently."""
    if not yes:
        typer.confirm(f"Delete article {article_id}? This cannot be undone.", abort=True)

    async def runner() -> bool:
        async with _session() as session:
            result = await session.articles.delete(article_id)
            return result.ok

    if not asyncio.run(runner()):
        raise typer.Exit(code=1)


def _parse_author(value: str) -> AuthorInput:
    match = AUTHOR_PATTERN.match(value)
    if not match:
        raise typer.BadParameter(f"Expected 'Full Name <email>', got {value!r}")
    return AuthorInput(full_name=match.group("name"), email=match.group("email"))


@app.command()
def submit(
    title: str = typer.Option(..., help="Article title"),
    abstract: str = typer.Option(..., help="Abstract text"),
    keywords: str = typer.Option(..., help="Comma separated keywords"),
    field: str = typer.Option(..., help="Primary research field id"),
    manuscript: Path = typer.Option(..., exists=True, dir_okay=False, help="Manuscript (.pdf, .doc, .docx)"),
    author: list[str] = typer.Option(..., "--author", "-a", help="Author as 'Full Name <email>'"),
    secondary_field: Optional[list[str]] = typer.Option(None, "--secondary-field", help="Secondary field id"),
    thumbnail: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Thumbnail image"),
    language: str = typer.Option("vi", help="Article language"),
    note: str = typer.Option("", help="Note to the editors"),
    session_id: Optional[str] = typer.Option(None, "--session", help="Draft session id"),
) -> None:
    """Submit a new article: upload files, create the record, register the manuscript."""
    authors = [_parse_author(item) for item in author]

    async def runner() -> bool:
        async with _session() as session:
            drafts = DraftKeeper(
                session.storage,
                session_id=session_id,
                interval=session.settings.autosave_interval,
            )
            workflow = SubmissionWorkflow(
                session.articles,
                session.files,
                session.uploader,
                session.notifier,
                authors=session.authors,
                drafts=drafts,
                attachment_extensions=tuple(session.settings.attachment_extensions),
            )
            form = workflow.form
            form.title = title
            form.abstract = abstract
            form.keywords = keywords
            form.article_language = language
            form.submitter_note = note
            workflow.set_primary_field(field)
            for item in secondary_field or []:
                workflow.add_secondary_field(item)
            for item in authors:
                await workflow.add_author(item)
            if thumbnail is not None:
                workflow.select_thumbnail(LocalFile.from_path(thumbnail))
            workflow.select_manuscript(LocalFile.from_path(manuscript))
            if workflow.form_errors:
                for key, message in workflow.form_errors.items():
                    console.print(f"[red]{key}:[/red] {message}")
                await drafts.save()
                return False

            outcome = await workflow.submit()
            if not outcome.ok:
                if outcome.failed_step == "validation":
                    for key, message in workflow.form_errors.items():
                        console.print(f"[red]{key}:[/red] {message}")
                await drafts.save()
                console.print(f"[yellow]Draft kept under {drafts.key}.")
                return False
            logger.info("cli.submitted", article_id=outcome.article_id)
            console.print(f"[green]Submitted[/green] article {outcome.article_id}")
            return True

    if not asyncio.run(runner()):
        raise typer.Exit(code=1)


@draft_app.command("show")
def show_draft(
    article_id: Optional[str] = typer.Option(None, "--article", help="Draft of an existing article"),
    session_id: Optional[str] = typer.Option(None, "--session", help="Draft session id"),
) -> None:
    """Print a saved draft."""

    async def runner() -> None:
        settings = get_settings()
        keeper = DraftKeeper(LocalStorage(settings), article_id=article_id, session_id=session_id)
        if not await keeper.restore():
            console.print(f"[yellow]No draft saved under {keeper.key}.")
            return
        form = keeper.form
        table = Table(title=f"Draft {keeper.key}", show_header=False)
        table.add_column("Key")
        table.add_column("Value", overflow="fold")
        table.add_row("Saved at", keeper.last_saved_at or "—")
        table.add_row("Title", form.title or "—")
        table.add_row("Abstract", form.abstract or "—")
        table.add_row("Keywords", form.keywords or "—")
        table.add_row("Language", form.article_language)
        table.add_row("Authors", ", ".join(f"{a.full_name} <{a.email}>" for a in form.authors) or "—")
        console.print(table)

    asyncio.run(runner())


@draft_app.command("clear")
def clear_draft(
    article_id: Optional[str] = typer.Option(None, "--article", help="Draft of an existing article"),
    session_id: Optional[str] = typer.Option(None, "--session", help="Draft session id"),
) -> None:
    """Delete a saved draft."""

    async def runner() -> str:
        settings = get_settings()
        keeper = DraftKeeper(LocalStorage(settings), article_id=article_id, session_id=session_id)
        await keeper.clear()
        return keeper.key

    key = asyncio.run(runner())
    console.print(f"Cleared draft {key}.")


if __name__ == "__main__":
    app()
