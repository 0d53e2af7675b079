"""linrelay CLI: run the relay and talk to Linear from the terminal."""

import asyncio
import logging
from typing import Annotated

import typer
import uvicorn
from rich import print as rprint
from rich.markdown import Markdown
from rich.table import Table

from linrelay.errors import ConfigurationError, TrackerError
from linrelay.models import SearchIssuesInput
from linrelay.providers.base import TrackerClient
from linrelay.render import priority_label
from linrelay.router.core import IntentRouter
from linrelay.router.profiles import PROFILES
from linrelay.server.app import create_app
from linrelay.server.context import ServerContext, build_context
from linrelay.settings import CONFIG_PATH, RelaySettings, get_settings

app = typer.Typer(help="linrelay: chat with your Linear workspace", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Router profile: product_manager or assistant"),
]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _settings() -> RelaySettings:
    try:
        return get_settings()
    except ConfigurationError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc


def _context() -> ServerContext:
    return build_context(_settings())


def _tracker(context: ServerContext) -> TrackerClient:
    api_key = context.default_api_key()
    if not api_key:
        rprint("[red]No Linear API key. Run 'linrelay connect <key>' or set LINRELAY_LINEAR_API_KEY.[/red]")
        raise typer.Exit(1)
    return context.tracker_factory(api_key)


def _run(coro):
    try:
        return asyncio.run(coro)
    except TrackerError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("serve")
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Bind port")] = None,
) -> None:
    """Run the HTTP relay."""
    settings = _settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    uvicorn.run(
        create_app(build_context(settings)),
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


@app.command("chat")
def chat(
    message: Annotated[str, typer.Argument(help="What to ask, e.g. \"what issues are assigned to me?\"")],
    profile: ProfileOpt = None,
) -> None:
    """Send one message through the intent router."""
    context = _context()
    name = profile or context.settings.router_profile
    if name not in PROFILES:
        rprint(f"[red]Unknown profile '{name}'. Valid: {', '.join(PROFILES)}[/red]")
        raise typer.Exit(1)
    tracker = _tracker(context)

    async def _chat() -> str:
        try:
            router = IntentRouter(
                tracker,
                context.model_factory(),
                PROFILES[name],
                max_tokens=context.settings.openai_max_tokens,
                follow_up_max_tokens=context.settings.openai_follow_up_max_tokens,
            )
            return await router.respond(message)
        finally:
            await tracker.aclose()

    rprint(Markdown(_run(_chat())))


@app.command("list-issues")
def list_issues(
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, max=50, help="Max issues")] = 25,
) -> None:
    """List issues assigned to me."""
    tracker = _tracker(_context())

    async def _list():
        try:
            me = await tracker.get_current_user()
            return await tracker.search_issues(SearchIssuesInput(assignee_id=me.id, limit=limit))
        finally:
            await tracker.aclose()

    table = Table(title="My Issues")
    table.add_column("ID", style="cyan")
    table.add_column("State")
    table.add_column("Pri")
    table.add_column("Title")
    table.add_column("URL", style="dim")

    for issue in _run(_list()):
        table.add_row(issue.identifier, issue.state.name, priority_label(issue.priority), issue.title, issue.url)

    rprint(table)


@app.command("list-teams")
def list_teams() -> None:
    """List teams with their workflow states."""
    tracker = _tracker(_context())

    async def _list():
        try:
            return await tracker.get_teams()
        finally:
            await tracker.aclose()

    table = Table(title="Teams")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("States")
    table.add_column("ID", style="dim")

    for t in _run(_list()):
        table.add_row(t.key, t.name, ", ".join(s.name for s in t.states) or "—", t.id)

    rprint(table)


@app.command("connect")
def connect(api_key: Annotated[str, typer.Argument(help="Linear personal API key")]) -> None:
    """Verify a Linear API key and store it as the default workspace key."""
    context = _context()
    tracker = context.tracker_factory(api_key)

    async def _verify():
        try:
            if not await tracker.test_connection():
                return None, None
            return await tracker.get_current_user(), await tracker.get_workspace_name()
        finally:
            await tracker.aclose()

    user, workspace = _run(_verify())
    if user is None:
        rprint("[red]Invalid API key or connection failed.[/red]")
        raise typer.Exit(1)

    context.credentials.set(api_key)
    rprint(f"[green]✓[/green] Connected to [bold]{workspace}[/bold] as {user.name}")
    rprint(f"  Key stored in {CONFIG_PATH}")


@app.command("disconnect")
def disconnect() -> None:
    """Forget the stored workspace key."""
    _context().credentials.clear()
    rprint(f"[green]✓[/green] Stored API key cleared from {CONFIG_PATH}")


@app.command("config-show")
def config_show() -> None:
    """Show resolved configuration (masks credentials)."""
    context = _context()
    settings = context.settings

    def mask(val: str | None, prefix: str = "") -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"{prefix}...{val[-5:]}"

    def secret(val) -> str | None:
        return val.get_secret_value() if val else None

    table = Table(title="linrelay Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("environment", settings.environment)
    table.add_row("router_profile", settings.router_profile)
    table.add_row("openai_api_key", mask(secret(settings.openai_api_key), prefix="sk-"))
    table.add_row("openai_model", settings.openai_model)
    table.add_row("linear_api_key", mask(secret(settings.linear_api_key), prefix="lin_api_"))
    table.add_row("workspace_api_key", mask(context.credentials.get(), prefix="lin_api_"))
    table.add_row("listen", f"{settings.host}:{settings.port}")
    table.add_row("allowed_origins", ", ".join(settings.allowed_origins))
    table.add_row("auth_token", mask(secret(settings.auth_token)))

    rprint(table)
