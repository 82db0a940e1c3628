"""Command line interface for githelper."""

import logging
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from . import commands
from .config import load_configuration
from .git_ops.locator import find_publishable_directories, find_repositories, scan_bounds_from_config
from .git_ops.poller import RemoteStatusPoller
from .keystore import SecretStore
from .server import main as serve_main, setup_logging
from .ui import ConsoleInterface

app = typer.Typer(
    help="""githelper - convenience commands on top of git

[bold blue]Setup:[/bold blue] publish, clone, ignore, set-key, clear-key
[bold green]Everyday:[/bold green] commit, graph, repos, dashboard
[bold magenta]Background:[/bold magenta] watch, serve
""",
    rich_markup_mode="rich",
    no_args_is_help=True
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"githelper version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    workspace: Optional[Path] = typer.Option(
        None, "--workspace", "-w", help="Workspace root (defaults to GITHELPER_WORKSPACE or the current directory)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    open_views: bool = typer.Option(False, "--open", help="Open rendered HTML views in the default application"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="Show version and exit"
    )
) -> None:
    """githelper - publish, clone, AI commit messages and remote sync notifications."""
    try:
        config = load_configuration(workspace)
    except ValueError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(1)
    if debug:
        config.log_level = "DEBUG"
    setup_logging(config)

    ui = ConsoleInterface(console, html_dir=config.html_dir, launch=typer.launch if open_views else None)
    ctx.obj = commands.CommandContext(config=config, ui=ui, secrets=SecretStore(config.secrets_file))


@app.command()
def dashboard(ctx: typer.Context) -> None:
    """Show the dashboard and run the chosen action."""
    commands.open_dashboard(ctx.obj)


@app.command()
def publish(ctx: typer.Context) -> None:
    """Initialize a folder and push it to an empty remote."""
    commands.publish_repository(ctx.obj)


@app.command()
def clone(ctx: typer.Context) -> None:
    """Clone a repository from a URL."""
    commands.clone_repository(ctx.obj)


@app.command()
def commit(ctx: typer.Context) -> None:
    """Generate commit messages with AI, then commit and push."""
    commands.ai_commit(ctx.obj)


@app.command()
def graph(ctx: typer.Context) -> None:
    """Render the commit log as HTML."""
    commands.show_graph(ctx.obj)


@app.command()
def ignore(ctx: typer.Context) -> None:
    """Add files and folders to .gitignore."""
    commands.ignore_files(ctx.obj)


@app.command("set-key")
def set_key(ctx: typer.Context) -> None:
    """Store the AI service API key."""
    commands.set_api_key(ctx.obj)


@app.command("clear-key")
def clear_key(ctx: typer.Context) -> None:
    """Remove the stored AI service API key."""
    commands.clear_api_key(ctx.obj)


@app.command()
def repos(
    ctx: typer.Context,
    publishable: bool = typer.Option(False, "--publishable", help="List folders that are not repositories yet"),
    depth: Optional[int] = typer.Option(None, "--depth", min=0, help="Maximum scan depth")
) -> None:
    """List repositories found in the workspace."""
    config = ctx.obj.config
    bounds = scan_bounds_from_config(config, depth)
    finder = find_publishable_directories if publishable else find_repositories

    table = Table(title=f"{'Publishable folders' if publishable else 'Repositories'} in {config.workspace_dir}")
    table.add_column("Name", style="cyan")
    table.add_column("Path")
    for candidate in finder(config.workspace_dir, bounds):
        table.add_row(candidate.display_name, str(candidate.absolute_path))

    if table.row_count == 0:
        console.print("No folders to publish" if publishable else "No repositories found")
    else:
        console.print(table)


@app.command()
def watch(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(None, "--interval", min=1, help="Seconds between checks")
) -> None:
    """Check remotes periodically and offer to pull incoming commits."""
    context = ctx.obj
    if interval is not None:
        context.config.poll_interval = interval

    poller = RemoteStatusPoller(context.config, context.ui)
    poller.start()
    console.print(f"Watching {context.config.workspace_dir} every {context.config.poll_interval:g}s (Ctrl+C to stop)")
    try:
        while poller.is_running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop()
        logging.getLogger('githelper.init').debug("Watch ended")


@app.command()
def serve(ctx: typer.Context) -> None:
    """Run the MCP server over stdio."""
    serve_main(ctx.obj.config)


if __name__ == "__main__":
    app()
