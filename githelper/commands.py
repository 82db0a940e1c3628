"""User-facing commands.

Each command is a short sequential script: pick a repository, call git or
the AI service, report the outcome. Cancelling any prompt ends the command
quietly. Failed external calls are reported as a one-line error and never
retried.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .ai import CommitMessageCandidate, CommitMessageGenerator
from .config import Config
from .errors import ExternalCallError, MissingCredentialError, error_handler
from .git_ops.locator import (
    RepositoryCandidate,
    find_publishable_directories,
    find_repositories,
    scan_bounds_from_config
)
from .git_ops.operations import (
    add_remote,
    clone_repository as git_clone,
    commit,
    get_commit_log,
    get_staged_diff,
    get_status,
    initialize_repository,
    push,
    set_branch_name,
    stage_all
)
from .git_ops.utils import GitOperationResult
from .ignore import append_ignore_patterns, list_ignore_candidates
from .keystore import API_KEY_NAME, SecretStore, resolve_api_key
from .ui import UserInterface
from .webview import DASHBOARD_ACTIONS, render_dashboard_html, render_graph_html

logger = logging.getLogger('githelper.commands')

SET_KEY_ACTION = "Set API Key"


@dataclass
class CommandContext:
    """Everything a command needs; built once per process."""
    config: Config
    ui: UserInterface
    secrets: SecretStore
    generator_factory: Callable[[Config, str], CommitMessageGenerator] = CommitMessageGenerator

    @property
    def workspace(self) -> Path:
        return self.config.workspace_dir


def _report(ctx: CommandContext, result: GitOperationResult, path: Path) -> None:
    error_handler.handle_git_error(result.message, result.error_code, {"repository_path": str(path)})
    ctx.ui.error(result.message)


def select_repository(ctx: CommandContext, publishable: bool = False) -> Optional[RepositoryCandidate]:
    """
    Scan the workspace and let the user choose a candidate.

    A single candidate is used without asking. An empty scan is reported
    as information, not as an error.
    """
    bounds = scan_bounds_from_config(ctx.config)
    finder = find_publishable_directories if publishable else find_repositories
    candidates = list(finder(ctx.workspace, bounds))

    if not candidates:
        ctx.ui.info("No folders to publish" if publishable else "No repositories found")
        return None
    if len(candidates) == 1:
        return candidates[0]

    labels = [candidate.display_name for candidate in candidates]
    choice = ctx.ui.pick_one(labels, "Select a folder to publish" if publishable else "Select a repository")
    if choice is None:
        return None
    return candidates[labels.index(choice)]


def publish_repository(ctx: CommandContext) -> bool:
    """Initialize a folder, commit everything and push it to a new remote as main."""
    target = select_repository(ctx, publishable=True)
    if target is None:
        return False

    remote_url = ctx.ui.ask_text("Paste the link to your empty remote repository", placeholder="Enter remote URL")
    if not remote_url:
        return False

    path = target.absolute_path
    steps = [
        lambda: initialize_repository(path),
        lambda: add_remote(path, remote_url),
        lambda: stage_all(path),
        lambda: commit(path, "Initial commit"),
        lambda: set_branch_name(path, "main"),
        lambda: push(path, "origin", "main", set_upstream=True),
    ]
    with ctx.ui.progress("Publishing..."):
        for step in steps:
            result = step()
            if not result.success:
                break
    if not result.success:
        _report(ctx, result, path)
        return False

    logger.info(f"Published {path} to {remote_url}")
    ctx.ui.info("Repo published!")
    return True


def repository_name_from_url(url: str) -> str:
    """'git@host:user/repo.git' -> 'repo'."""
    name = url.strip().rstrip("/")
    name = name.rsplit("/", 1)[-1].rsplit(":", 1)[-1]
    if name.endswith(".git"):
        name = name[:-len(".git")]
    return name or "repository"


def clone_repository(ctx: CommandContext) -> Optional[Path]:
    """Clone a URL into a subfolder of a chosen destination."""
    url = ctx.ui.ask_text("Git repository URL", placeholder="https://github.com/user/repo.git")
    if not url:
        return None
    destination_root = ctx.ui.ask_folder("Select destination folder")
    if destination_root is None:
        return None

    destination = Path(destination_root) / repository_name_from_url(url)
    with ctx.ui.progress("Cloning..."):
        result = git_clone(url, destination)
    if not result.success:
        _report(ctx, result, destination)
        return None

    logger.info(f"Cloned {url} into {destination}")
    if ctx.ui.notify("Cloned. Open?", ["Yes", "No"]) == "Yes":
        ctx.ui.open_folder(destination)
    return destination


def ai_commit(ctx: CommandContext) -> Optional[CommitMessageCandidate]:
    """Stage everything, ask the model for messages, commit the chosen one and push."""
    target = select_repository(ctx)
    if target is None:
        return None

    try:
        api_key = resolve_api_key(ctx.secrets, ctx.config)
    except MissingCredentialError as e:
        error_handler.handle_ai_error(e)
        if ctx.ui.error(str(e), e.actions) == SET_KEY_ACTION:
            set_api_key(ctx)
        return None

    path = target.absolute_path
    status = get_status(path)
    if not status.success:
        _report(ctx, status, path)
        return None
    if status.value.changed_files == 0:
        ctx.ui.info("No changes to commit.")
        return None

    staged = stage_all(path)
    if not staged.success:
        _report(ctx, staged, path)
        return None
    diff = get_staged_diff(path)
    if not diff.success:
        _report(ctx, diff, path)
        return None
    if not diff.value:
        return None

    try:
        with ctx.ui.progress("AI generating options..."):
            candidates = ctx.generator_factory(ctx.config, api_key).suggest(diff.value)
    except ExternalCallError as e:
        error_handler.handle_ai_error(e, {"repository_path": str(path)})
        ctx.ui.error(str(e))
        return None

    labels = [candidate.label for candidate in candidates]
    choice = ctx.ui.pick_one(labels, "Select commit message")
    if choice is None:
        return None
    selected = candidates[labels.index(choice)]

    for result in (commit(path, selected.message), push(path)):
        if not result.success:
            _report(ctx, result, path)
            return None

    ctx.ui.info(f"Committed & Pushed: {selected.subject}")
    return selected


def show_graph(ctx: CommandContext) -> Optional[str]:
    """Render the commit log of a repository and show it."""
    target = select_repository(ctx)
    if target is None:
        return None

    result = get_commit_log(target.absolute_path)
    if not result.success:
        _report(ctx, result, target.absolute_path)
        return None

    html = render_graph_html(result.value)
    ctx.ui.show_html(f"Git Graph - {target.display_name}", html)
    return html


def ignore_files(ctx: CommandContext) -> List[str]:
    """Let the user pick top-level entries and append them to .gitignore."""
    target = select_repository(ctx)
    if target is None:
        return []

    path = target.absolute_path
    try:
        candidates = list_ignore_candidates(path)
        if not candidates:
            ctx.ui.info("Nothing left to ignore")
            return []
        selection = ctx.ui.pick_many(candidates, "Select files and folders to ignore")
        if not selection:
            return []
        append_ignore_patterns(path, selection)
    except OSError as e:
        response = error_handler.handle_file_io_error(e, {"file_path": str(path / ".gitignore")})
        ctx.ui.error(response.message)
        return []

    ctx.ui.info(f"Added {len(selection)} entr{'y' if len(selection) == 1 else 'ies'} to .gitignore")
    return selection


def set_api_key(ctx: CommandContext) -> bool:
    key = ctx.ui.ask_secret("Enter your AI API key")
    if not key:
        return False
    ctx.secrets.set(API_KEY_NAME, key)
    ctx.ui.info("API key saved.")
    return True


def clear_api_key(ctx: CommandContext) -> bool:
    ctx.secrets.delete(API_KEY_NAME)
    ctx.ui.info("API key removed.")
    return True


DASHBOARD_COMMANDS: Dict[str, Callable[[CommandContext], Any]] = {
    "publish": publish_repository,
    "clone": clone_repository,
    "commit": ai_commit,
    "graph": show_graph,
    "ignore": ignore_files,
    "set-key": set_api_key,
}


def handle_dashboard_message(ctx: CommandContext, message: Dict[str, Any]) -> Any:
    """Relay a click from the dashboard ({"command": name}) to its command."""
    name = message.get("command")
    handler = DASHBOARD_COMMANDS.get(name)
    if handler is None:
        logger.warning(f"Ignoring unknown dashboard command: {name!r}")
        return None
    logger.debug(f"Dashboard triggered {name}")
    return handler(ctx)


def open_dashboard(ctx: CommandContext) -> Any:
    """Show the dashboard, then run the action the user picks."""
    ctx.ui.show_html("Git Helper Dashboard", render_dashboard_html())
    titles = {DASHBOARD_ACTIONS[name][1]: name for name in DASHBOARD_COMMANDS}
    choice = ctx.ui.pick_one(list(titles), "What would you like to do?")
    if choice is None:
        return None
    return handle_dashboard_message(ctx, {"command": titles[choice]})
