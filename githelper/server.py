"""MCP server exposing githelper's non-interactive operations."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List

from mcp.server.fastmcp import FastMCP

from .ai import CommitMessageGenerator
from .config import Config, load_configuration, validate_configuration
from .errors import ErrorCategory, ErrorResponse, GitHelperError, error_handler
from .git_ops.locator import find_publishable_directories, find_repositories, scan_bounds_from_config
from .git_ops.operations import get_commit_log, get_staged_diff
from .git_ops.remote_status import check_remote_status
from .ignore import append_ignore_patterns
from .keystore import SecretStore, resolve_api_key
from .webview import render_graph_html


def setup_logging(config: Config) -> None:
    """Setup logging configuration with structured logging."""
    class StructuredFormatter(logging.Formatter):
        def format(self, record):
            if hasattr(record, 'operation'):
                record.msg = f"[{record.operation}] {record.msg}"
            return super().format(record)

    # stdout belongs to the MCP transport, so everything goes to stderr
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr
    )

    loggers = [
        'githelper.init',
        'githelper.git',
        'githelper.poller',
        'githelper.ai',
        'githelper.commands',
        'githelper.error_handler'
    ]

    formatter = StructuredFormatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(getattr(logging, config.log_level))

        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            logger.propagate = False


def _error(error_code: str, message: str, category: ErrorCategory) -> dict:
    return ErrorResponse(
        error="Request failed",
        error_code=error_code,
        message=message,
        timestamp=datetime.now().isoformat(),
        category=category.value
    ).to_dict()


def resolve_repository(config: Config, repository: str) -> Path:
    """Resolve a repository argument relative to the workspace; it must stay inside it."""
    path = Path(repository).expanduser()
    if not path.is_absolute():
        path = config.workspace_dir / path
    path = path.resolve()
    if path != config.workspace_dir and config.workspace_dir not in path.parents:
        raise ValueError(f"Repository must be inside the workspace: {repository}")
    return path


def register_tools(server: FastMCP, server_config: Config) -> None:
    """Register MCP tools with the server instance."""
    secrets = SecretStore(server_config.secrets_file)

    @server.tool()
    def list_repositories(publishable: bool = False) -> dict:
        """
        List repositories in the workspace.

        Args:
            publishable: List folders that are not repositories yet instead

        Returns:
            Dictionary with the workspace root and the candidates found
        """
        bounds = scan_bounds_from_config(server_config)
        finder = find_publishable_directories if publishable else find_repositories
        return {
            "root": str(server_config.workspace_dir),
            "repositories": [
                {
                    "name": candidate.display_name,
                    "path": str(candidate.absolute_path),
                    "has_version_control_metadata": candidate.has_version_control_metadata
                }
                for candidate in finder(server_config.workspace_dir, bounds)
            ]
        }

    @server.tool()
    def remote_status() -> List[dict]:
        """
        Fetch every workspace repository and report how far it is behind its upstream.

        Returns:
            One entry per repository; failed checks carry an error message
        """
        bounds = scan_bounds_from_config(server_config, server_config.poll_max_depth)
        report = []
        for candidate in find_repositories(server_config.workspace_dir, bounds):
            result = check_remote_status(candidate.absolute_path)
            entry = {"name": candidate.display_name, "path": str(candidate.absolute_path), "success": result.success}
            if result.success:
                entry.update({
                    "commits_behind": result.value.commits_behind,
                    "latest_author": result.value.latest_author,
                    "last_polled_at": result.value.last_polled_at.isoformat()
                })
            else:
                entry["message"] = result.message
            report.append(entry)
        return report

    @server.tool()
    def suggest_commit_messages(repository: str) -> dict:
        """
        Suggest commit messages for the staged changes of a repository.

        Args:
            repository: Repository path, absolute or relative to the workspace

        Returns:
            Dictionary with a list of {subject, body} candidates
        """
        try:
            path = resolve_repository(server_config, repository)
        except ValueError as e:
            return _error("INVALID_REPOSITORY", str(e), ErrorCategory.CONFIGURATION)

        diff = get_staged_diff(path)
        if not diff.success:
            return error_handler.handle_git_error(diff.message, diff.error_code,
                                                  {"repository_path": str(path)}).to_dict()
        if not diff.value:
            return {"candidates": [], "message": "No staged changes"}

        try:
            api_key = resolve_api_key(secrets, server_config)
            candidates = CommitMessageGenerator(server_config, api_key).suggest(diff.value)
        except GitHelperError as e:
            return error_handler.handle_ai_error(e, {"repository_path": str(path)}).to_dict()

        return {
            "candidates": [
                {"subject": c.subject, "body": c.body, "is_fallback": c.is_fallback}
                for c in candidates
            ]
        }

    @server.tool()
    def commit_log_html(repository: str) -> dict:
        """
        Render the commit history of a repository as a static HTML page.

        Args:
            repository: Repository path, absolute or relative to the workspace
        """
        try:
            path = resolve_repository(server_config, repository)
        except ValueError as e:
            return _error("INVALID_REPOSITORY", str(e), ErrorCategory.CONFIGURATION)

        result = get_commit_log(path)
        if not result.success:
            return error_handler.handle_git_error(result.message, result.error_code,
                                                  {"repository_path": str(path)}).to_dict()
        return {"commits": len(result.value), "html": render_graph_html(result.value)}

    @server.tool()
    def add_ignore_patterns(repository: str, patterns: List[str]) -> dict:
        """
        Append patterns to a repository's .gitignore.

        Args:
            repository: Repository path, absolute or relative to the workspace
            patterns: Patterns to append, one per line
        """
        try:
            path = resolve_repository(server_config, repository)
        except ValueError as e:
            return _error("INVALID_REPOSITORY", str(e), ErrorCategory.CONFIGURATION)

        try:
            ignore_path = append_ignore_patterns(path, patterns)
        except OSError as e:
            return error_handler.handle_file_io_error(e, {"file_path": str(path / ".gitignore")}).to_dict()
        return {"file": str(ignore_path), "added": len([p for p in patterns if p and p.strip()])}

    init_logger = logging.getLogger('githelper.init')
    init_logger.info("MCP tools registered successfully")


def initialize_server(config: Config = None) -> FastMCP:
    """Initialize MCP server with stdio transport."""
    server_config = config or load_configuration()
    validation_issues = validate_configuration(server_config)

    setup_logging(server_config)
    init_logger = logging.getLogger('githelper.init')

    for issue in validation_issues:
        if issue.startswith("ERROR:"):
            init_logger.error(issue[7:])
        elif issue.startswith("WARNING:"):
            init_logger.warning(issue[9:])

    error_count = sum(1 for issue in validation_issues if issue.startswith("ERROR:"))
    if error_count > 0:
        init_logger.critical(f"Server startup failed due to {error_count} configuration error(s)")
        sys.exit(1)

    init_logger.info(f"Configuration loaded successfully (workspace: {server_config.workspace_dir})")

    server = FastMCP("githelper")
    register_tools(server, server_config)
    return server


def main(config: Config = None) -> None:
    """Run the MCP server over stdio."""
    server = initialize_server(config)
    server.run()
