"""Compare a local branch with its upstream after refreshing remote refs."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from git import Repo

from .operations import execute_git_operation, fetch, latest_incoming_author
from .utils import GitOperationResult, create_git_result


@dataclass
class RemoteStatus:
    """How far a repository lags its upstream, as of one poll."""
    repository_path: Path
    commits_behind: int
    last_polled_at: datetime
    latest_author: Optional[str] = None


def count_commits_behind(git_repo_dir: Path) -> GitOperationResult:
    """Number of upstream commits missing locally; fails when no upstream is set."""
    def _count() -> int:
        return int(Repo(git_repo_dir).git.rev_list("--count", "HEAD..@{u}"))
    return execute_git_operation(_count, "count commits behind upstream", git_repo_dir)


def check_remote_status(git_repo_dir: Path) -> GitOperationResult:
    """
    Fetch, then measure divergence from the upstream branch.

    No timeout is applied to the fetch; an unresponsive remote blocks
    until the underlying git process returns.

    Returns:
        GitOperationResult whose value is a RemoteStatus on success
    """
    logger = logging.getLogger('githelper.git.remote_status')

    fetch_result = fetch(git_repo_dir)
    if not fetch_result.success:
        return fetch_result

    behind_result = count_commits_behind(git_repo_dir)
    if not behind_result.success:
        return behind_result

    status = RemoteStatus(
        repository_path=Path(git_repo_dir),
        commits_behind=behind_result.value,
        last_polled_at=datetime.now()
    )

    if status.commits_behind > 0:
        author_result = latest_incoming_author(git_repo_dir)
        # The author is decoration for the notification; a failure here is not fatal
        if author_result.success:
            status.latest_author = author_result.value or None
        else:
            logger.debug(f"Could not read incoming author for {git_repo_dir}: {author_result.message}")

    logger.debug(f"{git_repo_dir}: {status.commits_behind} commit(s) behind upstream")
    return create_git_result(
        success=True,
        message=f"{status.commits_behind} commit(s) behind upstream",
        operation="remote status",
        value=status
    )
