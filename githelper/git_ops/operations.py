"""Git command operations using GitPython.

Every operation returns a GitOperationResult instead of raising, so callers
decide explicitly whether a failure is shown to the user or discarded.
Operations are never retried.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Any, List, Optional

from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .utils import GitOperationResult, create_git_result

# Unit and record separators keep log fields unambiguous
FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"
LOG_FORMAT = f"%H{FIELD_SEP}%an{FIELD_SEP}%aI{FIELD_SEP}%s{RECORD_SEP}"


@dataclass
class RepositoryStatus:
    """Working tree and upstream summary."""
    branch: Optional[str]
    ahead: int
    behind: int
    changed_files: int


@dataclass
class CommitLogEntry:
    """One commit from a log query."""
    hash: str
    author_name: str
    date: datetime
    message: str

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


def execute_git_operation(
    operation_func: Callable[[], Any],
    operation: str,
    git_repo_dir: Path
) -> GitOperationResult:
    """
    Execute a GitPython operation and wrap the outcome.

    Args:
        operation_func: Function that executes the GitPython operation
        operation: Description of the operation for logging
        git_repo_dir: Repository directory the operation runs against

    Returns:
        GitOperationResult carrying the function's return value on success
    """
    logger = logging.getLogger('githelper.git')

    try:
        logger.debug(f"Executing Git operation in {git_repo_dir}: {operation}")
        value = operation_func()
        return create_git_result(
            success=True,
            message=f"{operation} completed successfully",
            operation=operation,
            value=value
        )

    except GitCommandError as e:
        detail = (e.stderr or "").strip() or str(e)
        # "stderr: 'fatal: ...'" -> "fatal: ..."
        if detail.startswith("stderr:"):
            detail = detail[len("stderr:"):].strip().strip("'")
        logger.warning(f"{operation} failed in {git_repo_dir}: {detail}")
        return create_git_result(
            success=False,
            message=f"{operation} failed: {detail}",
            operation=operation,
            error_code="GIT_COMMAND_FAILED"
        )

    except InvalidGitRepositoryError:
        logger.warning(f"{operation} failed: {git_repo_dir} is not a git repository")
        return create_git_result(
            success=False,
            message=f"{operation} failed: {git_repo_dir} is not a git repository",
            operation=operation,
            error_code="INVALID_GIT_REPOSITORY"
        )

    except NoSuchPathError:
        logger.warning(f"{operation} failed: {git_repo_dir} does not exist")
        return create_git_result(
            success=False,
            message=f"{operation} failed: {git_repo_dir} does not exist",
            operation=operation,
            error_code="NO_SUCH_PATH"
        )

    except (ValueError, OSError) as e:
        logger.error(f"Unexpected error during {operation}: {e}", exc_info=True)
        return create_git_result(
            success=False,
            message=f"{operation} failed: {e}",
            operation=operation,
            error_code="GIT_UNEXPECTED_ERROR"
        )


def initialize_repository(git_repo_dir: Path) -> GitOperationResult:
    """Run git init in the directory."""
    return execute_git_operation(lambda: Repo.init(git_repo_dir), "initialize repository", git_repo_dir)


def add_remote(git_repo_dir: Path, url: str, name: str = "origin") -> GitOperationResult:
    """Register a remote under the given name."""
    def _add():
        Repo(git_repo_dir).create_remote(name, url)
        return name
    return execute_git_operation(_add, f"add remote {name}", git_repo_dir)


def stage_all(git_repo_dir: Path) -> GitOperationResult:
    """Stage every change, including deletions."""
    return execute_git_operation(lambda: Repo(git_repo_dir).git.add(A=True), "stage changes", git_repo_dir)


def commit(git_repo_dir: Path, message: str) -> GitOperationResult:
    """Commit the index with the given message."""
    return execute_git_operation(lambda: Repo(git_repo_dir).git.commit("-m", message), "commit", git_repo_dir)


def set_branch_name(git_repo_dir: Path, name: str) -> GitOperationResult:
    """Rename the current branch (git branch -M)."""
    return execute_git_operation(
        lambda: Repo(git_repo_dir).git.branch("-M", name),
        f"rename branch to {name}",
        git_repo_dir
    )


def push(git_repo_dir: Path, remote: Optional[str] = None, branch: Optional[str] = None,
         set_upstream: bool = False) -> GitOperationResult:
    """Push the current branch, optionally recording the upstream."""
    args: List[str] = []
    if set_upstream:
        args.append("-u")
    if remote:
        args.append(remote)
        if branch:
            args.append(branch)
    return execute_git_operation(lambda: Repo(git_repo_dir).git.push(*args), "push", git_repo_dir)


def pull(git_repo_dir: Path) -> GitOperationResult:
    """Pull from the configured upstream."""
    return execute_git_operation(lambda: Repo(git_repo_dir).git.pull(), "pull", git_repo_dir)


def fetch(git_repo_dir: Path) -> GitOperationResult:
    """Refresh remote-tracking refs."""
    return execute_git_operation(lambda: Repo(git_repo_dir).git.fetch(), "fetch", git_repo_dir)


def clone_repository(url: str, destination: Path) -> GitOperationResult:
    """Clone url into destination, which must be empty or absent."""
    def _clone():
        Repo.clone_from(url, str(destination))
        return destination
    return execute_git_operation(_clone, f"clone {url}", destination)


def get_status(git_repo_dir: Path) -> GitOperationResult:
    """Summarize the branch, upstream divergence and changed files."""
    def _status() -> RepositoryStatus:
        repo = Repo(git_repo_dir)
        changed = [line for line in repo.git.status("--porcelain").splitlines() if line.strip()]

        branch = None
        ahead = behind = 0
        if not repo.head.is_detached:
            head = repo.active_branch
            branch = head.name
            if head.tracking_branch() is not None:
                counts = repo.git.rev_list("--left-right", "--count", "HEAD...@{u}")
                ahead, behind = (int(n) for n in counts.split())

        return RepositoryStatus(branch=branch, ahead=ahead, behind=behind, changed_files=len(changed))

    return execute_git_operation(_status, "status", git_repo_dir)


def get_staged_diff(git_repo_dir: Path) -> GitOperationResult:
    """Return the diff of staged changes as text."""
    return execute_git_operation(lambda: Repo(git_repo_dir).git.diff("--staged"), "diff staged", git_repo_dir)


def raw_log(git_repo_dir: Path, revision_range: str, pretty_format: str,
            max_count: Optional[int] = None) -> GitOperationResult:
    """Run git log over a revision range with a --pretty=format string."""
    args = [revision_range, f"--pretty=format:{pretty_format}"]
    if max_count is not None:
        args.append(f"--max-count={max_count}")
    return execute_git_operation(lambda: Repo(git_repo_dir).git.log(*args), "log", git_repo_dir)


def latest_incoming_author(git_repo_dir: Path) -> GitOperationResult:
    """Author name of the newest commit on the upstream not yet merged locally."""
    result = raw_log(git_repo_dir, "HEAD..@{u}", "%an", max_count=1)
    if result.success:
        result.value = (result.value or "").strip()
    return result


def parse_commit_log(output: str) -> List[CommitLogEntry]:
    """Parse output produced with LOG_FORMAT."""
    entries = []
    for record in output.split(RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        fields = record.split(FIELD_SEP)
        if len(fields) != 4:
            continue
        commit_hash, author, date, message = fields
        entries.append(CommitLogEntry(
            hash=commit_hash,
            author_name=author,
            date=datetime.fromisoformat(date),
            message=message
        ))
    return entries


def get_commit_log(git_repo_dir: Path, max_count: int = 500) -> GitOperationResult:
    """Commits reachable from any ref, newest first."""
    def _log() -> List[CommitLogEntry]:
        output = Repo(git_repo_dir).git.log("--all", f"--pretty=format:{LOG_FORMAT}", f"--max-count={max_count}")
        return parse_commit_log(output)
    return execute_git_operation(_log, "log", git_repo_dir)
