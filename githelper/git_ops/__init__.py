"""Git operations, repository discovery and remote status polling for githelper."""

from .utils import GitOperationResult, create_git_result
from .locator import (
    RepositoryCandidate,
    ScanBounds,
    find_repositories,
    find_publishable_directories,
    scan_bounds_from_config
)
from .operations import CommitLogEntry, RepositoryStatus
from .remote_status import RemoteStatus, check_remote_status
from .poller import RemoteStatusPoller

__all__ = [
    'GitOperationResult',
    'create_git_result',
    'RepositoryCandidate',
    'ScanBounds',
    'find_repositories',
    'find_publishable_directories',
    'scan_bounds_from_config',
    'CommitLogEntry',
    'RepositoryStatus',
    'RemoteStatus',
    'check_remote_status',
    'RemoteStatusPoller'
]
