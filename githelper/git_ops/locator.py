"""Repository discovery within a workspace directory tree."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterator, List, Optional, Tuple

from ..config import Config

logger = logging.getLogger('githelper.git.locator')

METADATA_DIR = ".git"


@dataclass(frozen=True)
class RepositoryCandidate:
    """A directory found by a scan."""
    display_name: str
    absolute_path: Path
    has_version_control_metadata: bool


@dataclass(frozen=True)
class ScanBounds:
    """Limits applied to a directory scan."""
    max_depth: int
    excluded_names: FrozenSet[str]


def scan_bounds_from_config(config: Config, max_depth: Optional[int] = None) -> ScanBounds:
    """Build scan bounds from configuration, optionally overriding the depth."""
    depth = config.scan_max_depth if max_depth is None else max_depth
    return ScanBounds(max_depth=depth, excluded_names=frozenset(config.excluded_dirs) | {METADATA_DIR})


def has_metadata(path: Path) -> bool:
    """
    A .git directory, or a .git file for worktrees and submodules.

    Raises:
        OSError: path cannot be searched (permission denied, link loop)
    """
    try:
        (path / METADATA_DIR).stat()
    except (FileNotFoundError, NotADirectoryError):
        return False
    return True


def _display_name(root: Path, path: Path) -> str:
    if path == root:
        return root.name or str(root)
    return path.relative_to(root).as_posix()


def _child_directories(path: Path, excluded: FrozenSet[str]) -> List[Path]:
    try:
        with os.scandir(path) as entries:
            children = [
                Path(entry.path) for entry in entries
                if entry.name not in excluded and entry.is_dir()
            ]
    except OSError as e:
        # Unreadable directories are skipped; siblings are still visited
        logger.debug(f"Skipping unreadable directory {path}: {e}")
        return []
    return sorted(children, key=lambda p: p.name)


def _walk(root: Path, bounds: ScanBounds) -> Iterator[Tuple[Path, int, bool]]:
    """
    Depth-first walk over (directory, depth, has_metadata).

    Directories holding metadata are yielded but never descended into.
    Symlinked directories are followed; the depth bound is the only
    protection against link cycles.
    """
    stack: List[Tuple[Path, int]] = [(root, 0)]
    while stack:
        path, depth = stack.pop()
        try:
            is_repo = has_metadata(path)
        except OSError as e:
            logger.debug(f"Skipping unreadable directory {path}: {e}")
            continue
        yield path, depth, is_repo
        if is_repo or depth >= bounds.max_depth:
            continue
        children = _child_directories(path, bounds.excluded_names)
        # Reversed so the first child in name order is popped first
        stack.extend((child, depth + 1) for child in reversed(children))


def find_repositories(root: Path, bounds: ScanBounds) -> Iterator[RepositoryCandidate]:
    """
    Yield directories under root that are repository roots.

    Nested repositories are never reported: once a directory holding
    metadata is found, the scan does not descend into it.

    Args:
        root: Workspace directory to scan
        bounds: Depth limit and excluded directory names

    Yields:
        RepositoryCandidate for each repository root, depth-first
    """
    root = Path(root).resolve()
    for path, _depth, is_repo in _walk(root, bounds):
        if is_repo:
            yield RepositoryCandidate(
                display_name=_display_name(root, path),
                absolute_path=path,
                has_version_control_metadata=True
            )


def find_publishable_directories(root: Path, bounds: ScanBounds) -> Iterator[RepositoryCandidate]:
    """
    Yield directories under root that are not yet repositories.

    Unlike find_repositories, descent continues beneath every candidate,
    since a deeper folder may be published on its own.
    """
    root = Path(root).resolve()
    for path, _depth, is_repo in _walk(root, bounds):
        if not is_repo:
            yield RepositoryCandidate(
                display_name=_display_name(root, path),
                absolute_path=path,
                has_version_control_metadata=False
            )
