"""Helpers for a project's .gitignore file."""

import logging
from pathlib import Path
from typing import Iterable, List

import pathspec

logger = logging.getLogger('githelper.ignore')

IGNORE_FILE = ".gitignore"


def load_ignore_spec(project_dir: Path) -> pathspec.GitIgnoreSpec:
    """Parse the project's .gitignore; a missing file matches nothing."""
    ignore_path = Path(project_dir) / IGNORE_FILE
    lines: List[str] = []
    if ignore_path.is_file():
        lines = ignore_path.read_text(encoding="utf-8").splitlines()
    return pathspec.GitIgnoreSpec.from_lines(lines)


def list_ignore_candidates(project_dir: Path) -> List[str]:
    """Top-level entries not yet ignored; directories carry a trailing slash."""
    project_dir = Path(project_dir)
    spec = load_ignore_spec(project_dir)

    candidates = []
    for entry in sorted(project_dir.iterdir(), key=lambda p: p.name):
        if entry.name in (".git", IGNORE_FILE):
            continue
        name = f"{entry.name}/" if entry.is_dir() else entry.name
        if spec.match_file(name):
            continue
        candidates.append(name)
    return candidates


def append_ignore_patterns(project_dir: Path, patterns: Iterable[str]) -> Path:
    """
    Append patterns to .gitignore, creating it if missing.

    An existing file gets a blank separator line before the new patterns.
    Each pattern is written on its own newline-terminated line.

    Args:
        project_dir: Repository root holding the ignore file
        patterns: Patterns to append, in order

    Returns:
        Path of the ignore file
    """
    ignore_path = Path(project_dir) / IGNORE_FILE
    patterns = [p.strip() for p in patterns if p and p.strip()]
    if not patterns:
        return ignore_path

    block = "\n".join(patterns) + "\n"
    if ignore_path.exists():
        content = ignore_path.read_text(encoding="utf-8")
        if content and not content.endswith("\n"):
            content += "\n"
        content += "\n" + block
        ignore_path.write_text(content, encoding="utf-8")
        logger.info(f"Added {len(patterns)} pattern(s) to {ignore_path}")
    else:
        ignore_path.write_text(block, encoding="utf-8")
        logger.info(f"Created {ignore_path} with {len(patterns)} pattern(s)")
    return ignore_path
