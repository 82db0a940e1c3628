"""Result type shared by all git operations."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class GitOperationResult:
    """Result of a single git operation."""
    success: bool
    message: str
    operation: str
    error_code: Optional[str] = None
    value: Any = None


def create_git_result(
    success: bool,
    message: str,
    operation: str,
    error_code: Optional[str] = None,
    value: Any = None
) -> GitOperationResult:
    """
    Helper function to create GitOperationResult instances.

    Args:
        success: Whether the operation was successful
        message: Descriptive message about the operation result
        operation: Name of the operation that was performed
        error_code: Optional error code for failed operations
        value: Optional payload produced by the operation

    Returns:
        GitOperationResult instance with all fields populated
    """
    return GitOperationResult(
        success=success,
        message=message,
        operation=operation,
        error_code=error_code,
        value=value
    )
