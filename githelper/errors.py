"""Error handling framework for githelper."""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional, Sequence


class ErrorCategory(Enum):
    """Categories of errors for structured error handling."""
    MISSING_CREDENTIAL = "missing_credential"
    EXTERNAL_CALL = "external_call"
    CONFIGURATION = "configuration"
    FILE_IO = "file_io"


class GitHelperError(Exception):
    """Base class for errors raised by githelper."""
    category = ErrorCategory.EXTERNAL_CALL


class MissingCredentialError(GitHelperError):
    """No usable API key is configured."""
    category = ErrorCategory.MISSING_CREDENTIAL

    def __init__(self, message: str = "API key missing. Set one with the set-key command.",
                 actions: Sequence[str] = ("Set API Key",)):
        super().__init__(message)
        self.actions = tuple(actions)


class ExternalCallError(GitHelperError):
    """A call to git or the generative-text service failed."""
    category = ErrorCategory.EXTERNAL_CALL

    def __init__(self, message: str, operation: str = "", error_code: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.error_code = error_code


@dataclass
class ErrorResponse:
    """Standardized error response format for tool results."""
    error: str
    error_code: str
    message: str
    timestamp: str
    category: str
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert error response to dictionary format."""
        result = {
            "error": self.error,
            "error_code": self.error_code,
            "message": self.message,
            "timestamp": self.timestamp,
            "category": self.category
        }
        if self.context:
            result["context"] = self.context
        return result


class ErrorHandler:
    """Turns exceptions and failed results into ErrorResponse objects."""

    def __init__(self):
        self.logger = logging.getLogger('githelper.error_handler')

    def handle_git_error(self, message: str, error_code: Optional[str] = None,
                         context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle a failed git operation."""
        context = context or {}
        lowered = message.lower()

        if error_code:
            code = error_code
        elif "not a git repository" in lowered:
            code = "GIT_NOT_REPOSITORY"
        elif "remote" in lowered or "upstream" in lowered:
            code = "GIT_REMOTE_ERROR"
        elif "permission" in lowered or "authentication" in lowered:
            code = "GIT_PERMISSION_ERROR"
        else:
            code = "GIT_GENERAL_ERROR"

        response = ErrorResponse(
            error="Git operation failed",
            error_code=code,
            message=message,
            timestamp=datetime.now().isoformat(),
            category=ErrorCategory.EXTERNAL_CALL.value,
            context=context
        )

        self.logger.warning(
            f"Git error: {message}",
            extra={
                'operation': 'git_error',
                'error_code': code,
                'repository_path': context.get('repository_path')
            }
        )
        return response

    def handle_ai_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle a failure talking to the generative-text service."""
        context = context or {}

        if isinstance(error, MissingCredentialError):
            code = "AI_MISSING_API_KEY"
            category = ErrorCategory.MISSING_CREDENTIAL
        else:
            code = getattr(error, "error_code", None) or "AI_REQUEST_FAILED"
            category = ErrorCategory.EXTERNAL_CALL

        response = ErrorResponse(
            error="Commit message generation failed",
            error_code=code,
            message=str(error),
            timestamp=datetime.now().isoformat(),
            category=category.value,
            context=context
        )

        self.logger.error(
            f"AI error: {error}",
            extra={'operation': 'ai_error', 'error_code': code}
        )
        return response

    def handle_file_io_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle file I/O errors."""
        context = context or {}

        if isinstance(error, FileNotFoundError):
            code = "FILE_NOT_FOUND"
            message = f"File not found: {context.get('file_path', 'unknown')}"
        elif isinstance(error, PermissionError):
            code = "FILE_PERMISSION_DENIED"
            message = "Permission denied accessing file"
        else:
            code = "FILE_IO_ERROR"
            message = f"File system error: {error}"

        response = ErrorResponse(
            error="File operation failed",
            error_code=code,
            message=message,
            timestamp=datetime.now().isoformat(),
            category=ErrorCategory.FILE_IO.value,
            context=context
        )

        self.logger.error(
            f"File I/O error: {message}",
            extra={
                'operation': 'file_io_error',
                'error_code': code,
                'file_path': context.get('file_path')
            }
        )
        return response


# Initialize global error handler
error_handler = ErrorHandler()
