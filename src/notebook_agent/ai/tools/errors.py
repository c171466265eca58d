"""Standardized error types for document tools.

Tool errors carry the text that is fed back to the model, so every message
here is written to be read by the model and the user alike.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# -----------------------------------------------------------------------------
# Error Code Constants
# -----------------------------------------------------------------------------

class ErrorCode:
    """Constants for error codes used in tool results."""

    TOOL_NOT_FOUND = "tool_not_found"
    INVALID_PARAMETER = "invalid_parameter"

    # Precondition failures
    DOCUMENT_EXISTS = "document_exists"
    DOCUMENT_NOT_FOUND = "document_not_found"
    FOLDER_NOT_FOUND = "folder_not_found"

    INTERNAL_ERROR = "internal_error"


# -----------------------------------------------------------------------------
# Base Error Class
# -----------------------------------------------------------------------------

@dataclass
class ToolError(Exception):
    """Base exception class for all tool errors.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description.
        details: Additional structured error information.
        suggestion: Actionable guidance for recovery.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for logging and telemetry."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ToolNotFoundError(ToolError):
    """Raised when the model names a tool that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(
            error_code=ErrorCode.TOOL_NOT_FOUND,
            message=f"Error: Tool '{name}' not found.",
            details={"tool": name},
        )


class InvalidParameterError(ToolError):
    """Raised when tool parameters fail validation.

    ``message`` holds only the validation detail; the dispatcher prefixes it
    with the tool name the model used.
    """

    def __init__(self, message: str, *, parameter: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_PARAMETER,
            message=message,
            details={"parameter": parameter} if parameter else {},
        )


# -----------------------------------------------------------------------------
# Precondition Errors
# -----------------------------------------------------------------------------

class ToolPreconditionError(ToolError):
    """Base class for expected, non-fatal refusals against store state."""


class DocumentExistsToolError(ToolPreconditionError):
    """``create_document`` on a path that already holds a document."""

    def __init__(self, path: str) -> None:
        super().__init__(
            error_code=ErrorCode.DOCUMENT_EXISTS,
            message=f"Error: Document '{path}' already exists. Use update_document instead.",
            details={"path": path},
            suggestion="Use update_document instead",
        )


class DocumentMissingError(ToolPreconditionError):
    """``update_document`` on a path that is not an existing document."""

    def __init__(self, path: str) -> None:
        super().__init__(
            error_code=ErrorCode.DOCUMENT_NOT_FOUND,
            message=f"Error: Document '{path}' not found.",
            details={"path": path},
        )


class FolderMissingError(ToolPreconditionError):
    """``list_documents`` on a path that is not a folder."""

    def __init__(self, path: str) -> None:
        super().__init__(
            error_code=ErrorCode.FOLDER_NOT_FOUND,
            message=f"Error: Folder '{path}' not found.",
            details={"path": path},
        )


__all__ = [
    "ErrorCode",
    "ToolError",
    "ToolNotFoundError",
    "InvalidParameterError",
    "ToolPreconditionError",
    "DocumentExistsToolError",
    "DocumentMissingError",
    "FolderMissingError",
]
