"""Standardized error types for tool invocation.

Every failure inside :meth:`ToolContract.call` is converted into one of these
errors and serialized with :meth:`ToolError.to_dict`, so the model receives a
consistent JSON payload it can react to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# -----------------------------------------------------------------------------
# Error Code Constants
# -----------------------------------------------------------------------------

class ErrorCode:
    """Constants for error codes used in tool responses."""

    INVALID_JSON = "invalid_json"
    VALIDATION_ERROR = "validation_error"
    TOOL_FAILED = "tool_failed"
    UNSERIALIZABLE_RESULT = "unserializable_result"


# -----------------------------------------------------------------------------
# Base Error Class
# -----------------------------------------------------------------------------

@dataclass
class ToolError(Exception):
    """Base exception class for all tool errors.

    Handlers may raise subclasses (or this class) directly to control the
    payload the model sees.

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
        """Serialize to a dictionary for JSON tool responses."""
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


# -----------------------------------------------------------------------------
# Argument Errors
# -----------------------------------------------------------------------------

@dataclass
class InvalidArgumentsJSONError(ToolError):
    """The argument text could not be decoded as JSON."""

    error_code: str = field(default=ErrorCode.INVALID_JSON)
    message: str = field(default="Tool arguments are not valid JSON")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Send the arguments as a single JSON object")

    line: int | None = field(default=None)
    column: int | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.line is not None:
            result["line"] = self.line
        if self.column is not None:
            result["column"] = self.column
        return result


@dataclass
class ArgumentValidationError(ToolError):
    """Decoded arguments do not match the tool's parameter schema."""

    error_code: str = field(default=ErrorCode.VALIDATION_ERROR)
    message: str = field(default="Tool arguments do not match the parameter schema")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Check the field named in 'path' against the tool's parameter schema")

    path: str = field(default="")
    value: Any = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["path"] = self.path
        result["value"] = self.value
        return result


# -----------------------------------------------------------------------------
# Invocation Errors
# -----------------------------------------------------------------------------

@dataclass
class ToolInvocationError(ToolError):
    """The tool handler raised an unexpected exception."""

    error_code: str = field(default=ErrorCode.TOOL_FAILED)
    message: str = field(default="Tool execution failed")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Try different arguments or another approach")

    exception_type: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.exception_type:
            result["exception_type"] = self.exception_type
        return result


@dataclass
class UnserializableResultError(ToolError):
    """The handler returned a value that cannot be encoded as JSON."""

    error_code: str = field(default=ErrorCode.UNSERIALIZABLE_RESULT)
    message: str = field(default="Tool result could not be serialized to JSON")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")


__all__ = [
    "ErrorCode",
    "ToolError",
    "InvalidArgumentsJSONError",
    "ArgumentValidationError",
    "ToolInvocationError",
    "UnserializableResultError",
]
