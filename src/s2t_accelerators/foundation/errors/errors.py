"""Standardized error handling for accelerator operations.

Provides error codes and structured error responses. Every failure that
reaches the dispatcher is rendered through ToolError so callers always see
the same ``Error: <message>`` text.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class ErrorCode(StrEnum):
    """Standard error codes for operation failures."""
    API_KEY_MISSING = "API_KEY_MISSING"
    API_KEY_INVALID = "API_KEY_INVALID"
    RATE_LIMITED = "RATE_LIMITED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    INVALID_PARAMS = "INVALID_PARAMS"
    PARSE_ERROR = "PARSE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN = "UNKNOWN"


# Checked in insertion order
_PATTERN_CODES: dict[str, ErrorCode] = {
    "timeout": ErrorCode.TIMEOUT,
    "connect": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "rate": ErrorCode.RATE_LIMITED,
    "limit": ErrorCode.RATE_LIMITED,
    "auth": ErrorCode.API_KEY_INVALID,
    "api key": ErrorCode.API_KEY_INVALID,
    "permission": ErrorCode.PERMISSION_DENIED,
    "forbidden": ErrorCode.PERMISSION_DENIED,
    "json": ErrorCode.PARSE_ERROR,
    "decode": ErrorCode.PARSE_ERROR,
    "parse": ErrorCode.PARSE_ERROR,
    "required parameter": ErrorCode.INVALID_PARAMS,
    "not found": ErrorCode.NOT_FOUND,
    "unknown tool": ErrorCode.NOT_FOUND,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES.keys())


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.EXTERNAL_SERVICE_ERROR


def classify_exception(exc: Exception) -> ErrorCode:
    """Map exception to error code via pattern matching on name/message."""
    if isinstance(exc, ToolException):
        return exc.error.code
    return _classify_cached(f"{type(exc).__name__} {exc}")


class ToolError(BaseModel):
    """Structured error response for operation failures.

    Attributes:
        tool_name: Name of the operation that failed
        message: Human-readable error message, surfaced verbatim to callers
        code: Machine-readable error code
        recoverable: Whether the error might succeed on retry
        details: Optional detailed information (e.g., stack trace), logged only
    """

    model_config = ConfigDict(
        frozen=True,
        validate_default=True,
        json_schema_extra={
            "title": "Tool Error",
            "examples": [{
                "tool_name": "s2t_embed",
                "message": "Required parameter 'text' must be a non-empty string",
                "code": "INVALID_PARAMS",
                "recoverable": False,
            }],
        },
    )

    tool_name: Annotated[str, Field(min_length=1, description="Operation that produced the error")]
    message: Annotated[str, Field(min_length=1, description="Human-readable error message")]
    code: ErrorCode = Field(default=ErrorCode.UNKNOWN)
    recoverable: bool = True
    details: str | None = Field(default=None, repr=False)

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | Exception) -> str:
        """Accept Exception objects and fall back to the type name for empty messages."""
        if isinstance(v, Exception):
            return str(v) or type(v).__name__
        return v

    @computed_field
    @property
    def is_retryable(self) -> bool:
        """Whether this error is typically retryable (rate limits, timeouts, network)."""
        return self.code in _RETRYABLE_CODES

    @classmethod
    def create(
        cls,
        tool_name: str,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        *,
        recoverable: bool = True,
        details: str | None = None,
    ) -> Self:
        return cls(tool_name=tool_name, message=message, code=code, recoverable=recoverable, details=details)

    @classmethod
    def from_exception(cls, tool_name: str, exc: Exception) -> Self:
        """Create from exception with auto-classification. The message is kept unmodified."""
        if isinstance(exc, ToolException):
            if exc.error.tool_name == tool_name:
                return exc.error  # type: ignore[return-value]
            return exc.error.model_copy(update={"tool_name": tool_name})  # type: ignore[return-value]
        code = classify_exception(exc)
        return cls(
            tool_name=tool_name,
            message=exc,  # type: ignore[arg-type]
            code=code,
            recoverable=code in _RETRYABLE_CODES,
        )

    def render(self) -> str:
        """Format error for the caller."""
        return f"Error: {self.message}"

    __str__ = render


_RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.RATE_LIMITED,
    ErrorCode.TIMEOUT,
    ErrorCode.NETWORK_ERROR,
})


class ToolException(Exception):
    """Exception wrapping a ToolError for raising."""

    __slots__ = ("error",)

    def __init__(self, error: ToolError) -> None:
        self.error = error
        super().__init__(error.message)

    @classmethod
    def create(cls, tool_name: str, message: str, code: ErrorCode = ErrorCode.UNKNOWN, *, recoverable: bool = True) -> Self:
        return cls(ToolError(tool_name=tool_name, message=message, code=code, recoverable=recoverable))


class InputValidationError(ToolException):
    """A field is missing or has the wrong basic type."""

    __slots__ = ("field",)

    def __init__(self, error: ToolError, field: str) -> None:
        super().__init__(error)
        self.field = field

    @classmethod
    def required(cls, field: str, constraint: str, tool_name: str = "input") -> Self:
        message = f"Required parameter '{field}' must be {constraint}"
        return cls(ToolError.create(tool_name, message, ErrorCode.INVALID_PARAMS, recoverable=False), field)

    @classmethod
    def invalid(cls, field: str, constraint: str, tool_name: str = "input") -> Self:
        message = f"Parameter '{field}' must be {constraint}"
        return cls(ToolError.create(tool_name, message, ErrorCode.INVALID_PARAMS, recoverable=False), field)


class RemoteCallError(ToolException):
    """The accelerator API answered with a non-2xx status."""

    __slots__ = ("status_code",)

    def __init__(self, error: ToolError, status_code: int) -> None:
        super().__init__(error)
        self.status_code = status_code

    @classmethod
    def from_status(cls, endpoint: str, status_code: int, message: str | None = None) -> Self:
        match status_code:
            case 401: code = ErrorCode.API_KEY_INVALID
            case 403: code = ErrorCode.PERMISSION_DENIED
            case 404: code = ErrorCode.NOT_FOUND
            case 429: code = ErrorCode.RATE_LIMITED
            case 408 | 504: code = ErrorCode.TIMEOUT
            case s if 400 <= s < 500: code = ErrorCode.INVALID_PARAMS
            case _: code = ErrorCode.EXTERNAL_SERVICE_ERROR
        error = ToolError.create(
            endpoint, message or f"API error: {status_code}", code,
            recoverable=code in _RETRYABLE_CODES,
        )
        return cls(error, status_code)


class ConfigurationError(Exception):
    """Fatal startup misconfiguration (e.g. missing API key)."""

    __slots__ = ("hint",)

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint
