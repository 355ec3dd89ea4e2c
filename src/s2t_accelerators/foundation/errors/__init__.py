"""Unified error handling for s2t_accelerators.

- ErrorCode: Standard error codes for operation failures
- ToolError/ToolException: Structured errors and exceptions
- InputValidationError/RemoteCallError: raised by validators and the remote client
- ConfigurationError: fatal startup misconfiguration
"""

from .errors import (
    ConfigurationError,
    ErrorCode,
    InputValidationError,
    RemoteCallError,
    ToolError,
    ToolException,
    classify_exception,
)
from .types import JsonDict, JsonMapping, JsonPrimitive, JsonValue

__all__ = [
    "ConfigurationError", "ErrorCode", "InputValidationError", "RemoteCallError",
    "ToolError", "ToolException", "classify_exception",
    "JsonDict", "JsonMapping", "JsonPrimitive", "JsonValue",
]
