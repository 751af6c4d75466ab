"""Error taxonomy for tool execution.

Every failure that reaches the dispatcher is an instance of ``ToolError`` (or
is wrapped into ``InternalError``) and is rendered into the response envelope
as ``{code, message, type}``. Callers branch on ``type``, never on the message.
"""

from enum import Enum
from typing import Optional


class ErrorType(str, Enum):
    """Closed set of error kinds exposed to MCP clients."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    SECURITY_ERROR = "SECURITY_ERROR"
    NOT_FOUND_ERROR = "NOT_FOUND_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    MCP_PROTOCOL_ERROR = "MCP_PROTOCOL_ERROR"
    SYSTEM_ERROR = "SYSTEM_ERROR"


class ToolError(Exception):
    """Base class for typed tool failures."""

    error_type: ErrorType = ErrorType.SYSTEM_ERROR
    default_code: str = "SYSTEM_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ValidationError(ToolError):
    """Missing or malformed caller input."""

    error_type = ErrorType.VALIDATION_ERROR
    default_code = "INVALID_PARAMETER"


class SecurityError(ToolError):
    """Query rejected by the safety validator."""

    error_type = ErrorType.SECURITY_ERROR
    default_code = "QUERY_REJECTED"


class NotFoundError(ToolError):
    """Named table or column does not exist."""

    error_type = ErrorType.NOT_FOUND_ERROR
    default_code = "TABLE_NOT_FOUND"


class DatabaseError(ToolError):
    """Execution failure reported by the database or the pool."""

    error_type = ErrorType.DATABASE_ERROR
    default_code = "DATABASE_ERROR"


class DatabaseConnectionError(DatabaseError):
    """Database unreachable or credentials rejected."""

    default_code = "CONNECTION_ERROR"


class ProtocolError(ToolError):
    """Unknown tool name or malformed tool request."""

    error_type = ErrorType.MCP_PROTOCOL_ERROR
    default_code = "UNKNOWN_TOOL"


class InternalError(ToolError):
    """Anything that does not fit another category."""

    error_type = ErrorType.SYSTEM_ERROR
    default_code = "TOOL_EXECUTION_ERROR"
