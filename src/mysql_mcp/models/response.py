"""Uniform response envelope returned by every tool."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from mysql_mcp.errors import ErrorType, ToolError


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class MCPError(BaseModel):
    """Structured error returned when a tool fails."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable message")
    type: ErrorType = Field(..., description="Error kind clients branch on")

    @classmethod
    def from_exception(cls, exc: ToolError) -> "MCPError":
        return cls(code=exc.code, message=exc.message, type=exc.error_type)


class QueryInfo(BaseModel):
    """Audit information for executed SQL."""

    sql: str = Field(..., description="Final executed SQL text")
    affected_rows: Optional[int] = Field(None, description="Rows returned")


class ResponseMetadata(BaseModel):
    """Execution metadata attached to every response."""

    timestamp: str = Field(default_factory=utc_now_iso)
    execution_time: float = Field(
        default=0.0, description="Wall-clock milliseconds from dispatch entry"
    )
    query_info: Optional[QueryInfo] = None


class MCPResponse(BaseModel):
    """Success payload or typed error, plus metadata.

    Exactly one of ``data`` / ``error`` is present, matching ``success``.
    """

    success: bool
    data: Optional[Any] = None
    error: Optional[MCPError] = None
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)

    @model_validator(mode="after")
    def check_exclusive(self) -> "MCPResponse":
        if self.success and self.error is not None:
            raise ValueError("successful response cannot carry an error")
        if not self.success and (self.error is None or self.data is not None):
            raise ValueError("failed response must carry an error and no data")
        return self

    @classmethod
    def ok(
        cls,
        data: Any,
        execution_time: float = 0.0,
        query_info: Optional[QueryInfo] = None,
    ) -> "MCPResponse":
        return cls(
            success=True,
            data=data,
            metadata=ResponseMetadata(
                execution_time=execution_time, query_info=query_info
            ),
        )

    @classmethod
    def fail(cls, exc: ToolError, execution_time: float = 0.0) -> "MCPResponse":
        return cls(
            success=False,
            error=MCPError.from_exception(exc),
            metadata=ResponseMetadata(execution_time=execution_time),
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Render the envelope for the wire.

        Returns:
            Dictionary with ``success``, then ``data`` or ``error`` (never
            both), then ``metadata``
        """
        payload: dict[str, Any] = {"success": self.success}
        if self.success:
            data = self.data
            if isinstance(data, BaseModel):
                data = data.model_dump(mode="json")
            payload["data"] = data
        elif self.error is not None:
            payload["error"] = self.error.model_dump(mode="json")
        payload["metadata"] = self.metadata.model_dump(mode="json", exclude_none=True)
        return payload
