"""
mysql_mcp - Read-only MySQL MCP server

A Model Context Protocol (MCP) server that exposes schema introspection,
table statistics, column analysis and guarded SELECT execution for a single
MySQL database.
"""

__version__ = "1.0.0"

from mysql_mcp.errors import (
    DatabaseConnectionError,
    DatabaseError,
    ErrorType,
    InternalError,
    NotFoundError,
    ProtocolError,
    SecurityError,
    ToolError,
    ValidationError,
)
from mysql_mcp.models.config import DatabaseConfig, PoolConfig, SecurityConfig
from mysql_mcp.models.response import MCPResponse

__all__ = [
    "DatabaseConfig",
    "PoolConfig",
    "SecurityConfig",
    "MCPResponse",
    "ErrorType",
    "ToolError",
    "ValidationError",
    "SecurityError",
    "NotFoundError",
    "DatabaseError",
    "DatabaseConnectionError",
    "ProtocolError",
    "InternalError",
]
