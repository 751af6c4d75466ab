"""MySQL MCP Server

A Model Context Protocol (MCP) server providing read-only introspection and
querying of a single MySQL database.
"""

import asyncio
import logging
import os
from typing import Any, Optional

from dotenv import load_dotenv
from mcp.server import Server
from mcp.types import TextContent, Tool

from mysql_mcp.core import (
    DatabaseConnection,
    MetadataInspector,
    QueryExecutor,
    QueryValidator,
    StatisticsAnalyzer,
)
from mysql_mcp.dispatcher import ToolDispatcher
from mysql_mcp.models.config import DatabaseConfig, SecurityConfig
from mysql_mcp.models.response import MCPResponse
from mysql_mcp.utils import dumps

# Load environment variables
load_dotenv()

# Configure logging (stderr, so stdio MCP framing on stdout stays clean)
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Response size limit (in characters) for query results, to avoid
# exhausting the client's context window
MAX_RESPONSE_EXECUTE_QUERY = 100000

# Tools whose responses are subject to the size limit
TRUNCATED_TOOLS = {"mysql_execute_safe_query": MAX_RESPONSE_EXECUTE_QUERY}


def truncate_json_response(envelope: dict[str, Any], max_length: int) -> str:
    """
    Serialize a response envelope within a maximum length.

    Oversized results lose trailing rows rather than text, so the output is
    always a complete envelope with its metadata intact. ``data.truncated``
    and ``data.rows_omitted`` tell the client what was dropped.

    Args:
        envelope: Envelope dictionary from ``MCPResponse.to_dict()``
        max_length: Maximum length in characters

    Returns:
        Pretty-printed JSON envelope
    """
    text = dumps(envelope, indent=True)
    data = envelope.get("data")
    if len(text) <= max_length or not isinstance(data, dict) or not data.get("rows"):
        return text

    rows = data["rows"]

    def render(keep: int) -> str:
        trimmed = {
            **data,
            "rows": rows[:keep],
            "truncated": True,
            "rows_omitted": len(rows) - keep,
        }
        return dumps({**envelope, "data": trimmed}, indent=True)

    # Largest row prefix that fits; zero rows if not even one does
    kept, best = 0, render(0)
    low, high = 1, len(rows) - 1
    while low <= high:
        mid = (low + high) // 2
        candidate = render(mid)
        if len(candidate) <= max_length:
            kept, best, low = mid, candidate, mid + 1
        else:
            high = mid - 1

    logger.warning(
        f"Response truncated to {kept} of {len(rows)} rows "
        f"({len(text)} chars exceeds {max_length})"
    )
    return best


class MySQLMCPServer:
    """MCP server for read-only MySQL operations."""

    def __init__(
        self,
        config: DatabaseConfig,
        security: Optional[SecurityConfig] = None,
        connection: Optional[DatabaseConnection] = None,
    ):
        """
        Initialize MySQL MCP server.

        Args:
            config: Database configuration
            security: Query validator settings (defaults when omitted)
            connection: Pre-built connection manager (mainly for tests)
        """
        self.config = config
        self.security = security or SecurityConfig()
        self.connection = connection or DatabaseConnection(config)
        self.validator = QueryValidator(self.security)
        self.inspector = MetadataInspector(self.connection, config)
        self.analyzer = StatisticsAnalyzer(self.connection)
        self.executor = QueryExecutor(self.connection, self.validator)
        self.dispatcher = ToolDispatcher(
            self.connection, self.inspector, self.analyzer, self.executor
        )
        self.server = Server("mysql-mcp")
        self._register_handlers()

    async def initialize(self) -> None:
        """Create the connection pool; connections open on first use."""
        await self.connection.initialize()
        logger.info(
            f"Initialized MySQL MCP server for {self.config.sanitized_url} "
            f"({len(self.dispatcher.tools)} tools, keyword scan: {self.security.keyword_scan})"
        )

    def _register_handlers(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """List available tools."""
            return self.list_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            """Handle tool calls."""
            return await self.call_tool(name, arguments)

    def list_tools(self) -> list[Tool]:
        """MCP tool descriptors for the fixed tool table."""
        return [
            Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.input_schema,
            )
            for tool in self.dispatcher.tools
        ]

    async def call_tool(
        self, name: str, arguments: Optional[dict[str, Any]]
    ) -> list[TextContent]:
        """
        Dispatch a tool call and render its envelope as JSON text.

        Args:
            name: Tool name
            arguments: Tool arguments

        Returns:
            Single text content holding the response envelope
        """
        response = await self.dispatcher.dispatch(name, arguments or {})
        return [TextContent(type="text", text=self.render(name, response))]

    def render(self, name: str, response: MCPResponse) -> str:
        envelope = response.to_dict()
        max_length = TRUNCATED_TOOLS.get(name)
        if max_length is not None:
            return truncate_json_response(envelope, max_length)
        return dumps(envelope, indent=True)

    async def cleanup(self) -> None:
        """Cleanup resources."""
        await self.connection.disconnect()
        logger.info("MySQL MCP server cleaned up")


async def main() -> None:
    """Main entry point for the MCP server."""
    config = DatabaseConfig.from_env()
    security = SecurityConfig.from_env()

    mcp_server = MySQLMCPServer(config, security)

    try:
        await mcp_server.initialize()

        from mcp.server.stdio import stdio_server

        async with stdio_server() as (read_stream, write_stream):
            await mcp_server.server.run(
                read_stream,
                write_stream,
                mcp_server.server.create_initialization_options(),
            )

    finally:
        await mcp_server.cleanup()


def cli_entry() -> None:
    """
    Synchronous entry point for console script.

    This function is called by the 'mysql-mcp' console script.
    It sets up the event loop and runs the async main() function.
    """
    # Windows-specific event loop policy
    if os.name == "nt":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())  # type: ignore[attr-defined]

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    cli_entry()
