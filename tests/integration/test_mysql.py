"""MySQL Integration Tests

Runs the components and the MCP protocol layer against a real MySQL server.
Set TEST_DB_HOST, TEST_DB_PORT, TEST_DB_NAME, TEST_DB_USER and
TEST_DB_PASSWORD to enable; everything here is read-only.
"""

import json
from typing import Any

import anyio
import pytest
from mcp import ClientSession
from mcp.types import TextContent

from mysql_mcp.core import (
    DatabaseConnection,
    MetadataInspector,
    QueryExecutor,
    QueryValidator,
    StatisticsAnalyzer,
)
from mysql_mcp.errors import NotFoundError, SecurityError
from mysql_mcp.models.config import DatabaseConfig, SecurityConfig
from mysql_mcp.server import MySQLMCPServer

pytestmark = [pytest.mark.mysql, pytest.mark.integration]


def parse_text_content(content: list[TextContent]) -> dict[str, Any]:
    assert len(content) == 1
    assert content[0].type == "text"
    return json.loads(content[0].text)


class TestConnection:
    @pytest.mark.asyncio
    async def test_session_is_read_only(self, mysql_connection: DatabaseConnection):
        result = await mysql_connection.query(
            "SELECT @@session.transaction_read_only AS ro, @@session.time_zone AS tz"
        )

        assert result.rows[0]["ro"] == 1
        assert result.rows[0]["tz"] == "+00:00"

    @pytest.mark.asyncio
    async def test_version(self, mysql_connection: DatabaseConnection):
        version = await mysql_connection.get_version()
        assert version[0].isdigit()

    @pytest.mark.asyncio
    async def test_positional_params(self, mysql_connection: DatabaseConnection):
        result = await mysql_connection.query(
            "SELECT ? AS a, ? AS b, '10:30' AS t, '100%' AS pct", [7, "x"]
        )

        assert result.rows == [{"a": 7, "b": "x", "t": "10:30", "pct": "100%"}]
        assert result.columns == ["a", "b", "t", "pct"]

    @pytest.mark.asyncio
    async def test_bad_credentials(self, mysql_config: DatabaseConfig):
        config = mysql_config.model_copy(update={"username": "no_such_user_mcp"})
        connection = DatabaseConnection(config)
        try:
            assert await connection.test_connection() is False
        finally:
            await connection.disconnect()


class TestCatalog:
    @pytest.mark.asyncio
    async def test_describe_every_table(
        self, mysql_connection: DatabaseConnection, mysql_config: DatabaseConfig
    ):
        inspector = MetadataInspector(mysql_connection, mysql_config)

        tables = await inspector.list_tables()
        assert tables == sorted(tables)

        for table in tables[:5]:
            structure = await inspector.describe_table(table)
            positions = [c.position for c in structure.columns]
            assert positions == list(range(1, len(positions) + 1))

            stats = await inspector.get_table_stats(table)
            assert stats.total_rows >= 0

    @pytest.mark.asyncio
    async def test_missing_table(
        self, mysql_connection: DatabaseConnection, mysql_config: DatabaseConfig
    ):
        inspector = MetadataInspector(mysql_connection, mysql_config)

        with pytest.raises(NotFoundError):
            await inspector.describe_table("does_not_exist_mcp")


class TestAnalysis:
    @pytest.mark.asyncio
    async def test_analyze_first_column(
        self, mysql_connection: DatabaseConnection, mysql_config: DatabaseConfig
    ):
        inspector = MetadataInspector(mysql_connection, mysql_config)
        analyzer = StatisticsAnalyzer(mysql_connection)

        tables = await inspector.list_tables()
        if not tables:
            pytest.skip("No tables available")

        structure = await inspector.describe_table(tables[0])
        column = structure.columns[0].column_name

        for kind in ("distribution", "nulls", "unique", "range"):
            analysis = await analyzer.analyze_column(tables[0], column, kind)
            assert analysis.analysis_type == kind

        nulls = (await analyzer.analyze_column(tables[0], column, "nulls")).result
        assert 0 <= nulls.null_analysis.null_percentage <= 100


class TestSafeQuery:
    @pytest.mark.asyncio
    async def test_bounded_query(self, mysql_connection: DatabaseConnection):
        executor = QueryExecutor(mysql_connection, QueryValidator(SecurityConfig()))

        result, final_query = await executor.execute_safe_query(
            "SELECT TABLE_NAME FROM information_schema.TABLES"
        )

        assert final_query.endswith("LIMIT 1000")
        assert result.row_count <= 1000

    @pytest.mark.asyncio
    async def test_rejected(self, mysql_connection: DatabaseConnection):
        executor = QueryExecutor(mysql_connection, QueryValidator(SecurityConfig()))

        with pytest.raises(SecurityError):
            await executor.execute_safe_query("DROP TABLE anything")


class TestMCPProtocol:
    """Tool calls through an in-memory MCP client session."""

    @pytest.mark.asyncio
    async def test_workflow(
        self, mysql_connection: DatabaseConnection, mysql_config: DatabaseConfig
    ):
        """connect -> list tables -> bounded query over the MCP protocol."""
        mcp_server = MySQLMCPServer(mysql_config)
        await mcp_server.initialize()

        server_to_client_send, server_to_client_recv = anyio.create_memory_object_stream(10)
        client_to_server_send, client_to_server_recv = anyio.create_memory_object_stream(10)

        async def run_server():
            await mcp_server.server.run(
                client_to_server_recv,
                server_to_client_send,
                mcp_server.server.create_initialization_options(),
                raise_exceptions=True,
            )

        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(run_server)

                async with ClientSession(
                    server_to_client_recv, client_to_server_send
                ) as client:
                    await client.initialize()

                    tools = await client.list_tools()
                    assert len(tools.tools) == 6

                    connect = parse_text_content(
                        (await client.call_tool("mysql_connect", arguments={})).content
                    )
                    assert connect["success"] is True, connect
                    assert connect["data"]["database"] == mysql_config.database

                    listing = parse_text_content(
                        (await client.call_tool("mysql_list_tables", arguments={})).content
                    )
                    assert listing["data"]["count"] == len(listing["data"]["tables"])

                    query = parse_text_content(
                        (
                            await client.call_tool(
                                "mysql_execute_safe_query",
                                arguments={"query": "SELECT 1 AS one"},
                            )
                        ).content
                    )
                    assert query["data"]["rows"] == [{"one": 1}]
                    assert query["metadata"]["query_info"]["sql"] == "SELECT 1 AS one LIMIT 1000"

                tg.cancel_scope.cancel()
        finally:
            await mcp_server.cleanup()
