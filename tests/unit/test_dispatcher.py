"""Unit tests for ToolDispatcher

Validates the envelope contract for every tool:
- success payloads and metadata
- parameter validation before any database work
- error typing for each failure category
"""

import pytest

from mysql_mcp.core import (
    MetadataInspector,
    QueryExecutor,
    QueryValidator,
    StatisticsAnalyzer,
)
from mysql_mcp.dispatcher import ToolDispatcher
from mysql_mcp.errors import DatabaseError, ErrorType
from mysql_mcp.models.config import SecurityConfig


@pytest.fixture
def dispatcher(fake_connection, database_config) -> ToolDispatcher:
    return ToolDispatcher(
        fake_connection,
        MetadataInspector(fake_connection, database_config),
        StatisticsAnalyzer(fake_connection),
        QueryExecutor(fake_connection, QueryValidator(SecurityConfig())),
    )


class TestToolTable:
    def test_six_tools_registered(self, dispatcher):
        assert [t.name for t in dispatcher.tools] == [
            "mysql_connect",
            "mysql_list_tables",
            "mysql_describe_table",
            "mysql_table_stats",
            "mysql_analyze_column",
            "mysql_execute_safe_query",
        ]

    def test_required_parameters(self, dispatcher):
        required = {t.name: t.required for t in dispatcher.tools}
        assert required["mysql_connect"] == []
        assert required["mysql_describe_table"] == ["tableName"]
        assert required["mysql_analyze_column"] == ["tableName", "columnName"]
        assert required["mysql_execute_safe_query"] == ["query"]

    def test_schemas_forbid_extra_properties(self, dispatcher):
        for tool in dispatcher.tools:
            assert tool.input_schema["type"] == "object"
            assert tool.input_schema["additionalProperties"] is False


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect(self, dispatcher):
        response = await dispatcher.dispatch("mysql_connect", {})

        assert response.success is True
        data = response.to_dict()["data"]
        assert data["connected"] is True
        assert data["database"] == "test_mcp_mysql"
        assert data["timestamp"]

    @pytest.mark.asyncio
    async def test_unreachable_reports_not_connected(
        self, dispatcher, fake_connection, unreachable_error
    ):
        """An unreachable server is a successful call with connected false."""
        fake_connection.connect_error = unreachable_error

        response = await dispatcher.dispatch("mysql_connect", {})

        assert response.success is True
        assert response.error is None
        data = response.to_dict()["data"]
        assert data["connected"] is False
        assert data["database"] == "test_mcp_mysql"


class TestListTables:
    @pytest.mark.asyncio
    async def test_empty_schema(self, dispatcher):
        """An empty database is a success with zero tables."""
        response = await dispatcher.dispatch("mysql_list_tables", {})

        assert response.success is True
        assert response.to_dict()["data"] == {"tables": [], "count": 0}

    @pytest.mark.asyncio
    async def test_tables(self, dispatcher, fake_connection):
        fake_connection.add_response(
            "SELECT TABLE_NAME", rows=[{"table_name": "a"}, {"table_name": "b"}]
        )

        response = await dispatcher.dispatch("mysql_list_tables")

        assert response.to_dict()["data"] == {"tables": ["a", "b"], "count": 2}


class TestDescribeTable:
    @pytest.mark.asyncio
    async def test_missing_table(self, dispatcher):
        response = await dispatcher.dispatch(
            "mysql_describe_table", {"tableName": "does_not_exist"}
        )

        assert response.success is False
        assert response.data is None
        assert response.error.type == ErrorType.NOT_FOUND_ERROR
        assert response.metadata.execution_time >= 0

    @pytest.mark.asyncio
    async def test_payload_is_snake_case(self, dispatcher, fake_connection):
        fake_connection.add_response(
            "TABLE_COLLATION",
            rows=[
                {
                    "table_comment": "",
                    "engine": "InnoDB",
                    "table_collation": "latin1_swedish_ci",
                    "create_time": "2024-01-15T10:30:00",
                    "update_time": None,
                }
            ],
        )

        response = await dispatcher.dispatch(
            "mysql_describe_table", {"tableName": "legacy"}
        )

        data = response.to_dict()["data"]
        assert data["table_name"] == "legacy"
        assert data["charset"] == "latin1"
        assert data["columns"] == []


class TestMissingParameters:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "tool, arguments, missing",
        [
            ("mysql_describe_table", {}, "tableName"),
            ("mysql_table_stats", {"tableName": ""}, "tableName"),
            ("mysql_analyze_column", {"tableName": "users"}, "columnName"),
            ("mysql_analyze_column", {"tableName": "  ", "columnName": "id"}, "tableName"),
            ("mysql_execute_safe_query", {"query": None}, "query"),
        ],
    )
    async def test_missing_required(
        self, dispatcher, fake_connection, tool, arguments, missing
    ):
        """Missing or empty required params fail with zero time and no queries."""
        response = await dispatcher.dispatch(tool, arguments)

        assert response.success is False
        assert response.error.type == ErrorType.VALIDATION_ERROR
        assert response.error.code == "MISSING_PARAMETER"
        assert missing in response.error.message
        assert response.metadata.execution_time == 0
        assert fake_connection.calls == []

    @pytest.mark.asyncio
    async def test_bad_analysis_type(self, dispatcher, fake_connection):
        response = await dispatcher.dispatch(
            "mysql_analyze_column",
            {"tableName": "users", "columnName": "id", "analysisType": "median"},
        )

        assert response.error.type == ErrorType.VALIDATION_ERROR
        assert "analysisType" in response.error.message
        assert fake_connection.calls == []

    @pytest.mark.asyncio
    async def test_unexpected_argument(self, dispatcher):
        response = await dispatcher.dispatch(
            "mysql_table_stats", {"tableName": "users", "schema": "other"}
        )

        assert response.error.type == ErrorType.VALIDATION_ERROR
        assert response.metadata.execution_time == 0


class TestUnknownTool:
    @pytest.mark.asyncio
    async def test_unknown_tool(self, dispatcher, fake_connection):
        response = await dispatcher.dispatch("mysql_drop_everything", {})

        assert response.success is False
        assert response.error.type == ErrorType.MCP_PROTOCOL_ERROR
        assert response.error.code == "UNKNOWN_TOOL"
        assert response.metadata.execution_time == 0
        assert fake_connection.calls == []


class TestAnalyzeColumn:
    @pytest.mark.asyncio
    async def test_default_analysis_is_distribution(self, dispatcher, fake_connection):
        response = await dispatcher.dispatch(
            "mysql_analyze_column", {"tableName": "users", "columnName": "status"}
        )

        assert response.success is True
        data = response.to_dict()["data"]
        assert data["analysis_type"] == "distribution"
        assert data["result"]["distribution"] == []
        assert data["result"]["null_analysis"] is None

    @pytest.mark.asyncio
    async def test_nulls_on_empty_table(self, dispatcher, fake_connection):
        fake_connection.add_response(
            "null_rows", rows=[{"total_rows": 0, "null_rows": None}]
        )

        response = await dispatcher.dispatch(
            "mysql_analyze_column",
            {"tableName": "users", "columnName": "email", "analysisType": "nulls"},
        )

        assert response.to_dict()["data"]["result"]["null_analysis"] == {
            "total_rows": 0,
            "null_rows": 0,
            "null_percentage": 0.0,
        }


class TestExecuteSafeQuery:
    @pytest.mark.asyncio
    async def test_limit_appended_and_reported(self, dispatcher, fake_connection):
        fake_connection.add_response("FROM users", rows=[{"id": 1}])

        response = await dispatcher.dispatch(
            "mysql_execute_safe_query", {"query": "SELECT id FROM users"}
        )

        assert response.success is True
        assert fake_connection.statements == ["SELECT id FROM users LIMIT 1000"]
        envelope = response.to_dict()
        assert envelope["data"]["rows"] == [{"id": 1}]
        assert envelope["data"]["row_count"] == 1
        assert envelope["metadata"]["query_info"]["sql"] == "SELECT id FROM users LIMIT 1000"
        assert envelope["metadata"]["query_info"]["affected_rows"] == 1

    @pytest.mark.asyncio
    async def test_params_default_to_empty(self, dispatcher, fake_connection):
        await dispatcher.dispatch(
            "mysql_execute_safe_query", {"query": "SELECT 1 LIMIT 1", "params": None}
        )

        assert fake_connection.calls == [("SELECT 1 LIMIT 1", [])]

    @pytest.mark.asyncio
    async def test_params_forwarded(self, dispatcher, fake_connection):
        await dispatcher.dispatch(
            "mysql_execute_safe_query",
            {"query": "SELECT * FROM users WHERE id = ? LIMIT 1", "params": [42]},
        )

        assert fake_connection.calls[0][1] == [42]

    @pytest.mark.asyncio
    async def test_non_select_rejected(self, dispatcher, fake_connection):
        response = await dispatcher.dispatch(
            "mysql_execute_safe_query", {"query": "SHOW TABLES"}
        )

        assert response.success is False
        assert response.error.type == ErrorType.SECURITY_ERROR
        assert fake_connection.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "query",
        ["DELETE FROM users", "SELECT * FROM users; DROP TABLE users"],
    )
    async def test_rejection_reports_zero_time(self, dispatcher, fake_connection, query):
        """Validator rejections happen before timing starts."""
        response = await dispatcher.dispatch("mysql_execute_safe_query", {"query": query})

        assert response.error.type == ErrorType.SECURITY_ERROR
        assert response.metadata.execution_time == 0
        assert fake_connection.calls == []

    @pytest.mark.asyncio
    async def test_keyword_in_literal_rejected(self, dispatcher, fake_connection):
        response = await dispatcher.dispatch(
            "mysql_execute_safe_query",
            {"query": "SELECT * FROM notes WHERE body = 'drop me a line'"},
        )

        assert response.error.type == ErrorType.SECURITY_ERROR
        assert fake_connection.calls == []

    @pytest.mark.asyncio
    async def test_database_error(self, dispatcher, fake_connection):
        fake_connection.query_error = DatabaseError(
            "Query execution failed: (1146, \"Table 'test_mcp_mysql.nope' doesn't exist\")"
        )

        response = await dispatcher.dispatch(
            "mysql_execute_safe_query", {"query": "SELECT * FROM nope"}
        )

        assert response.error.type == ErrorType.DATABASE_ERROR
        assert "1146" in response.error.message

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_system_error(
        self, dispatcher, fake_connection
    ):
        fake_connection.query_error = RuntimeError("boom")

        response = await dispatcher.dispatch(
            "mysql_execute_safe_query", {"query": "SELECT 1"}
        )

        assert response.success is False
        assert response.error.type == ErrorType.SYSTEM_ERROR
        assert response.error.code == "TOOL_EXECUTION_ERROR"
        assert "boom" in response.error.message


class TestEnvelope:
    @pytest.mark.asyncio
    async def test_failure_has_no_data_key(self, dispatcher):
        envelope = (await dispatcher.dispatch("nope", {})).to_dict()

        assert list(envelope) == ["success", "error", "metadata"]
        assert set(envelope["error"]) == {"code", "message", "type"}
        assert envelope["error"]["type"] == "MCP_PROTOCOL_ERROR"

    @pytest.mark.asyncio
    async def test_success_has_no_error_key(self, dispatcher):
        envelope = (await dispatcher.dispatch("mysql_list_tables", {})).to_dict()

        assert list(envelope) == ["success", "data", "metadata"]
        assert "query_info" not in envelope["metadata"]
        assert envelope["metadata"]["timestamp"]
