"""Tool table, parameter validation, and envelope construction."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from mysql_mcp.core import (
    DatabaseConnection,
    MetadataInspector,
    QueryExecutor,
    StatisticsAnalyzer,
)
from mysql_mcp.errors import InternalError, ProtocolError, ToolError, ValidationError
from mysql_mcp.models.analysis import AnalysisType
from mysql_mcp.models.query import SafeQueryResult
from mysql_mcp.models.response import MCPResponse, QueryInfo, utc_now_iso

logger = logging.getLogger(__name__)


class ToolParams(BaseModel):
    """Base for per-tool parameter records; wire names stay camelCase."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class NoParams(ToolParams):
    pass


class TableParams(ToolParams):
    table_name: str = Field(..., alias="tableName", min_length=1)


class AnalyzeColumnParams(ToolParams):
    table_name: str = Field(..., alias="tableName", min_length=1)
    column_name: str = Field(..., alias="columnName", min_length=1)
    analysis_type: AnalysisType = Field(
        default=AnalysisType.DISTRIBUTION, alias="analysisType"
    )


class SafeQueryParams(ToolParams):
    query: str = Field(..., min_length=1)
    params: Optional[list[Any]] = None


# (payload, query audit info)
HandlerResult = tuple[Any, Optional[QueryInfo]]


@dataclass(frozen=True)
class ToolDefinition:
    """One entry of the fixed tool table."""

    name: str
    description: str
    input_schema: dict[str, Any]
    params_model: type[ToolParams]
    handler: Callable[[Any], Awaitable[HandlerResult]]
    # Checks run before timing starts; may return rewritten params
    prepare: Optional[Callable[[Any], Any]] = None

    @property
    def required(self) -> list[str]:
        return list(self.input_schema.get("required", []))


def _is_missing(value: Any) -> bool:
    """Absent, null, or empty string counts as missing."""
    return value is None or (isinstance(value, str) and not value.strip())


def _describe_validation_error(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "Invalid parameters: " + "; ".join(parts)


class ToolDispatcher:
    """Route tool calls to components and wrap every outcome in an envelope.

    The dispatcher holds no per-call state. Nothing raised by a handler
    escapes ``dispatch``: typed failures become their own error kind and
    anything else becomes ``InternalError``.
    """

    def __init__(
        self,
        connection: DatabaseConnection,
        inspector: MetadataInspector,
        analyzer: StatisticsAnalyzer,
        executor: QueryExecutor,
    ):
        """
        Initialize tool dispatcher.

        Args:
            connection: Database connection manager
            inspector: Schema catalog reader
            analyzer: Column statistics analyzer
            executor: Safe query executor
        """
        self.connection = connection
        self.inspector = inspector
        self.analyzer = analyzer
        self.executor = executor
        self._tools = {tool.name: tool for tool in self._build_tools()}

    @property
    def tools(self) -> list[ToolDefinition]:
        """Tool definitions in registration order."""
        return list(self._tools.values())

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    async def dispatch(
        self, name: str, arguments: Optional[dict[str, Any]] = None
    ) -> MCPResponse:
        """
        Run a tool by name.

        Args:
            name: Tool name
            arguments: Raw tool arguments from the client

        Returns:
            Success envelope with the tool payload, or failure envelope with
            ``{code, message, type}``. Failures detected before any work
            (unknown tool, missing or invalid parameter, rejected query)
            report zero execution time.
        """
        arguments = arguments or {}

        tool = self._tools.get(name)
        if tool is None:
            logger.warning(f"Unknown tool requested: {name}")
            return MCPResponse.fail(ProtocolError(f"Unknown tool: {name}"))

        for param in tool.required:
            if _is_missing(arguments.get(param)):
                logger.warning(f"{name}: missing required parameter {param}")
                return MCPResponse.fail(
                    ValidationError(
                        f"Missing required parameter: {param}",
                        code="MISSING_PARAMETER",
                    )
                )

        try:
            params = self._parse_params(tool, arguments)
            if tool.prepare is not None:
                params = tool.prepare(params)
        except ToolError as e:
            logger.warning(f"{name} rejected ({e.error_type.value}/{e.code}): {e.message}")
            return MCPResponse.fail(e)

        start_time = time.perf_counter()
        try:
            data, query_info = await tool.handler(params)
        except ToolError as e:
            elapsed = (time.perf_counter() - start_time) * 1000
            logger.warning(f"{name} failed ({e.error_type.value}/{e.code}): {e.message}")
            return MCPResponse.fail(e, execution_time=elapsed)
        except Exception as e:
            elapsed = (time.perf_counter() - start_time) * 1000
            logger.error(f"{name} failed unexpectedly: {e}", exc_info=True)
            return MCPResponse.fail(
                InternalError(f"Tool execution failed: {e}"), execution_time=elapsed
            )

        elapsed = (time.perf_counter() - start_time) * 1000
        logger.info(f"{name} completed in {elapsed:.1f}ms")
        return MCPResponse.ok(data, execution_time=elapsed, query_info=query_info)

    def _parse_params(self, tool: ToolDefinition, arguments: dict[str, Any]) -> Any:
        try:
            return tool.params_model.model_validate(arguments)
        except PydanticValidationError as e:
            raise ValidationError(_describe_validation_error(e)) from e

    # Handlers

    async def handle_connect(self, params: NoParams) -> HandlerResult:
        await self.connection.initialize()
        connected = await self.connection.test_connection()
        return {
            "connected": connected,
            "database": self.connection.database,
            "timestamp": utc_now_iso(),
        }, None

    async def handle_list_tables(self, params: NoParams) -> HandlerResult:
        tables = await self.inspector.list_tables()
        return {"tables": tables, "count": len(tables)}, None

    async def handle_describe_table(self, params: TableParams) -> HandlerResult:
        return await self.inspector.describe_table(params.table_name), None

    async def handle_table_stats(self, params: TableParams) -> HandlerResult:
        return await self.inspector.get_table_stats(params.table_name), None

    async def handle_analyze_column(self, params: AnalyzeColumnParams) -> HandlerResult:
        analysis = await self.analyzer.analyze_column(
            params.table_name, params.column_name, params.analysis_type
        )
        return analysis, None

    def prepare_safe_query(self, params: SafeQueryParams) -> SafeQueryParams:
        return params.model_copy(update={"query": self.executor.prepare(params.query)})

    async def handle_execute_safe_query(self, params: SafeQueryParams) -> HandlerResult:
        result, final_query = await self.executor.execute_safe_query(
            params.query, params.params or []
        )
        payload = SafeQueryResult(
            rows=result.rows, fields=result.fields, row_count=result.row_count
        )
        return payload, QueryInfo(sql=final_query, affected_rows=result.row_count)

    def _build_tools(self) -> list[ToolDefinition]:
        """The fixed tool table."""
        table_name_schema = {"type": "string", "description": "Table name"}

        return [
            ToolDefinition(
                name="mysql_connect",
                description="Test the MySQL database connection",
                input_schema={
                    "type": "object",
                    "properties": {},
                    "required": [],
                    "additionalProperties": False,
                },
                params_model=NoParams,
                handler=self.handle_connect,
            ),
            ToolDefinition(
                name="mysql_list_tables",
                description="List all tables in the database",
                input_schema={
                    "type": "object",
                    "properties": {},
                    "required": [],
                    "additionalProperties": False,
                },
                params_model=NoParams,
                handler=self.handle_list_tables,
            ),
            ToolDefinition(
                name="mysql_describe_table",
                description="Get the structure of a table: columns, indexes, foreign keys and constraints",
                input_schema={
                    "type": "object",
                    "properties": {"tableName": table_name_schema},
                    "required": ["tableName"],
                    "additionalProperties": False,
                },
                params_model=TableParams,
                handler=self.handle_describe_table,
            ),
            ToolDefinition(
                name="mysql_table_stats",
                description="Get table statistics such as estimated row count and size",
                input_schema={
                    "type": "object",
                    "properties": {"tableName": table_name_schema},
                    "required": ["tableName"],
                    "additionalProperties": False,
                },
                params_model=TableParams,
                handler=self.handle_table_stats,
            ),
            ToolDefinition(
                name="mysql_analyze_column",
                description="Analyze a column: value distribution, NULL ratio, uniqueness or range",
                input_schema={
                    "type": "object",
                    "properties": {
                        "tableName": table_name_schema,
                        "columnName": {"type": "string", "description": "Column name"},
                        "analysisType": {
                            "type": "string",
                            "enum": [t.value for t in AnalysisType],
                            "description": "Analysis type",
                            "default": AnalysisType.DISTRIBUTION.value,
                        },
                    },
                    "required": ["tableName", "columnName"],
                    "additionalProperties": False,
                },
                params_model=AnalyzeColumnParams,
                handler=self.handle_analyze_column,
            ),
            ToolDefinition(
                name="mysql_execute_safe_query",
                description="Execute a read-only SELECT query (rows are capped when no LIMIT is given)",
                input_schema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "SQL query (SELECT only)",
                        },
                        "params": {
                            "type": "array",
                            "items": {
                                "type": ["string", "number", "boolean", "null"]
                            },
                            "description": "Positional parameters for ? placeholders",
                            "default": [],
                        },
                    },
                    "required": ["query"],
                    "additionalProperties": False,
                },
                params_model=SafeQueryParams,
                handler=self.handle_execute_safe_query,
                prepare=self.prepare_safe_query,
            ),
        ]
