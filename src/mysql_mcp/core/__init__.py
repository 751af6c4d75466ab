"""Core database components: connection, catalog, analysis, safe queries."""

from mysql_mcp.core.analyzer import StatisticsAnalyzer
from mysql_mcp.core.connection import DatabaseConnection
from mysql_mcp.core.executor import QueryExecutor
from mysql_mcp.core.inspector import MetadataInspector
from mysql_mcp.core.validator import QueryValidator

__all__ = [
    "DatabaseConnection",
    "MetadataInspector",
    "StatisticsAnalyzer",
    "QueryExecutor",
    "QueryValidator",
]
