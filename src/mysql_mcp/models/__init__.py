"""Pydantic models for configuration, catalog metadata, and results."""

from .analysis import (
    AnalysisResult,
    AnalysisType,
    ColumnAnalysis,
    NullAnalysis,
    RangeAnalysis,
    UniqueAnalysis,
    ValueDistribution,
)
from .config import DatabaseConfig, PoolConfig, SecurityConfig
from .query import FieldInfo, QueryResult, SafeQueryResult
from .response import MCPError, MCPResponse, QueryInfo, ResponseMetadata
from .table import (
    ColumnInfo,
    ConstraintInfo,
    ForeignKeyInfo,
    IndexInfo,
    MySQLDataType,
    TableStats,
    TableStructure,
    normalize_data_type,
)

__all__ = [
    "AnalysisResult",
    "AnalysisType",
    "ColumnAnalysis",
    "NullAnalysis",
    "RangeAnalysis",
    "UniqueAnalysis",
    "ValueDistribution",
    "DatabaseConfig",
    "PoolConfig",
    "SecurityConfig",
    "FieldInfo",
    "QueryResult",
    "SafeQueryResult",
    "MCPError",
    "MCPResponse",
    "QueryInfo",
    "ResponseMetadata",
    "ColumnInfo",
    "ConstraintInfo",
    "ForeignKeyInfo",
    "IndexInfo",
    "MySQLDataType",
    "TableStats",
    "TableStructure",
    "normalize_data_type",
]
