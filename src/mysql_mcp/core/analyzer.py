"""Column statistics: value distribution, NULL ratio, uniqueness, range."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional, Union

from mysql_mcp.errors import ValidationError
from mysql_mcp.models.analysis import (
    AnalysisResult,
    AnalysisType,
    ColumnAnalysis,
    NullAnalysis,
    RangeAnalysis,
    UniqueAnalysis,
    ValueDistribution,
)
from mysql_mcp.models.table import MySQLDataType
from mysql_mcp.utils import quote_identifier

if TYPE_CHECKING:
    from mysql_mcp.core.connection import DatabaseConnection

logger = logging.getLogger(__name__)

DISTRIBUTION_LIMIT = 20

NUMERIC_TYPES = frozenset(
    t.value
    for t in (
        MySQLDataType.TINYINT,
        MySQLDataType.SMALLINT,
        MySQLDataType.MEDIUMINT,
        MySQLDataType.INT,
        MySQLDataType.INTEGER,
        MySQLDataType.BIGINT,
        MySQLDataType.DECIMAL,
        MySQLDataType.NUMERIC,
        MySQLDataType.FLOAT,
        MySQLDataType.DOUBLE,
        MySQLDataType.REAL,
    )
)


def _percentage(part: int, total: int) -> float:
    return part / total * 100 if total else 0.0


def _as_count(value: Any) -> int:
    """Aggregates come back as int, Decimal-derived str, or NULL."""
    if value is None:
        return 0
    return int(float(value)) if isinstance(value, str) else int(value)


def _as_number(value: Any) -> Optional[Union[int, float]]:
    """Numeric view of an aggregate value, or None for non-numeric values."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _is_numeric_bound(value: Any, type_tag: Optional[str]) -> bool:
    """Whether a MIN/MAX value came from a numeric column.

    Decimal bounds arrive as strings, so the reported result type decides;
    without type metadata only native numbers count.
    """
    if value is None or isinstance(value, bool):
        return False
    if type_tag is not None:
        return type_tag in NUMERIC_TYPES
    return isinstance(value, (int, float))


class StatisticsAnalyzer:
    """Per-column aggregate analysis.

    Table and column names are interpolated into the generated SQL as
    backtick-quoted identifiers. Callers are expected to pass names obtained
    from ``list_tables``/``describe_table``; anything outside
    ``[A-Za-z0-9_$]`` is rejected before a query is issued.
    """

    def __init__(self, connection: "DatabaseConnection"):
        """
        Initialize statistics analyzer.

        Args:
            connection: Database connection manager
        """
        self.connection = connection

    async def analyze_column(
        self,
        table_name: str,
        column_name: str,
        analysis_type: Union[AnalysisType, str] = AnalysisType.DISTRIBUTION,
    ) -> ColumnAnalysis:
        """
        Analyze one column of a table.

        Args:
            table_name: Table name
            column_name: Column name
            analysis_type: distribution, nulls, unique or range

        Returns:
            Column analysis with only the requested result populated

        Raises:
            ValidationError: On an unsupported analysis type or invalid
                identifier
            DatabaseError: If a query fails (including unknown table/column)
        """
        try:
            kind = AnalysisType(analysis_type)
        except ValueError as e:
            allowed = ", ".join(t.value for t in AnalysisType)
            raise ValidationError(
                f"Unsupported analysis type: {analysis_type}. Expected one of: {allowed}",
                code="INVALID_ANALYSIS_TYPE",
            ) from e

        table = quote_identifier(table_name)
        column = quote_identifier(column_name)

        if kind == AnalysisType.DISTRIBUTION:
            result = AnalysisResult(
                distribution=await self._analyze_distribution(table, column)
            )
        elif kind == AnalysisType.NULLS:
            result = AnalysisResult(
                null_analysis=await self._analyze_nulls(table, column)
            )
        elif kind == AnalysisType.UNIQUE:
            result = AnalysisResult(
                unique_analysis=await self._analyze_unique(table, column)
            )
        else:
            result = AnalysisResult(range_analysis=await self._analyze_range(table, column))

        logger.debug(f"Analyzed {table_name}.{column_name} ({kind.value})")

        return ColumnAnalysis(
            analysis_type=kind,
            table_name=table_name,
            column_name=column_name,
            result=result,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    async def _analyze_distribution(
        self, table: str, column: str
    ) -> list[ValueDistribution]:
        """Top values by frequency, as a share of non-null rows."""
        groups = await self.connection.query(
            f"SELECT {column} AS value, COUNT(*) AS count "
            f"FROM {table} "
            f"WHERE {column} IS NOT NULL "
            f"GROUP BY {column} "
            f"ORDER BY count DESC "
            f"LIMIT {DISTRIBUTION_LIMIT}"
        )
        totals = await self.connection.query(
            f"SELECT COUNT(*) AS total FROM {table} WHERE {column} IS NOT NULL"
        )

        total_row = totals.first() or {}
        total = _as_count(total_row.get("total"))

        return [
            ValueDistribution(
                value=row["value"],
                count=_as_count(row["count"]),
                percentage=_percentage(_as_count(row["count"]), total),
            )
            for row in groups.rows
        ]

    async def _analyze_nulls(self, table: str, column: str) -> NullAnalysis:
        result = await self.connection.query(
            f"SELECT COUNT(*) AS total_rows, "
            f"SUM(CASE WHEN {column} IS NULL THEN 1 ELSE 0 END) AS null_rows "
            f"FROM {table}"
        )
        row = result.first() or {}
        total_rows = _as_count(row.get("total_rows"))
        # SUM over an empty table is NULL
        null_rows = _as_count(row.get("null_rows"))

        return NullAnalysis(
            total_rows=total_rows,
            null_rows=null_rows,
            null_percentage=_percentage(null_rows, total_rows),
        )

    async def _analyze_unique(self, table: str, column: str) -> UniqueAnalysis:
        result = await self.connection.query(
            f"SELECT COUNT(*) AS total_rows, COUNT(DISTINCT {column}) AS unique_rows "
            f"FROM {table} WHERE {column} IS NOT NULL"
        )
        row = result.first() or {}
        total_rows = _as_count(row.get("total_rows"))
        unique_rows = _as_count(row.get("unique_rows"))

        return UniqueAnalysis(
            total_rows=total_rows,
            unique_rows=unique_rows,
            unique_percentage=_percentage(unique_rows, total_rows),
        )

    async def _analyze_range(self, table: str, column: str) -> RangeAnalysis:
        """MIN/MAX for any column; AVG/STDDEV only for numeric columns."""
        result = await self.connection.query(
            f"SELECT MIN({column}) AS min_value, MAX({column}) AS max_value, "
            f"AVG({column}) AS avg_value, STDDEV({column}) AS standard_deviation "
            f"FROM {table}"
        )
        row = result.first() or {}
        min_value = row.get("min_value")
        max_value = row.get("max_value")

        # Text columns can hold digit strings; trust the result type, not the value
        field_types = {f.name: f.type for f in result.fields}
        if not (
            _is_numeric_bound(min_value, field_types.get("min_value"))
            and _is_numeric_bound(max_value, field_types.get("max_value"))
        ):
            return RangeAnalysis(min_value=min_value, max_value=max_value)

        avg_value = _as_number(row.get("avg_value"))
        deviation = _as_number(row.get("standard_deviation"))
        return RangeAnalysis(
            min_value=_as_number(min_value),
            max_value=_as_number(max_value),
            avg_value=None if avg_value is None else float(avg_value),
            standard_deviation=None if deviation is None else float(deviation),
        )
