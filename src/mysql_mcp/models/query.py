"""Query execution result models."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from mysql_mcp.models.table import DataTypeTag


class FieldInfo(BaseModel):
    """Metadata for one result column."""

    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., description="Column label")
    type: DataTypeTag = Field(..., description="Normalized type tag")
    length: Optional[int] = Field(None, description="Declared display length")
    nullable: bool = Field(default=True, description="Whether NULL can appear")
    default_value: Optional[str] = Field(None, description="Default value")
    comment: str = Field(default="", description="Column comment")
    extra: str = Field(default="", description="Extra attributes")


class QueryResult(BaseModel):
    """Result of a query execution."""

    rows: list[dict[str, Any]] = Field(
        default_factory=list, description="Result rows as ordered dictionaries"
    )
    fields: list[FieldInfo] = Field(
        default_factory=list, description="Result column metadata in order"
    )
    execution_time: float = Field(
        default=0.0, description="Execution time in milliseconds"
    )
    row_count: int = Field(default=0, description="Number of rows returned")

    @property
    def is_empty(self) -> bool:
        """Check if result set is empty."""
        return self.row_count == 0

    @property
    def columns(self) -> list[str]:
        """Column names in order."""
        return [f.name for f in self.fields]

    def first(self) -> Optional[dict[str, Any]]:
        """First row, or None for an empty result."""
        return self.rows[0] if self.rows else None

    def get_column_values(self, column: str) -> list[Any]:
        """Extract all values for a specific column."""
        return [row.get(column) for row in self.rows]


class SafeQueryResult(BaseModel):
    """Payload of the safe-query tool."""

    rows: list[dict[str, Any]] = Field(..., description="Result rows")
    fields: list[FieldInfo] = Field(..., description="Result column metadata")
    row_count: int = Field(..., description="Number of rows returned")
    truncated: bool = Field(
        default=False, description="Whether rows were dropped to fit the response size"
    )
    rows_omitted: int = Field(default=0, description="Rows dropped from the response")
