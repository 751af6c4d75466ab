"""Table, column, index, and statistics models."""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MySQLDataType(str, Enum):
    """Known MySQL column types, as reported upper-cased by the catalog."""

    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    MEDIUMINT = "MEDIUMINT"
    INT = "INT"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    DECIMAL = "DECIMAL"
    NUMERIC = "NUMERIC"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    REAL = "REAL"
    BIT = "BIT"
    BOOLEAN = "BOOLEAN"
    SERIAL = "SERIAL"
    CHAR = "CHAR"
    VARCHAR = "VARCHAR"
    BINARY = "BINARY"
    VARBINARY = "VARBINARY"
    TINYTEXT = "TINYTEXT"
    TEXT = "TEXT"
    MEDIUMTEXT = "MEDIUMTEXT"
    LONGTEXT = "LONGTEXT"
    TINYBLOB = "TINYBLOB"
    BLOB = "BLOB"
    MEDIUMBLOB = "MEDIUMBLOB"
    LONGBLOB = "LONGBLOB"
    ENUM = "ENUM"
    SET = "SET"
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"
    TIMESTAMP = "TIMESTAMP"
    YEAR = "YEAR"
    JSON = "JSON"
    GEOMETRY = "GEOMETRY"
    POINT = "POINT"
    LINESTRING = "LINESTRING"
    POLYGON = "POLYGON"
    MULTIPOINT = "MULTIPOINT"
    MULTILINESTRING = "MULTILINESTRING"
    MULTIPOLYGON = "MULTIPOLYGON"
    GEOMETRYCOLLECTION = "GEOMETRYCOLLECTION"


# Open-world: unknown native types are kept as their upper-cased literal.
DataTypeTag = Union[MySQLDataType, str]


def normalize_data_type(native_type: Optional[str]) -> DataTypeTag:
    """
    Map a database-native type name onto the type tag.

    Args:
        native_type: Type name as reported by the catalog (any case)

    Returns:
        The matching ``MySQLDataType`` member, or the upper-cased literal
        name when the type is not in the enumeration
    """
    if not native_type:
        return ""
    upper = str(native_type).strip().upper()
    try:
        return MySQLDataType(upper)
    except ValueError:
        return upper


class ColumnInfo(BaseModel):
    """Information about a table column."""

    model_config = ConfigDict(use_enum_values=True)

    column_name: str = Field(..., description="Column name")
    data_type: DataTypeTag = Field(..., description="Normalized upper-case type tag")
    max_length: Optional[int] = Field(
        None, description="Maximum length for string types"
    )
    numeric_precision: Optional[int] = Field(
        None, description="Precision for numeric types"
    )
    numeric_scale: Optional[int] = Field(None, description="Scale for numeric types")
    is_nullable: bool = Field(..., description="Whether column allows NULL")
    column_default: Optional[str] = Field(None, description="Default value")
    column_comment: str = Field(default="", description="Column comment")
    extra: str = Field(default="", description="Extra attributes (auto_increment, ...)")
    position: int = Field(..., ge=1, description="1-based ordinal position")


class IndexInfo(BaseModel):
    """Information about a table index."""

    index_name: str = Field(..., description="Index name")
    column_names: list[str] = Field(..., description="Indexed columns in order")
    index_type: str = Field(default="BTREE", description="BTREE, HASH, FULLTEXT, ...")
    is_unique: bool = Field(default=False, description="Whether index is unique")
    is_primary: bool = Field(default=False, description="Whether this is the PK")
    cardinality: Optional[int] = Field(None, description="Estimated cardinality")
    comment: str = Field(default="", description="Index comment")


class ForeignKeyInfo(BaseModel):
    """A single-column foreign key reference."""

    constraint_name: str = Field(..., description="Constraint name")
    column_name: str = Field(..., description="Referencing column")
    referenced_table_name: str = Field(..., description="Referenced table")
    referenced_column_name: str = Field(..., description="Referenced column")
    on_update: str = Field(default="RESTRICT", description="ON UPDATE action")
    on_delete: str = Field(default="RESTRICT", description="ON DELETE action")


class ConstraintInfo(BaseModel):
    """Information about a table constraint."""

    constraint_name: str = Field(..., description="Constraint name")
    constraint_type: str = Field(
        ..., description="PRIMARY KEY, UNIQUE, FOREIGN KEY, or CHECK"
    )
    column_names: list[str] = Field(..., description="Constrained columns")
    check_clause: Optional[str] = Field(None, description="CHECK expression")


class TableStructure(BaseModel):
    """Structure of a table as read from the catalog."""

    table_name: str = Field(..., description="Table name")
    table_comment: str = Field(default="", description="Table comment")
    engine: Optional[str] = Field(None, description="Storage engine")
    charset: str = Field(default="", description="Character set")
    collation: str = Field(default="", description="Table collation")
    create_time: str = Field(default="", description="Creation timestamp (ISO)")
    update_time: Optional[str] = Field(None, description="Last update timestamp")
    columns: list[ColumnInfo] = Field(
        default_factory=list, description="Columns in ordinal order"
    )
    indexes: Optional[list[IndexInfo]] = Field(None, description="Indexes")
    foreign_keys: Optional[list[ForeignKeyInfo]] = Field(
        None, description="Foreign keys"
    )
    constraints: Optional[list[ConstraintInfo]] = Field(
        None, description="Constraints"
    )

    @property
    def column_count(self) -> int:
        """Get number of columns."""
        return len(self.columns)

    @property
    def primary_key_columns(self) -> list[str]:
        """Get primary key column names."""
        for index in self.indexes or []:
            if index.is_primary:
                return list(index.column_names)
        return []

    def get_column(self, name: str) -> Optional[ColumnInfo]:
        """Get column by name."""
        for col in self.columns:
            if col.column_name == name:
                return col
        return None


class TableStats(BaseModel):
    """Catalog statistics for a table.

    ``total_rows`` comes from the catalog estimate (``TABLE_ROWS``), not an
    exact ``COUNT(*)``. For InnoDB it can be off by a wide margin.
    """

    table_name: str = Field(..., description="Table name")
    total_rows: int = Field(
        default=0, description="Approximate row count from catalog statistics"
    )
    row_count_is_approximate: bool = Field(
        default=True, description="Always true: total_rows is an estimate"
    )
    avg_row_size: int = Field(default=0, description="Average row length in bytes")
    data_length: int = Field(default=0, description="Data size in bytes")
    index_length: int = Field(default=0, description="Index size in bytes")
    auto_increment: Optional[int] = Field(
        None, description="Next AUTO_INCREMENT value"
    )
    create_time: str = Field(default="", description="Creation timestamp (ISO)")
    update_time: Optional[str] = Field(None, description="Last update timestamp")
    last_analyzed: str = Field(..., description="When these stats were read (ISO)")

    @property
    def total_size_bytes(self) -> int:
        """Data plus index size."""
        return self.data_length + self.index_length

    @property
    def size_human(self) -> str:
        """Human-readable total size."""
        size = float(self.total_size_bytes)
        for unit in ["B", "KB", "MB", "GB", "TB"]:
            if size < 1024.0:
                return f"{size:.2f} {unit}"
            size /= 1024.0
        return f"{size:.2f} PB"
