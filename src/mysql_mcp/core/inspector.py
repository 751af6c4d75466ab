"""Metadata inspection over information_schema."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from mysql_mcp.errors import NotFoundError
from mysql_mcp.models.config import DatabaseConfig
from mysql_mcp.models.table import (
    ColumnInfo,
    ConstraintInfo,
    ForeignKeyInfo,
    IndexInfo,
    TableStats,
    TableStructure,
    normalize_data_type,
)

if TYPE_CHECKING:
    from mysql_mcp.core.connection import DatabaseConnection

logger = logging.getLogger(__name__)

LIST_TABLES_SQL = """
    SELECT TABLE_NAME AS table_name
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = ?
    ORDER BY TABLE_NAME
"""

TABLE_INFO_SQL = """
    SELECT
        TABLE_COMMENT AS table_comment,
        ENGINE AS engine,
        TABLE_COLLATION AS table_collation,
        CREATE_TIME AS create_time,
        UPDATE_TIME AS update_time
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
"""

COLUMNS_SQL = """
    SELECT
        COLUMN_NAME AS column_name,
        DATA_TYPE AS data_type,
        IS_NULLABLE AS is_nullable,
        COLUMN_DEFAULT AS column_default,
        COLUMN_COMMENT AS column_comment,
        EXTRA AS extra,
        ORDINAL_POSITION AS ordinal_position,
        CHARACTER_MAXIMUM_LENGTH AS character_maximum_length,
        NUMERIC_PRECISION AS numeric_precision,
        NUMERIC_SCALE AS numeric_scale
    FROM information_schema.COLUMNS
    WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
    ORDER BY ORDINAL_POSITION
"""

INDEXES_SQL = """
    SELECT
        INDEX_NAME AS index_name,
        COLUMN_NAME AS column_name,
        NON_UNIQUE AS non_unique,
        INDEX_TYPE AS index_type,
        CARDINALITY AS cardinality,
        INDEX_COMMENT AS index_comment
    FROM information_schema.STATISTICS
    WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
    ORDER BY INDEX_NAME = 'PRIMARY' DESC, INDEX_NAME, SEQ_IN_INDEX
"""

FOREIGN_KEYS_SQL = """
    SELECT
        k.CONSTRAINT_NAME AS constraint_name,
        k.COLUMN_NAME AS column_name,
        k.REFERENCED_TABLE_NAME AS referenced_table_name,
        k.REFERENCED_COLUMN_NAME AS referenced_column_name,
        r.UPDATE_RULE AS on_update,
        r.DELETE_RULE AS on_delete
    FROM information_schema.KEY_COLUMN_USAGE k
    JOIN information_schema.REFERENTIAL_CONSTRAINTS r
      ON r.CONSTRAINT_SCHEMA = k.CONSTRAINT_SCHEMA
     AND r.CONSTRAINT_NAME = k.CONSTRAINT_NAME
     AND r.TABLE_NAME = k.TABLE_NAME
    WHERE k.TABLE_SCHEMA = ? AND k.TABLE_NAME = ?
      AND k.REFERENCED_TABLE_NAME IS NOT NULL
    ORDER BY k.CONSTRAINT_NAME, k.ORDINAL_POSITION
"""

TABLE_STATS_SQL = """
    SELECT
        TABLE_ROWS AS table_rows,
        AVG_ROW_LENGTH AS avg_row_length,
        DATA_LENGTH AS data_length,
        INDEX_LENGTH AS index_length,
        AUTO_INCREMENT AS auto_increment,
        CREATE_TIME AS create_time,
        UPDATE_TIME AS update_time
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
"""


def _as_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    """Catalog numbers arrive as int, Decimal-derived str, or NULL."""
    if value is None or value == "":
        return default
    return int(value)


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


class MetadataInspector:
    """Schema catalog reader backed by information_schema queries."""

    def __init__(self, connection: "DatabaseConnection", config: DatabaseConfig):
        """
        Initialize metadata inspector.

        Args:
            connection: Database connection manager
            config: Database configuration (schema name and default charset)
        """
        self.connection = connection
        self.config = config

    @property
    def database(self) -> str:
        return self.config.database

    async def list_tables(self) -> list[str]:
        """
        List tables in the configured database.

        Returns:
            Table names in lexicographic order
        """
        result = await self.connection.query(LIST_TABLES_SQL, [self.database])
        return [row["table_name"] for row in result.rows]

    async def describe_table(self, table_name: str) -> TableStructure:
        """
        Read the structure of a table.

        The absence of a catalog row for ``table_name`` is the existence
        check; there is no separate existence query.

        Args:
            table_name: Table name

        Returns:
            Table structure with columns in ordinal order, indexes, foreign
            keys and derived constraints

        Raises:
            NotFoundError: If the table does not exist or is not visible
        """
        params = [self.database, table_name]
        table_result = await self.connection.query(TABLE_INFO_SQL, params)
        column_result = await self.connection.query(COLUMNS_SQL, params)

        table_row = table_result.first()
        if table_row is None:
            raise NotFoundError(
                f"Table '{table_name}' does not exist in database '{self.database}'"
            )

        columns = [self._column_from_row(row) for row in column_result.rows]
        indexes = await self._get_indexes(table_name)
        foreign_keys = await self._get_foreign_keys(table_name)

        collation = _as_str(table_row.get("table_collation"))

        structure = TableStructure(
            table_name=table_name,
            table_comment=_as_str(table_row.get("table_comment")),
            engine=table_row.get("engine"),
            charset=collation.split("_")[0] if collation else self.config.charset,
            collation=collation,
            create_time=_as_str(table_row.get("create_time")),
            update_time=table_row.get("update_time"),
            columns=columns,
            indexes=indexes,
            foreign_keys=foreign_keys,
            constraints=self._constraints_from(indexes, foreign_keys),
        )

        logger.debug(
            f"Described {table_name}: {structure.column_count} columns, "
            f"{len(indexes)} indexes"
        )
        return structure

    async def get_table_stats(self, table_name: str) -> TableStats:
        """
        Read catalog statistics for a table.

        Row counts are the catalog's estimate, not ``COUNT(*)``.

        Args:
            table_name: Table name

        Returns:
            Table statistics, numeric fields defaulting to 0

        Raises:
            NotFoundError: If the table does not exist or is not visible
        """
        result = await self.connection.query(
            TABLE_STATS_SQL, [self.database, table_name]
        )
        row = result.first()
        if row is None:
            raise NotFoundError(
                f"Table '{table_name}' does not exist in database '{self.database}'"
            )

        return TableStats(
            table_name=table_name,
            total_rows=_as_int(row.get("table_rows")),
            avg_row_size=_as_int(row.get("avg_row_length")),
            data_length=_as_int(row.get("data_length")),
            index_length=_as_int(row.get("index_length")),
            auto_increment=_as_int(row.get("auto_increment"), default=None),
            create_time=_as_str(row.get("create_time")),
            update_time=row.get("update_time"),
            last_analyzed=datetime.now(timezone.utc).isoformat(),
        )

    async def _get_indexes(self, table_name: str) -> list[IndexInfo]:
        """Group STATISTICS rows into one entry per index."""
        result = await self.connection.query(INDEXES_SQL, [self.database, table_name])

        indexes: dict[str, IndexInfo] = {}
        for row in result.rows:
            name = row["index_name"]
            index = indexes.get(name)
            if index is None:
                index = IndexInfo(
                    index_name=name,
                    column_names=[],
                    index_type=_as_str(row.get("index_type")) or "BTREE",
                    is_unique=not _as_int(row.get("non_unique")),
                    is_primary=name == "PRIMARY",
                    cardinality=_as_int(row.get("cardinality"), default=None),
                    comment=_as_str(row.get("index_comment")),
                )
                indexes[name] = index
            if row.get("column_name"):
                index.column_names.append(row["column_name"])
        return list(indexes.values())

    async def _get_foreign_keys(self, table_name: str) -> list[ForeignKeyInfo]:
        result = await self.connection.query(
            FOREIGN_KEYS_SQL, [self.database, table_name]
        )
        return [
            ForeignKeyInfo(
                constraint_name=row["constraint_name"],
                column_name=row["column_name"],
                referenced_table_name=row["referenced_table_name"],
                referenced_column_name=row["referenced_column_name"],
                on_update=_as_str(row.get("on_update")) or "RESTRICT",
                on_delete=_as_str(row.get("on_delete")) or "RESTRICT",
            )
            for row in result.rows
        ]

    def _column_from_row(self, row: dict[str, Any]) -> ColumnInfo:
        """Convert an information_schema.COLUMNS row to ColumnInfo."""
        default = row.get("column_default")
        return ColumnInfo(
            column_name=row["column_name"],
            data_type=normalize_data_type(row.get("data_type")),
            max_length=_as_int(row.get("character_maximum_length"), default=None),
            numeric_precision=_as_int(row.get("numeric_precision"), default=None),
            numeric_scale=_as_int(row.get("numeric_scale"), default=None),
            is_nullable=row.get("is_nullable") == "YES",
            column_default=None if default is None else str(default),
            column_comment=_as_str(row.get("column_comment")),
            extra=_as_str(row.get("extra")),
            position=_as_int(row.get("ordinal_position")),
        )

    def _constraints_from(
        self, indexes: list[IndexInfo], foreign_keys: list[ForeignKeyInfo]
    ) -> list[ConstraintInfo]:
        """Derive PRIMARY KEY / UNIQUE / FOREIGN KEY constraints."""
        constraints = []
        for index in indexes:
            if index.is_primary:
                constraint_type = "PRIMARY KEY"
            elif index.is_unique:
                constraint_type = "UNIQUE"
            else:
                continue
            constraints.append(
                ConstraintInfo(
                    constraint_name=index.index_name,
                    constraint_type=constraint_type,
                    column_names=list(index.column_names),
                )
            )

        fk_columns: dict[str, list[str]] = {}
        for fk in foreign_keys:
            fk_columns.setdefault(fk.constraint_name, []).append(fk.column_name)
        for name, cols in fk_columns.items():
            constraints.append(
                ConstraintInfo(
                    constraint_name=name,
                    constraint_type="FOREIGN KEY",
                    column_names=cols,
                )
            )
        return constraints
