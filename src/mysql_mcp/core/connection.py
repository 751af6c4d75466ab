"""Database connection management with SQLAlchemy."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional, Sequence

from pymysql.constants import FIELD_TYPE
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from mysql_mcp.errors import DatabaseConnectionError, DatabaseError
from mysql_mcp.models.config import DatabaseConfig
from mysql_mcp.models.query import FieldInfo, QueryResult
from mysql_mcp.models.table import DataTypeTag, MySQLDataType
from mysql_mcp.utils import bind_positional, convert_rows_to_json_safe

logger = logging.getLogger(__name__)

_FIELD_TYPE_TAGS: dict[int, MySQLDataType] = {
    FIELD_TYPE.DECIMAL: MySQLDataType.DECIMAL,
    FIELD_TYPE.NEWDECIMAL: MySQLDataType.DECIMAL,
    FIELD_TYPE.TINY: MySQLDataType.TINYINT,
    FIELD_TYPE.SHORT: MySQLDataType.SMALLINT,
    FIELD_TYPE.INT24: MySQLDataType.MEDIUMINT,
    FIELD_TYPE.LONG: MySQLDataType.INT,
    FIELD_TYPE.LONGLONG: MySQLDataType.BIGINT,
    FIELD_TYPE.FLOAT: MySQLDataType.FLOAT,
    FIELD_TYPE.DOUBLE: MySQLDataType.DOUBLE,
    FIELD_TYPE.BIT: MySQLDataType.BIT,
    FIELD_TYPE.TIMESTAMP: MySQLDataType.TIMESTAMP,
    FIELD_TYPE.DATE: MySQLDataType.DATE,
    FIELD_TYPE.NEWDATE: MySQLDataType.DATE,
    FIELD_TYPE.TIME: MySQLDataType.TIME,
    FIELD_TYPE.DATETIME: MySQLDataType.DATETIME,
    FIELD_TYPE.YEAR: MySQLDataType.YEAR,
    FIELD_TYPE.JSON: MySQLDataType.JSON,
    FIELD_TYPE.VARCHAR: MySQLDataType.VARCHAR,
    FIELD_TYPE.VAR_STRING: MySQLDataType.VARCHAR,
    FIELD_TYPE.STRING: MySQLDataType.CHAR,
    FIELD_TYPE.ENUM: MySQLDataType.ENUM,
    FIELD_TYPE.SET: MySQLDataType.SET,
    FIELD_TYPE.TINY_BLOB: MySQLDataType.TINYBLOB,
    FIELD_TYPE.MEDIUM_BLOB: MySQLDataType.MEDIUMBLOB,
    FIELD_TYPE.LONG_BLOB: MySQLDataType.LONGBLOB,
    FIELD_TYPE.BLOB: MySQLDataType.BLOB,
    FIELD_TYPE.GEOMETRY: MySQLDataType.GEOMETRY,
}

_FIELD_TYPE_NAMES: dict[int, str] = {
    value: name
    for name, value in vars(FIELD_TYPE).items()
    if name.isupper() and isinstance(value, int)
}


def field_type_tag(type_code: Any) -> DataTypeTag:
    """
    Map a driver field type code onto the type tag.

    Args:
        type_code: ``type_code`` from the DB-API cursor description

    Returns:
        Known type tag, the driver's constant name for codes without a tag,
        or ``"UNKNOWN"``
    """
    if type_code in _FIELD_TYPE_TAGS:
        return _FIELD_TYPE_TAGS[type_code]
    if type_code in _FIELD_TYPE_NAMES:
        return _FIELD_TYPE_NAMES[type_code]
    return "UNKNOWN"


def _error_message(exc: SQLAlchemyError) -> str:
    """Driver message without SQLAlchemy's statement/background decoration."""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc).split("\n")[0]


class DatabaseConnection:
    """Manages the SQLAlchemy async engine and connection pool."""

    def __init__(self, config: DatabaseConfig):
        """
        Initialize database connection.

        Args:
            config: Database configuration with credentials and pool settings
        """
        self.config = config
        self.engine: Optional[AsyncEngine] = None
        self._in_flight = 0

    async def initialize(self) -> None:
        """Create the async engine (no connection is opened yet)."""
        if self.engine is not None:
            return  # Already initialized

        pool = self.config.pool
        self.engine = create_async_engine(
            self.config.url,
            pool_size=pool.connection_limit,
            max_overflow=0,
            pool_timeout=pool.acquire_timeout / 1000,
            pool_pre_ping=True,  # Verify connections before using
        )

    async def connect(self) -> None:
        """
        Initialize the pool and verify the database is reachable.

        Raises:
            DatabaseConnectionError: On unreachable host or rejected credentials
        """
        await self.initialize()
        try:
            async with self.get_connection() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Database connection failed: {_error_message(e)}"
            ) from e

        logger.info(f"Connected to {self.config.sanitized_url}")

    async def disconnect(self) -> None:
        """Dispose of the connection pool. Safe to call more than once."""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[AsyncConnection, None]:
        """
        Get a connection from the pool as an async context manager.

        The connection is returned to the pool on every exit path.

        Yields:
            AsyncConnection in a read-only session

        Raises:
            DatabaseConnectionError: If the engine is not initialized
            DatabaseError: If the request queue is full
        """
        if self.engine is None:
            raise DatabaseConnectionError(
                "Database not connected. Call connect() first."
            )

        pool = self.config.pool
        if pool.queue_limit and self._in_flight >= pool.connection_limit + pool.queue_limit:
            raise DatabaseError(
                f"Connection queue limit reached ({pool.queue_limit} waiting)",
                code="QUEUE_LIMIT_EXCEEDED",
            )

        self._in_flight += 1
        try:
            async with self.engine.connect() as conn:
                await self._prepare_session(conn)
                yield conn
        finally:
            self._in_flight -= 1

    async def _prepare_session(self, conn: AsyncConnection) -> None:
        """Make the session read-only and apply timeout and time zone."""
        await conn.execute(
            text(
                "SET SESSION transaction_read_only = ON, "
                "max_execution_time = :timeout, time_zone = :tz"
            ),
            {"timeout": self.config.pool.timeout, "tz": self.config.timezone},
        )

    async def query(
        self, sql: str, params: Optional[Sequence[Any]] = None
    ) -> QueryResult:
        """
        Execute one statement and collect its rows and field metadata.

        Args:
            sql: Statement text with ``?`` placeholders
            params: Positional parameter values

        Returns:
            Query result with JSON-safe rows

        Raises:
            ValidationError: If placeholders and params do not match
            DatabaseError: On any driver or pool failure
        """
        statement, bind = bind_positional(sql, params or [])
        start_time = time.perf_counter()

        try:
            async with self.get_connection() as conn:
                result = await conn.execute(text(statement), bind)
                if not result.returns_rows:
                    return QueryResult(
                        execution_time=(time.perf_counter() - start_time) * 1000
                    )

                columns = list(result.keys())
                fields = self._describe_fields(result, columns)
                rows_data = result.fetchall()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Query execution failed: {_error_message(e)}") from e

        rows = convert_rows_to_json_safe([dict(zip(columns, row)) for row in rows_data])
        execution_time = (time.perf_counter() - start_time) * 1000

        return QueryResult(
            rows=rows,
            fields=fields,
            execution_time=execution_time,
            row_count=len(rows),
        )

    def _describe_fields(self, result: Any, columns: list[str]) -> list[FieldInfo]:
        """Build field metadata from the DB-API cursor description."""
        cursor = getattr(result, "cursor", None)
        description = getattr(cursor, "description", None) or []

        if len(description) != len(columns):
            return [FieldInfo(name=name, type="UNKNOWN") for name in columns]

        fields = []
        for name, desc in zip(columns, description):
            # (name, type_code, display_size, internal_size, precision, scale, null_ok)
            null_ok = desc[6] if len(desc) > 6 else None
            fields.append(
                FieldInfo(
                    name=name,
                    type=field_type_tag(desc[1]),
                    length=desc[3] if len(desc) > 3 else None,
                    nullable=True if null_ok is None else bool(null_ok),
                )
            )
        return fields

    @property
    def database(self) -> str:
        """Configured database name."""
        return self.config.database

    @property
    def is_initialized(self) -> bool:
        """Check if engine is initialized."""
        return self.engine is not None

    async def test_connection(self) -> bool:
        """
        Test database connectivity.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            async with self.get_connection() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, DatabaseError) as e:
            logger.warning(f"Connection test failed: {e}")
            return False

    async def get_version(self) -> str:
        """
        Get database version string.

        Returns:
            Database version string
        """
        result = await self.query("SELECT VERSION() AS version")
        row = result.first()
        return str(row["version"]) if row else "Unknown"

    async def __aenter__(self) -> "DatabaseConnection":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.disconnect()
