"""Pytest configuration and shared fixtures for mysql-mcp tests"""

import os
from typing import Any, AsyncGenerator, Optional

import pytest
from dotenv import load_dotenv

from mysql_mcp.core import DatabaseConnection
from mysql_mcp.errors import DatabaseConnectionError
from mysql_mcp.models.config import DatabaseConfig, PoolConfig, SecurityConfig
from mysql_mcp.models.query import FieldInfo, QueryResult
from mysql_mcp.models.table import ColumnInfo, IndexInfo, TableStructure

# Load environment variables
load_dotenv()


class FakeConnection:
    """In-memory stand-in for DatabaseConnection.

    Records every statement passed to ``query`` and answers with the first
    scripted result whose SQL fragment occurs in the statement. Unmatched
    statements get an empty result.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.calls: list[tuple[str, list[Any]]] = []
        self.connected = False
        self.connect_error: Optional[Exception] = None
        self.query_error: Optional[Exception] = None
        self._responses: list[tuple[str, QueryResult]] = []

    @property
    def database(self) -> str:
        return self.config.database

    def add_response(
        self,
        fragment: str,
        rows: Optional[list[dict[str, Any]]] = None,
        fields: Optional[list[FieldInfo]] = None,
    ) -> None:
        rows = rows or []
        self._responses.append(
            (
                fragment,
                QueryResult(
                    rows=rows,
                    fields=fields or [],
                    execution_time=1.5,
                    row_count=len(rows),
                ),
            )
        )

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.calls]

    async def initialize(self) -> None:
        pass

    async def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def test_connection(self) -> bool:
        return self.connect_error is None

    async def query(
        self, sql: str, params: Optional[list[Any]] = None
    ) -> QueryResult:
        self.calls.append((sql, list(params or [])))
        if self.query_error is not None:
            raise self.query_error
        for fragment, result in self._responses:
            if fragment in sql:
                return result
        return QueryResult()


# ==================== Configuration Fixtures ====================


@pytest.fixture
def database_config() -> DatabaseConfig:
    """Database configuration for unit tests (never connected)"""
    return DatabaseConfig(
        host="localhost",
        port=3306,
        database="test_mcp_mysql",
        username="test_user",
        password="test_password",
        pool=PoolConfig(connection_limit=5, acquire_timeout=10000, timeout=10000),
    )


@pytest.fixture
def security_config() -> SecurityConfig:
    """Default validator settings"""
    return SecurityConfig()


@pytest.fixture
def fake_connection(database_config: DatabaseConfig) -> FakeConnection:
    """Scripted connection that records issued SQL"""
    return FakeConnection(database_config)


@pytest.fixture
def unreachable_error() -> DatabaseConnectionError:
    return DatabaseConnectionError(
        "Database connection failed: (2003, \"Can't connect to MySQL server on 'localhost'\")"
    )


# ==================== Data Factories ====================


@pytest.fixture
def table_structure_factory():
    """Factory for TableStructure fixtures (test_users by default)"""

    def create(table_name: str = "test_users", **overrides: Any) -> TableStructure:
        data: dict[str, Any] = {
            "table_name": table_name,
            "table_comment": "Test users table",
            "engine": "InnoDB",
            "charset": "utf8mb4",
            "collation": "utf8mb4_unicode_ci",
            "create_time": "2024-01-15T10:30:00",
            "update_time": None,
            "columns": [
                ColumnInfo(
                    column_name="id",
                    data_type="BIGINT",
                    numeric_precision=19,
                    numeric_scale=0,
                    is_nullable=False,
                    extra="auto_increment",
                    column_comment="Primary key",
                    position=1,
                ),
                ColumnInfo(
                    column_name="username",
                    data_type="VARCHAR",
                    max_length=50,
                    is_nullable=False,
                    column_comment="Login name",
                    position=2,
                ),
                ColumnInfo(
                    column_name="email",
                    data_type="VARCHAR",
                    max_length=255,
                    is_nullable=True,
                    position=3,
                ),
            ],
            "indexes": [
                IndexInfo(
                    index_name="PRIMARY",
                    column_names=["id"],
                    index_type="BTREE",
                    is_unique=True,
                    is_primary=True,
                )
            ],
        }
        data.update(overrides)
        return TableStructure(**data)

    return create


# ==================== MySQL Fixtures ====================


@pytest.fixture(scope="session")
def mysql_test_config() -> Optional[DatabaseConfig]:
    """MySQL test database configuration from TEST_DB_* environment"""
    database = os.getenv("TEST_DB_NAME")
    if not database:
        return None
    return DatabaseConfig(
        host=os.getenv("TEST_DB_HOST", "localhost"),
        port=int(os.getenv("TEST_DB_PORT", "3306")),
        database=database,
        username=os.getenv("TEST_DB_USER", "test_user"),
        password=os.getenv("TEST_DB_PASSWORD", "test_password"),
        pool=PoolConfig(connection_limit=5, acquire_timeout=10000, timeout=10000),
    )


@pytest.fixture
async def mysql_config(mysql_test_config: Optional[DatabaseConfig]) -> DatabaseConfig:
    """MySQL configuration, skipping when no test database is configured"""
    if mysql_test_config is None:
        pytest.skip("TEST_DB_NAME not set in environment")
    return mysql_test_config


@pytest.fixture
async def mysql_connection(
    mysql_config: DatabaseConfig,
) -> AsyncGenerator[DatabaseConnection, None]:
    """MySQL database connection with proper cleanup"""
    connection = DatabaseConnection(mysql_config)
    try:
        await connection.connect()
    except DatabaseConnectionError as e:
        await connection.disconnect()
        pytest.skip(f"MySQL test database unreachable: {e}")
    try:
        yield connection
    finally:
        await connection.disconnect()
