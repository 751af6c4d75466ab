"""Database and query-safety configuration models."""

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from sqlalchemy.engine import URL


class PoolConfig(BaseModel):
    """Connection pool sizing and timeouts."""

    model_config = ConfigDict(frozen=True)

    connection_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum number of connections in use at once",
    )
    queue_limit: int = Field(
        default=0,
        ge=0,
        description="Maximum requests waiting for a connection (0 = unbounded)",
    )
    acquire_timeout: int = Field(
        default=30000,
        ge=1000,
        description="Connection checkout timeout in milliseconds",
    )
    timeout: int = Field(
        default=30000,
        ge=1000,
        description="Statement execution timeout in milliseconds",
    )


class DatabaseConfig(BaseModel):
    """Configuration for the MySQL connection and pool."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "examples": [
                {
                    "host": "localhost",
                    "port": 3306,
                    "database": "shop",
                    "username": "reader",
                    "password": "secret",
                    "charset": "utf8mb4",
                    "timezone": "+00:00",
                    "pool": {
                        "connection_limit": 10,
                        "queue_limit": 0,
                        "acquire_timeout": 30000,
                        "timeout": 30000,
                    },
                }
            ]
        },
    )

    host: str = Field(..., min_length=1, description="Database host")
    port: int = Field(default=3306, ge=1, le=65535, description="Database port")
    database: str = Field(..., min_length=1, description="Database (schema) name")
    username: str = Field(..., min_length=1, description="Database user")
    password: SecretStr = Field(default=SecretStr(""), description="Database password")
    charset: str = Field(default="utf8mb4", description="Connection character set")
    timezone: str = Field(default="+00:00", description="Session time zone")
    pool: PoolConfig = Field(default_factory=PoolConfig)

    @property
    def url(self) -> URL:
        """SQLAlchemy URL for the aiomysql driver."""
        return URL.create(
            "mysql+aiomysql",
            username=self.username,
            password=self.password.get_secret_value(),
            host=self.host,
            port=self.port,
            database=self.database,
            query={"charset": self.charset},
        )

    @property
    def sanitized_url(self) -> str:
        """Connection URL with the password masked, safe for logging."""
        return self.url.render_as_string(hide_password=True)

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Build configuration from ``DB_*`` environment variables."""
        return cls(
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "3306")),
            database=os.getenv("DB_NAME", "mysql"),
            username=os.getenv("DB_USER", "root"),
            password=SecretStr(os.getenv("DB_PASSWORD", "")),
            charset=os.getenv("DB_CHARSET", "utf8mb4"),
            timezone=os.getenv("DB_TIMEZONE", "+00:00"),
            pool=PoolConfig(
                connection_limit=int(os.getenv("DB_POOL_LIMIT", "10")),
                queue_limit=int(os.getenv("DB_QUEUE_LIMIT", "0")),
                acquire_timeout=int(os.getenv("DB_ACQUIRE_TIMEOUT", "30000")),
                timeout=int(os.getenv("DB_TIMEOUT", "30000")),
            ),
        )


class SecurityConfig(BaseModel):
    """Settings for the free-form query safety validator."""

    model_config = ConfigDict(frozen=True)

    max_result_rows: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Row bound appended as LIMIT to queries without one",
    )
    keyword_scan: Literal["substring", "token"] = Field(
        default="substring",
        description=(
            "'substring' rejects deny-listed keywords anywhere in the text, "
            "string literals included. 'token' ignores literals and comments "
            "and only rejects whole-word keywords."
        ),
    )

    @classmethod
    def from_env(cls) -> "SecurityConfig":
        """Build configuration from environment variables."""
        return cls(
            max_result_rows=int(os.getenv("MAX_RESULT_ROWS", "1000")),
            keyword_scan=os.getenv("QUERY_KEYWORD_SCAN", "substring"),  # type: ignore[arg-type]
        )
