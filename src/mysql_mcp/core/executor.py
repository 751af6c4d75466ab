"""Safe query execution with validation."""

import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence

from mysql_mcp.core.validator import QueryValidator
from mysql_mcp.models.query import QueryResult

if TYPE_CHECKING:
    from mysql_mcp.core.connection import DatabaseConnection

logger = logging.getLogger(__name__)


class QueryExecutor:
    """Run caller-supplied SELECT statements behind the safety validator."""

    def __init__(self, connection: "DatabaseConnection", validator: QueryValidator):
        """
        Initialize query executor.

        Args:
            connection: Database connection manager
            validator: Read-only query validator
        """
        self.connection = connection
        self.validator = validator

    def prepare(self, query: Any) -> str:
        """
        Validate a query and return the SQL that will actually run.

        Pure check; the connection is not touched. Validating an already
        prepared query returns it unchanged.

        Args:
            query: SQL text from the caller

        Returns:
            Final SQL text (row limit appended where needed)

        Raises:
            ValidationError: If the query is empty
            SecurityError: If the validator rejects the query
        """
        final_query = self.validator.validate(query)
        if final_query != query:
            logger.debug(f"Bounded query with row limit: {final_query[:100]}")
        return final_query

    async def execute_safe_query(
        self, query: Any, params: Optional[Sequence[Any]] = None
    ) -> tuple[QueryResult, str]:
        """
        Validate and execute a read-only query.

        Validation failures are raised before the connection is touched.

        Args:
            query: SQL text from the caller
            params: Positional parameters for ``?`` placeholders

        Returns:
            Tuple of (query result, final executed SQL text)

        Raises:
            ValidationError: If the query is empty or params do not match
            SecurityError: If the validator rejects the query
            DatabaseError: If execution fails
        """
        final_query = self.prepare(query)
        result = await self.connection.query(final_query, list(params or []))
        return result, final_query
