"""Read-only validation and row bounding for free-form SQL."""

import re
from typing import Any, Optional

from mysql_mcp.errors import SecurityError, ValidationError
from mysql_mcp.models.config import SecurityConfig
from mysql_mcp.utils import iter_segments, mask_non_code


class QueryValidator:
    """Classify free-form SQL as permitted or rejected, and bound its rows.

    The deny-list check is a textual scan, not a parser. In the default
    ``substring`` mode any occurrence of a keyword rejects the query, even
    inside a string literal (``'update me'``) or an identifier
    (``updated_at``). ``token`` mode skips literals, quoted identifiers and
    comments and matches whole words only; it must be enabled explicitly.
    """

    ALLOWED_PREFIX = "select"

    DENIED_KEYWORDS = (
        "drop",
        "delete",
        "update",
        "insert",
        "create",
        "alter",
        "truncate",
    )

    def __init__(self, config: SecurityConfig):
        """
        Initialize query validator.

        Args:
            config: Row bound and keyword scan mode
        """
        self.config = config
        self._keyword_pattern = re.compile(
            r"\b(" + "|".join(self.DENIED_KEYWORDS) + r")\b"
        )

    def validate(self, query: Any) -> str:
        """
        Validate a query and return the text to execute.

        Args:
            query: Raw SQL text from the caller

        Returns:
            The original-case query, with ``LIMIT n`` appended when the text
            contains no ``limit``

        Raises:
            ValidationError: If the query is empty or not a string
            SecurityError: If the query is not a SELECT or contains a
                deny-listed keyword
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Query must be a non-empty string", code="EMPTY_QUERY")

        normalized = query.strip().lower()

        if not normalized.startswith(self.ALLOWED_PREFIX):
            raise SecurityError(
                "Only read queries permitted: query must start with SELECT",
                code="NON_SELECT_QUERY",
            )

        if self.config.keyword_scan == "token":
            scanned = mask_non_code(normalized)
        else:
            scanned = normalized

        keyword = self._find_denied_keyword(scanned)
        if keyword is not None:
            raise SecurityError(
                f"Query contains forbidden keyword: {keyword}",
                code="FORBIDDEN_KEYWORD",
            )

        if "limit" not in scanned:
            return self._add_limit(query, self.config.max_result_rows)
        return query

    def _find_denied_keyword(self, scanned: str) -> Optional[str]:
        """Return the first deny-listed keyword found, if any."""
        if self.config.keyword_scan == "token":
            match = self._keyword_pattern.search(scanned)
            return match.group(1) if match else None

        for keyword in self.DENIED_KEYWORDS:
            if keyword in scanned:
                return keyword
        return None

    def _add_limit(self, query: str, limit: int) -> str:
        """Add LIMIT clause to query if not present."""
        # Remove trailing semicolon if present
        query = query.rstrip().rstrip(";").rstrip()

        # A trailing line comment would swallow the clause
        segments = list(iter_segments(query))
        if segments:
            last_text, last_is_code = segments[-1]
            if not last_is_code and last_text.startswith(("--", "#")):
                return f"{query}\nLIMIT {limit}"

        return f"{query} LIMIT {limit}"
