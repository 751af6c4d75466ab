"""Lexical helpers for MySQL statement text.

These are not a parser. They only know enough about MySQL lexical structure to
tell code apart from string literals, quoted identifiers and comments.
"""

import re
from typing import Any, Iterator, Sequence

from mysql_mcp.errors import ValidationError

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_$]+$")

_QUOTES = {"'", '"', "`"}


def iter_segments(sql: str) -> Iterator[tuple[str, bool]]:
    """
    Split SQL text into code and non-code segments.

    Args:
        sql: Statement text

    Yields:
        ``(text, is_code)`` pairs that concatenate back to ``sql``. Non-code
        segments are string literals, quoted identifiers and comments.
    """
    i = 0
    start = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        end = -1
        if ch in _QUOTES:
            end = _scan_quoted(sql, i)
        elif ch == "#" or (sql.startswith("--", i) and (i + 2 >= n or sql[i + 2] in " \t\r\n")):
            newline = sql.find("\n", i)
            end = n if newline == -1 else newline
        elif sql.startswith("/*", i):
            close = sql.find("*/", i + 2)
            end = n if close == -1 else close + 2

        if end == -1:
            i += 1
            continue

        if start < i:
            yield sql[start:i], True
        yield sql[i:end], False
        i = start = end

    if start < n:
        yield sql[start:], True


def _scan_quoted(sql: str, i: int) -> int:
    """Return the index just past the quoted token starting at ``i``."""
    quote = sql[i]
    j = i + 1
    n = len(sql)
    while j < n:
        ch = sql[j]
        if ch == "\\" and quote != "`":
            j += 2
            continue
        if ch == quote:
            # Doubled quote is an escaped quote
            if j + 1 < n and sql[j + 1] == quote:
                j += 2
                continue
            return j + 1
        j += 1
    return n


def mask_non_code(sql: str) -> str:
    """Replace literals, quoted identifiers and comments with spaces."""
    return "".join(
        text if is_code else " " * len(text) for text, is_code in iter_segments(sql)
    )


def bind_positional(sql: str, params: Sequence[Any]) -> tuple[str, dict[str, Any]]:
    """
    Rewrite ``?`` placeholders as named binds for ``sqlalchemy.text``.

    Literal colons are escaped so ``text()`` does not mistake them for bind
    parameters; placeholders inside literals or comments are left alone.

    Args:
        sql: Statement text with ``?`` placeholders
        params: Positional parameter values

    Returns:
        Tuple of (rewritten text, ``{"p0": ..., "p1": ...}``)

    Raises:
        ValidationError: If the placeholder count does not match ``params``
    """
    parts: list[str] = []
    count = 0
    for text, is_code in iter_segments(sql):
        escaped = text.replace(":", "\\:")
        if is_code:
            pieces = escaped.split("?")
            rebuilt = [pieces[0]]
            for piece in pieces[1:]:
                rebuilt.append(f":p{count}")
                rebuilt.append(piece)
                count += 1
            escaped = "".join(rebuilt)
        parts.append(escaped)

    if count != len(params):
        raise ValidationError(
            f"Query has {count} placeholder(s) but {len(params)} parameter(s) were given",
            code="PARAMETER_COUNT_MISMATCH",
        )
    return "".join(parts), {f"p{i}": value for i, value in enumerate(params)}


def quote_identifier(name: str) -> str:
    """
    Backtick-quote a table or column name.

    Args:
        name: Identifier, normally taken from list_tables/describe_table output

    Returns:
        Quoted identifier

    Raises:
        ValidationError: If the name has characters outside ``[A-Za-z0-9_$]``
    """
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.fullmatch(name):
        raise ValidationError(
            f"Invalid identifier: {name!r}. Only letters, digits, '_' and '$' are allowed",
            code="INVALID_IDENTIFIER",
        )
    return f"`{name}`"
