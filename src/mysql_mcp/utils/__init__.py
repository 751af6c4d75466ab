"""Utility modules for the MySQL MCP server."""

from mysql_mcp.utils.serialization import (
    convert_row_to_json_safe,
    convert_rows_to_json_safe,
    convert_value_to_json_safe,
    dumps,
)
from mysql_mcp.utils.sql import (
    bind_positional,
    iter_segments,
    mask_non_code,
    quote_identifier,
)

__all__ = [
    "convert_value_to_json_safe",
    "convert_row_to_json_safe",
    "convert_rows_to_json_safe",
    "dumps",
    "bind_positional",
    "iter_segments",
    "mask_non_code",
    "quote_identifier",
]
