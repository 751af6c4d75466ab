"""Entry point for running mysql_mcp as a module."""

from mysql_mcp.server import cli_entry

if __name__ == "__main__":
    cli_entry()
