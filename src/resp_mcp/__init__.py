"""RESP client codec with a command-line front end and an MCP server."""

__version__ = "0.1.0"
