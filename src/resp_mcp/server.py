"""MCP server entry point for a RESP server.

Exposes the supported commands as tools via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from dataclasses import fields
from typing import Any

from mcp.server.fastmcp import FastMCP

from .models.response import Response
from .protocol.commands import (
    COMMANDS,
    Command,
    ExistFlag,
    Get,
    Incr,
    Lrange,
    Ping,
    Rpush,
    Set,
)
from .protocol.errors import InvalidArgument
from .protocol.framing import build_request
from .transport.tcp_connection import DEFAULT_HOST, DEFAULT_PORT, TCPConnection

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "resp",
    instructions="MCP server for sending commands to a Redis-compatible server",
)

# Global connection state
_connection: TCPConnection | None = None


def _get_connection() -> TCPConnection:
    """Get the active connection, raising if not connected."""
    if _connection is None or not _connection.connected:
        raise RuntimeError(
            "Not connected to a server. Use the 'connect' tool first."
        )
    return _connection


def _reply(response: Response) -> dict[str, Any]:
    return {"reply": response.to_dict(), "display": str(response)}


def _execute(command: Command) -> dict[str, Any]:
    return _reply(_get_connection().execute(command))


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> dict[str, Any]:
    """Open a TCP connection to a RESP server and check it with PING.

    Args:
        host: Server hostname or IP address.
        port: Server TCP port.
    """
    global _connection
    if _connection is not None and _connection.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "server": str(_connection.server_info),
        }

    _connection = TCPConnection(host=host, port=port)
    info = _connection.open()

    result: dict[str, Any] = {"connected": True, "server": str(info)}
    result.update(_reply(_connection.execute(Ping())))
    return result


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to the server."""
    global _connection
    if _connection is None:
        return {"disconnected": True}
    _connection.close()
    _connection = None
    return {"disconnected": True}


# ─── COMMAND TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def ping() -> dict[str, Any]:
    """Test server status."""
    return _execute(Ping())


@mcp.tool()
def get(key: str) -> dict[str, Any]:
    """Get the string value of a key.

    Args:
        key: Redis key.
    """
    return _execute(Get(key))


@mcp.tool(name="set")
def set_key(
    key: str,
    value: str,
    ex: int | None = None,
    px: int | None = None,
    exist: str | None = None,
) -> dict[str, Any]:
    """Set a key to a string value.

    Args:
        key: Redis key.
        value: Value to store.
        ex: Expiration in seconds, exclusive with px.
        px: Expiration in milliseconds, exclusive with ex.
        exist: "NX" to only set a missing key, "XX" to only set an existing one.
    """
    try:
        command = Set(
            key,
            value,
            ex=ex,
            px=px,
            exist=ExistFlag.parse(exist) if exist else None,
        )
    except InvalidArgument as e:
        return {"error": str(e)}
    return _execute(command)


@mcp.tool()
def incr(key: str) -> dict[str, Any]:
    """Increment the integer value of a key by one.

    Args:
        key: Redis key.
    """
    return _execute(Incr(key))


@mcp.tool()
def lrange(key: str, start: int = 0, stop: int = -1) -> dict[str, Any]:
    """Get a range of elements from a list.

    Args:
        key: Redis key.
        start: Start index, negative counts from the end.
        stop: Stop index (inclusive), negative counts from the end.
    """
    try:
        command = Lrange(key, start, stop)
    except InvalidArgument as e:
        return {"error": str(e)}
    return _execute(command)


@mcp.tool()
def rpush(key: str, values: list[str]) -> dict[str, Any]:
    """Append values to a list.

    Args:
        key: Redis key.
        values: Values to append, in order.
    """
    return _execute(Rpush(key, tuple(values)))


@mcp.tool()
def send_raw(args: list[str]) -> dict[str, Any]:
    """Send an arbitrary command as a list of arguments.

    Args:
        args: Command keyword followed by its arguments, e.g. ["DEL", "key"].
    """
    if not args:
        return {"error": "At least one argument is required"}
    conn = _get_connection()
    return _reply(conn.send_and_receive(build_request(args)))


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("resp://commands")
def resource_commands() -> str:
    """Supported commands and their fields."""
    return json.dumps({
        keyword: {
            "description": (cls.__doc__ or "").strip().splitlines()[0],
            "fields": [f.name for f in fields(cls)],
        }
        for keyword, cls in COMMANDS.items()
    })


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
