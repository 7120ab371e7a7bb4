"""Tests for the MCP tool functions, with the connection mocked out."""

from __future__ import annotations

import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from resp_mcp.models.response import Array, BulkString, Error, Integer, SimpleString
from resp_mcp.protocol.commands import ExistFlag, Get, Incr, Lrange, Ping, Rpush, Set


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
        # Remove cached server module so it re-imports with our mock
        sys.modules.pop("resp_mcp.server", None)
        import resp_mcp.server as server_mod

    return server_mod


def _mock_conn(reply):
    conn = MagicMock()
    conn.execute.return_value = reply
    conn.send_and_receive.return_value = reply
    return conn


def test_ping_tool():
    """ping sends PING and returns structured and rendered replies."""
    server = _get_server_module()
    conn = _mock_conn(SimpleString("PONG"))

    with patch.object(server, "_get_connection", return_value=conn):
        result = server.ping()

    conn.execute.assert_called_once_with(Ping())
    assert result == {
        "reply": {"type": "simple_string", "value": "PONG"},
        "display": "+ PONG",
    }


def test_get_tool_null():
    """A missing key comes back as a null bulk string."""
    server = _get_server_module()
    conn = _mock_conn(BulkString(None))

    with patch.object(server, "_get_connection", return_value=conn):
        result = server.get("missing")

    conn.execute.assert_called_once_with(Get("missing"))
    assert result["display"] == "$-1"


def test_set_tool_builds_command():
    """set passes options through and parses the existence flag."""
    server = _get_server_module()
    conn = _mock_conn(SimpleString("OK"))

    with patch.object(server, "_get_connection", return_value=conn):
        server.set_key("k", "v", ex=10, exist="nx")

    conn.execute.assert_called_once_with(Set("k", "v", ex=10, exist=ExistFlag.NX))


def test_set_tool_rejects_ex_and_px():
    """Invalid options are reported without touching the connection."""
    server = _get_server_module()
    conn = _mock_conn(SimpleString("OK"))

    with patch.object(server, "_get_connection", return_value=conn):
        result = server.set_key("k", "v", ex=1, px=1)

    assert "error" in result
    conn.execute.assert_not_called()


def test_set_tool_rejects_bad_flag():
    """Unknown existence flags are reported as errors."""
    server = _get_server_module()
    conn = _mock_conn(SimpleString("OK"))

    with patch.object(server, "_get_connection", return_value=conn):
        result = server.set_key("k", "v", exist="maybe")

    assert result == {"error": "unexpected string, 'NX' or 'XX' expected"}


def test_incr_and_error_reply():
    """Server error replies are passed back, not raised."""
    server = _get_server_module()
    conn = _mock_conn(Error("ERR value is not an integer or out of range"))

    with patch.object(server, "_get_connection", return_value=conn):
        result = server.incr("k")

    conn.execute.assert_called_once_with(Incr("k"))
    assert result["reply"]["type"] == "error"


def test_lrange_and_rpush_tools():
    """List tools build LRANGE and RPUSH commands."""
    server = _get_server_module()
    conn = _mock_conn(Array((BulkString("a"),)))

    with patch.object(server, "_get_connection", return_value=conn):
        server.lrange("list")
        server.rpush("list", ["a", "b"])

    assert conn.execute.call_args_list[0].args == (Lrange("list", 0, -1),)
    assert conn.execute.call_args_list[1].args == (Rpush("list", ("a", "b")),)


def test_send_raw():
    """send_raw frames the given arguments as a request."""
    server = _get_server_module()
    conn = _mock_conn(Integer(1))

    with patch.object(server, "_get_connection", return_value=conn):
        result = server.send_raw(["DEL", "k"])
        empty = server.send_raw([])

    conn.send_and_receive.assert_called_once_with(b"*2\r\n$3\r\nDEL\r\n$1\r\nk\r\n")
    assert result["display"] == ": 1"
    assert "error" in empty


def test_tools_require_connection():
    """Tools fail clearly before connect has been called."""
    server = _get_server_module()
    server._connection = None
    with pytest.raises(RuntimeError, match="connect"):
        server.ping()


def test_connect_and_disconnect():
    """connect opens a TCPConnection and pings; disconnect closes it."""
    server = _get_server_module()
    conn = MagicMock()
    conn.connected = False
    conn.open.return_value = "127.0.0.1:6379"
    conn.execute.return_value = SimpleString("PONG")

    with patch.object(server, "TCPConnection", return_value=conn) as cls:
        result = server.connect()

    cls.assert_called_once_with(host="127.0.0.1", port=6379)
    assert result["connected"] is True
    assert result["display"] == "+ PONG"

    assert server.disconnect() == {"disconnected": True}
    conn.close.assert_called_once()
    assert server._connection is None


def test_commands_resource():
    """The commands resource lists every command with its fields."""
    server = _get_server_module()
    data = json.loads(server.resource_commands())
    assert data["SET"]["fields"] == ["key", "value", "ex", "px", "exist"]
    assert data["PING"]["fields"] == []
    assert data["PING"]["description"] == "Test server status."
