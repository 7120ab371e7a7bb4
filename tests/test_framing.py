"""Tests for RESP request framing."""

from resp_mcp.protocol.framing import (
    CRLF,
    build_bulk_string,
    build_request,
)


def test_bulk_string_layout():
    """A bulk string is $<len>, CRLF, the bytes, CRLF."""
    assert build_bulk_string("GET") == b"$3\r\nGET\r\n"


def test_bulk_string_empty():
    """Empty arguments still get a zero length and both terminators."""
    assert build_bulk_string("") == b"$0\r\n\r\n"


def test_bulk_string_length_counts_bytes():
    """Lengths are UTF-8 byte counts, not character counts."""
    framed = build_bulk_string("héllo")
    assert framed.startswith(b"$6\r\n")
    assert framed == b"$6\r\n" + "héllo".encode("utf-8") + CRLF


def test_bulk_string_keeps_embedded_crlf():
    """Bulk strings are length-delimited, so CRLF inside is payload."""
    assert build_bulk_string("a\r\nb") == b"$4\r\na\r\nb\r\n"


def test_request_header_counts_arguments():
    """The leading *<argc> line counts every argument."""
    data = build_request(["RPUSH", "list", "a", "b", "c"])
    assert data.startswith(b"*5\r\n")
    assert data.count(b"$") == 5


def test_request_ping():
    """PING is a one-element array of bulk strings."""
    assert build_request(["PING"]) == b"*1\r\n$4\r\nPING\r\n"


def test_request_accepts_any_iterable():
    """Generators are consumed once and framed like lists."""
    data = build_request(arg for arg in ["GET", "key"])
    assert data == b"*2\r\n$3\r\nGET\r\n$3\r\nkey\r\n"


def test_request_empty():
    """An empty argument list frames as an empty array."""
    assert build_request([]) == b"*0\r\n"
