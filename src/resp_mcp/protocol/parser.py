"""Reply decoding for RESP server messages.

Grammar (every line ends in CRLF)::

    reply         := simple_string | error | integer | bulk_string | array
    simple_string := '+' text CRLF
    error         := '-' text CRLF
    integer       := ':' ['-'] digits CRLF
    bulk_string   := '$' length CRLF ( length == -1 | <length bytes> CRLF )
    array         := '*' count CRLF ( count == -1 | count x reply )

The first byte of a reply selects its rule. Rules work on ``(data, offset)``
pairs and return the decoded value along with the offset just past it,
raising :class:`ProtocolError` on failure.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from ..models.response import (
    Array,
    BulkString,
    Error,
    Integer,
    Malformed,
    Response,
    SimpleString,
)
from .errors import ErrorKind, ProtocolError
from .framing import (
    ARRAY,
    BULK_STRING,
    CRLF,
    ERROR,
    INTEGER,
    NULL_LENGTH,
    SIMPLE_STRING,
)

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
MAX_DEPTH = 256  # nested arrays deeper than this are rejected

# 20 digits covers every signed 64-bit value; longer lines are never valid
_NUMBER = re.compile(rb"-?[0-9]{1,20}")
_PARTIAL_NUMBER = re.compile(rb"-?[0-9]{0,20}\r?")

Rule = Callable[[bytes, int, int], "tuple[Response, int]"]


def _check_text(line: bytes, offset: int) -> None:
    """Reject CR or LF bytes that are not part of a CRLF terminator."""
    for stray in (b"\r", b"\n"):
        pos = line.find(stray)
        if pos != -1:
            raise ProtocolError(
                ErrorKind.MISSING_TERMINATOR,
                f"unexpected {stray!r} at offset {offset + pos}, expected CRLF",
            )


def _read_line(data: bytes, offset: int) -> tuple[bytes, int]:
    """Read up to the next CRLF, returning the line and the offset after it."""
    end = data.find(CRLF, offset)
    if end == -1:
        line = data[offset:]
        # A trailing CR may be the first half of a split terminator
        if line.endswith(b"\r"):
            line = line[:-1]
        _check_text(line, offset)
        raise ProtocolError(
            ErrorKind.INCOMPLETE,
            f"unexpected end of input at offset {len(data)}, expected CRLF",
        )
    line = data[offset:end]
    _check_text(line, offset)
    return line, end + len(CRLF)


def _decode_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProtocolError(
            ErrorKind.INVALID_ENCODING, f"invalid utf-8 text: {e}"
        ) from e


def _read_number(data: bytes, offset: int, what: str) -> tuple[int, int]:
    """Read a signed decimal line such as an integer body, length or count."""
    try:
        line, offset = _read_line(data, offset)
    except ProtocolError as e:
        # Digits received so far must still be able to form a number
        partial = data[offset:]
        if e.kind is ErrorKind.INCOMPLETE and not _PARTIAL_NUMBER.fullmatch(partial):
            raise ProtocolError(
                ErrorKind.INVALID_NUMBER, f"invalid {what}: {partial!r}"
            ) from e
        raise
    if not _NUMBER.fullmatch(line):
        raise ProtocolError(ErrorKind.INVALID_NUMBER, f"invalid {what}: {line!r}")
    return int(line), offset


def parse_simple_string(data: bytes, offset: int, depth: int = 0) -> tuple[Response, int]:
    """Parse ``+<text>\\r\\n``."""
    line, offset = _read_line(data, offset + 1)
    return SimpleString(_decode_text(line)), offset


def parse_error(data: bytes, offset: int, depth: int = 0) -> tuple[Response, int]:
    """Parse ``-<text>\\r\\n``."""
    line, offset = _read_line(data, offset + 1)
    return Error(_decode_text(line)), offset


def parse_integer(data: bytes, offset: int, depth: int = 0) -> tuple[Response, int]:
    """Parse ``:<signed decimal>\\r\\n`` into a 64-bit integer."""
    value, offset = _read_number(data, offset + 1, "integer")
    if not INT64_MIN <= value <= INT64_MAX:
        raise ProtocolError(
            ErrorKind.INVALID_NUMBER, f"integer out of 64-bit range: {value}"
        )
    return Integer(value), offset


def parse_bulk_string(data: bytes, offset: int, depth: int = 0) -> tuple[Response, int]:
    """Parse ``$<length>\\r\\n<bytes>\\r\\n`` or the null bulk string ``$-1\\r\\n``."""
    length, offset = _read_number(data, offset + 1, "bulk string length")
    if length == NULL_LENGTH:
        return BulkString(None), offset
    if length < 0:
        raise ProtocolError(
            ErrorKind.INVALID_NUMBER, f"invalid bulk string length: {length}"
        )

    body_end = offset + length
    terminator = data[body_end : body_end + len(CRLF)]
    if terminator != CRLF:
        if CRLF.startswith(terminator):
            raise ProtocolError(
                ErrorKind.INCOMPLETE,
                f"unexpected end of input, expected {length} bytes and CRLF "
                f"at offset {offset}",
            )
        raise ProtocolError(
            ErrorKind.MISSING_TERMINATOR,
            f"expected CRLF after {length} bytes at offset {body_end}",
        )
    return BulkString(_decode_text(data[offset:body_end])), body_end + len(CRLF)


def parse_array(data: bytes, offset: int, depth: int = 0) -> tuple[Response, int]:
    """Parse ``*<count>\\r\\n`` followed by ``count`` replies of any kind."""
    count, offset = _read_number(data, offset + 1, "array count")
    if count == NULL_LENGTH:
        return Array(None), offset
    if count < 0:
        raise ProtocolError(ErrorKind.INVALID_NUMBER, f"invalid array count: {count}")
    if depth >= MAX_DEPTH:
        raise ProtocolError(
            ErrorKind.TOO_DEEP, f"arrays nested deeper than {MAX_DEPTH} levels"
        )

    items: list[Response] = []
    for _ in range(count):
        try:
            item, offset = parse_reply(data, offset, depth + 1)
        except ProtocolError as e:
            # Running out of input stays INCOMPLETE so callers can read more
            kind = e.kind if e.kind is ErrorKind.INCOMPLETE else ErrorKind.COUNT_MISMATCH
            error = ProtocolError(kind, f"expect {count} items, got {len(items)}")
            error.context = e.context + [f"array item {len(items)}: {e.message}"]
            raise error from e
        items.append(item)
    return Array(tuple(items)), offset


PARSERS: dict[bytes, tuple[str, Rule]] = {
    SIMPLE_STRING: ("simple string", parse_simple_string),
    ERROR: ("error", parse_error),
    INTEGER: ("integer", parse_integer),
    BULK_STRING: ("bulk string", parse_bulk_string),
    ARRAY: ("array", parse_array),
}


def parse_reply(data: bytes, offset: int = 0, depth: int = 0) -> tuple[Response, int]:
    """Parse one reply starting at ``offset``.

    Returns:
        The decoded reply and the offset just past it.

    Raises:
        ProtocolError: If no rule matches or the matching rule fails.
    """
    sentinel = data[offset : offset + 1]
    if not sentinel:
        raise ProtocolError(
            ErrorKind.INCOMPLETE, f"unexpected end of input at offset {offset}"
        )
    if sentinel not in PARSERS:
        raise ProtocolError(
            ErrorKind.UNKNOWN_TYPE,
            f"unknown reply type {sentinel!r} at offset {offset}",
        )

    name, rule = PARSERS[sentinel]
    try:
        return rule(data, offset, depth)
    except ProtocolError as e:
        raise e.add_context(name)


def parse_response(buffer: bytes) -> Response:
    """Decode a complete reply buffer.

    Never raises: every decoding failure, including bytes left over after
    an otherwise valid reply, is returned as :class:`Malformed`.
    """
    data = bytes(buffer)
    logger.debug("decoding %r", data)

    try:
        response, offset = parse_reply(data)
    except ProtocolError as e:
        logger.debug("malformed reply: %r", e)
        return Malformed(e.message, e.kind, tuple(e.context))

    if offset != len(data):
        leftover = data[offset:].decode("utf-8", errors="backslashreplace")
        return Malformed(f"remaining bytes: {leftover}", ErrorKind.TRAILING_BYTES)
    return response
