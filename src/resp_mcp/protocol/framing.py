"""RESP request framing.

Every client request is sent as an array of bulk strings::

    *<argc>\\r\\n
    $<len(arg 1)>\\r\\n<arg 1>\\r\\n
    ...
    $<len(arg n)>\\r\\n<arg n>\\r\\n

- argc: number of arguments, command keyword included
- len: byte length of the UTF-8 encoded argument, decimal ASCII
"""

from __future__ import annotations

from typing import Iterable

CRLF = b"\r\n"

# Sentinel bytes identifying each reply kind
SIMPLE_STRING = b"+"
ERROR = b"-"
INTEGER = b":"
BULK_STRING = b"$"
ARRAY = b"*"

NULL_LENGTH = -1


def build_bulk_string(arg: str) -> bytes:
    """Frame a single argument as a bulk string."""
    data = arg.encode("utf-8")
    return BULK_STRING + str(len(data)).encode("ascii") + CRLF + data + CRLF


def build_request(args: Iterable[str]) -> bytes:
    """Serialize an argument list into a RESP request.

    Args:
        args: Command keyword followed by its arguments.

    Returns:
        The request bytes, ready to write to the server.
    """
    args = list(args)
    parts = [ARRAY + str(len(args)).encode("ascii") + CRLF]
    parts.extend(build_bulk_string(arg) for arg in args)
    return b"".join(parts)
