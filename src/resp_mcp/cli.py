"""Command-line client: build one command from argv, send it, print the reply."""

from __future__ import annotations

import argparse
import logging
import sys

from .models.response import Malformed
from .protocol.commands import Command, ExistFlag, Get, Incr, Lrange, Ping, Rpush, Set
from .protocol.errors import InvalidArgument
from .transport.tcp_connection import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    READ_TIMEOUT_S,
    TCPConnection,
)

logger = logging.getLogger(__name__)


def _exist_flag(text: str) -> ExistFlag:
    try:
        return ExistFlag.parse(text)
    except InvalidArgument as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resp-cli", description="Send a single command to a RESP server."
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="server host")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="server port")
    parser.add_argument(
        "--timeout", type=float, default=READ_TIMEOUT_S, help="socket timeout in seconds"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log wire bytes"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("ping", help="test server status")

    p = sub.add_parser("get", help="get string value")
    p.add_argument("key")

    p = sub.add_parser("set", help="set a key with string value")
    p.add_argument("key")
    p.add_argument("value")
    p.add_argument("-e", "--ex", type=int, help="expiration in seconds, exclusive with --px")
    p.add_argument("-p", "--px", type=int, help="expiration in milliseconds, exclusive with --ex")
    p.add_argument("exist", nargs="?", type=_exist_flag, help="existence flag [NX|XX], given before any options")

    p = sub.add_parser("incr", help="increase by 1")
    p.add_argument("key")

    p = sub.add_parser("lrange", help="get list within a range")
    p.add_argument("key")
    p.add_argument("start", type=int)
    p.add_argument("stop", type=int)

    p = sub.add_parser("rpush", help="push values to a list")
    p.add_argument("key")
    p.add_argument("values", nargs="+")

    return parser


def command_from_args(args: argparse.Namespace) -> Command:
    """Build a Command from parsed arguments.

    Raises:
        InvalidArgument: If the fields fail command validation.
    """
    if args.command == "ping":
        return Ping()
    if args.command == "get":
        return Get(args.key)
    if args.command == "set":
        return Set(args.key, args.value, ex=args.ex, px=args.px, exist=args.exist)
    if args.command == "incr":
        return Incr(args.key)
    if args.command == "lrange":
        return Lrange(args.key, args.start, args.stop)
    if args.command == "rpush":
        return Rpush(args.key, tuple(args.values))
    raise InvalidArgument(f"unknown command {args.command!r}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        command = command_from_args(args)
    except InvalidArgument as e:
        parser.error(str(e))

    conn = TCPConnection(host=args.host, port=args.port, timeout=args.timeout)
    try:
        with conn:
            reply = conn.execute(command)
    except OSError as e:
        logger.error("%s", e)
        return 1

    print(reply)
    return 1 if isinstance(reply, Malformed) else 0


if __name__ == "__main__":
    sys.exit(main())
