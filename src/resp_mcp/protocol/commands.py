"""Client command model and encoder.

Each command is a frozen dataclass that knows its RESP keyword and how to
flatten its fields into an ordered argument list. :func:`encode` turns any
command into request bytes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from .errors import InvalidArgument
from .framing import build_request

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ExistFlag(Enum):
    """SET existence condition."""

    NX = "NX"  # only set if the key does not exist
    XX = "XX"  # only set if the key already exists

    @classmethod
    def parse(cls, text: str) -> ExistFlag:
        """Parse ``nx``/``xx`` in any letter case."""
        try:
            return cls(text.upper())
        except ValueError:
            raise InvalidArgument(
                "unexpected string, 'NX' or 'XX' expected"
            ) from None


@dataclass(frozen=True)
class Command:
    """Base class for all client commands."""

    KEYWORD: ClassVar[str] = ""

    def to_args(self) -> list[str]:
        """Return the argument list, command keyword first."""
        return [self.KEYWORD]


@dataclass(frozen=True)
class Ping(Command):
    """Test server status."""

    KEYWORD: ClassVar[str] = "PING"


@dataclass(frozen=True)
class Get(Command):
    """Get the string value of a key."""

    KEYWORD: ClassVar[str] = "GET"

    key: str

    def to_args(self) -> list[str]:
        return [self.KEYWORD, self.key]


@dataclass(frozen=True)
class Set(Command):
    """Set a key to a string value.

    Args:
        key: Redis key.
        value: Value to store.
        ex: Expiration in seconds, exclusive with ``px``.
        px: Expiration in milliseconds, exclusive with ``ex``.
        exist: Optional NX/XX existence condition.
    """

    KEYWORD: ClassVar[str] = "SET"

    key: str
    value: str
    ex: int | None = None
    px: int | None = None
    exist: ExistFlag | None = None

    def __post_init__(self) -> None:
        if self.ex is not None and self.px is not None:
            raise InvalidArgument("ex and px are mutually exclusive")
        for name in ("ex", "px"):
            expire = getattr(self, name)
            if expire is not None and expire < 0:
                raise InvalidArgument(f"{name} must be non-negative, got {expire}")

    def to_args(self) -> list[str]:
        args = [self.KEYWORD, self.key, self.value]
        if self.ex is not None:
            args += ["EX", str(self.ex)]
        if self.px is not None:
            args += ["PX", str(self.px)]
        if self.exist is not None:
            args.append(self.exist.value)
        return args


@dataclass(frozen=True)
class Incr(Command):
    """Increment the integer value of a key by one."""

    KEYWORD: ClassVar[str] = "INCR"

    key: str

    def to_args(self) -> list[str]:
        return [self.KEYWORD, self.key]


@dataclass(frozen=True)
class Lrange(Command):
    """Get a range of elements from a list."""

    KEYWORD: ClassVar[str] = "LRANGE"

    key: str
    start: int
    stop: int

    def __post_init__(self) -> None:
        for name in ("start", "stop"):
            index = getattr(self, name)
            if not INT64_MIN <= index <= INT64_MAX:
                raise InvalidArgument(
                    f"{name} must fit in a signed 64-bit integer, got {index}"
                )

    def to_args(self) -> list[str]:
        return [self.KEYWORD, self.key, str(self.start), str(self.stop)]


@dataclass(frozen=True)
class Rpush(Command):
    """Append one or more values to a list."""

    KEYWORD: ClassVar[str] = "RPUSH"

    key: str
    values: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "values", tuple(self.values))

    def to_args(self) -> list[str]:
        return [self.KEYWORD, self.key, *self.values]


# Mapping from keyword to command class, used by the CLI and MCP server
COMMANDS: dict[str, type[Command]] = {
    cls.KEYWORD: cls for cls in (Ping, Get, Set, Incr, Lrange, Rpush)
}


def encode(command: Command) -> bytes:
    """Serialize a command into RESP request bytes."""
    data = build_request(command.to_args())
    logger.debug("encoded %r -> %r", command, data)
    return data
