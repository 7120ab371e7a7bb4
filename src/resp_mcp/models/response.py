"""Reply values decoded from a RESP server.

Each reply kind is a frozen dataclass. ``str()`` gives the operator-facing
rendering, which is for display only and is never parsed back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..protocol.errors import ErrorKind


@dataclass(frozen=True)
class Response(ABC):
    """Base class for all reply values."""

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable mapping tagged with the reply type."""


@dataclass(frozen=True)
class SimpleString(Response):
    """``+`` status reply."""

    text: str

    def __str__(self) -> str:
        return f"+ {self.text}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "simple_string", "value": self.text}


@dataclass(frozen=True)
class Error(Response):
    """``-`` error reply sent by the server."""

    text: str

    def __str__(self) -> str:
        return f"- {self.text}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "error", "value": self.text}


@dataclass(frozen=True)
class Integer(Response):
    """``:`` signed 64-bit integer reply."""

    value: int

    def __str__(self) -> str:
        return f": {self.value}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "integer", "value": self.value}


@dataclass(frozen=True)
class BulkString(Response):
    """``$`` length-prefixed reply. ``None`` is the null bulk string."""

    value: str | None

    def __str__(self) -> str:
        if self.value is None:
            return "$-1"
        return f"$ {self.value}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "bulk_string", "value": self.value}


@dataclass(frozen=True)
class Array(Response):
    """``*`` multi-bulk reply. ``None`` is the null array."""

    items: tuple[Response, ...] | None

    def __post_init__(self) -> None:
        if self.items is not None:
            object.__setattr__(self, "items", tuple(self.items))

    def __str__(self) -> str:
        if self.items is None:
            return "*-1"
        body = "\r\n".join(str(item) for item in self.items)
        return f"* {len(self.items)}\r\n{body}"

    def to_dict(self) -> dict[str, Any]:
        if self.items is None:
            return {"type": "array", "value": None}
        return {"type": "array", "value": [item.to_dict() for item in self.items]}


@dataclass(frozen=True)
class Malformed(Response):
    """A buffer that could not be decoded into a reply.

    ``context`` lists the grammar rules that were active when decoding
    failed, innermost first.
    """

    reason: str
    kind: ErrorKind | None = None
    context: tuple[str, ...] = field(default=(), compare=False)

    def __str__(self) -> str:
        return f"parse reply failed: {self.reason}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "malformed",
            "reason": self.reason,
            "kind": self.kind.value if self.kind else None,
            "context": list(self.context),
        }
