"""Error types for command construction and reply decoding."""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Reasons a reply buffer can fail to decode."""

    INCOMPLETE = "incomplete"
    UNKNOWN_TYPE = "unknown_type"
    INVALID_NUMBER = "invalid_number"
    MISSING_TERMINATOR = "missing_terminator"
    INVALID_ENCODING = "invalid_encoding"
    COUNT_MISMATCH = "count_mismatch"
    TRAILING_BYTES = "trailing_bytes"
    TOO_DEEP = "too_deep"


class InvalidArgument(ValueError):
    """Raised when a command is constructed with invalid fields."""


class ProtocolError(Exception):
    """A reply decoding failure.

    Each grammar layer the error passes through appends a frame to
    ``context``, so the list reads innermost first.
    """

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.context: list[str] = []

    def add_context(self, frame: str) -> ProtocolError:
        self.context.append(frame)
        return self

    def __repr__(self) -> str:
        return (
            f"ProtocolError(kind={self.kind.name}, message={self.message!r}, "
            f"context={self.context!r})"
        )
