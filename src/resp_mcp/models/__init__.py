"""Reply value models."""

from .response import (
    Response,
    SimpleString,
    Error,
    Integer,
    BulkString,
    Array,
    Malformed,
)
