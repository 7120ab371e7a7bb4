"""Protocol layer: request framing, command encoding, and reply parsing."""

from .commands import Command, encode
from .parser import parse_response
