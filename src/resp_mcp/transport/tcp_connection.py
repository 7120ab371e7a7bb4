"""TCP connection to a RESP server.

Writes encoded commands and accumulates reply bytes until the parser sees
a complete reply, the peer closes the socket, or the read times out.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass

from ..models.response import Malformed, Response
from ..protocol.commands import Command, encode
from ..protocol.errors import ErrorKind
from ..protocol.parser import parse_response

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6379
READ_SIZE = 1024
READ_TIMEOUT_S = 5.0


@dataclass
class ServerInfo:
    """Address of the connected server."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class TCPConnection:
    """Manages the socket connection to a RESP server.

    Usage::

        conn = TCPConnection()
        conn.open()
        reply = conn.execute(Get("key"))
        conn.close()
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        timeout: float = READ_TIMEOUT_S,
    ) -> None:
        self._server_info = ServerInfo(host=host, port=port)
        self._timeout = timeout
        self._sock: socket.socket | None = None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    @property
    def server_info(self) -> ServerInfo:
        return self._server_info

    def open(self) -> ServerInfo:
        """Connect to the server.

        Raises:
            ConnectionError: If the server cannot be reached.
        """
        try:
            self._sock = socket.create_connection(
                (self._server_info.host, self._server_info.port),
                timeout=self._timeout,
            )
        except OSError as e:
            raise ConnectionError(
                f"Could not connect to {self._server_info}: {e}"
            ) from e

        logger.info("Connected to %s", self._server_info)
        return self._server_info

    def close(self) -> None:
        """Close the connection."""
        if self._sock is None:
            return

        try:
            self._sock.close()
        except OSError as e:
            logger.warning("Error closing socket: %s", e)
        finally:
            self._sock = None
            logger.info("Disconnected from %s", self._server_info)

    def __enter__(self) -> TCPConnection:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def write(self, data: bytes) -> int:
        """Send raw bytes to the server.

        Returns:
            Number of bytes written.

        Raises:
            ConnectionError: If not connected.
        """
        if self._sock is None:
            raise ConnectionError("Not connected to server")
        self._sock.sendall(data)
        return len(data)

    def read(self, size: int = READ_SIZE) -> bytes:
        """Read up to ``size`` bytes.

        Returns:
            The bytes read; empty if the peer closed the connection or the
            read timed out.

        Raises:
            ConnectionError: If not connected.
        """
        if self._sock is None:
            raise ConnectionError("Not connected to server")

        try:
            return self._sock.recv(size)
        except socket.timeout:
            logger.debug("Read timed out after %ss", self._timeout)
            return b""

    def receive(self) -> Response:
        """Read until one complete reply has arrived and decode it."""
        buffer = bytearray()
        while True:
            chunk = self.read()
            if not chunk:
                if not buffer:
                    raise ConnectionError("Connection closed before a reply arrived")
                # Out of data: whatever the parser reports is final
                return parse_response(buffer)

            buffer += chunk
            reply = parse_response(buffer)
            if not (isinstance(reply, Malformed) and reply.kind is ErrorKind.INCOMPLETE):
                return reply
            logger.debug("Partial reply (%d bytes), reading more", len(buffer))

    def send_and_receive(self, data: bytes) -> Response:
        """Send raw request bytes and decode the reply."""
        self.write(data)
        return self.receive()

    def execute(self, command: Command) -> Response:
        """Encode and send a command, then decode its reply."""
        return self.send_and_receive(encode(command))
